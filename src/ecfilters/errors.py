"""Exception hierarchy for traffic filter operations.

Every error carries a short ``summary`` and a ``detail`` string so the
lifecycle layer can turn it into a diagnostic without inspecting the type.
Nothing in this module is retried; all of these are fatal for the
operation that raised them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .client import ApiResponse


class TrafficFilterError(Exception):
    """Base class for all controller errors."""

    def __init__(self, summary: str, detail: str) -> None:
        super().__init__(f"{summary}: {detail}")
        self.summary = summary
        self.detail = detail


class ProjectNotFoundError(TrafficFilterError):
    """The project an association points at does not exist."""

    def __init__(self, project_type: str, project_id: str) -> None:
        super().__init__(
            "Project not found",
            f"{project_type.capitalize()} project {project_id} not found",
        )
        self.project_type = project_type
        self.project_id = project_id


class InvalidProjectTypeError(TrafficFilterError):
    """Project type is not one of the supported kinds."""

    def __init__(self, project_type: str, detail: str | None = None) -> None:
        super().__init__(
            "Invalid project type",
            detail or f"Unknown project type: {project_type}",
        )
        self.project_type = project_type


class InvalidImportKeyError(TrafficFilterError):
    """Import key does not have the project_id,project_type,filter_id shape."""

    def __init__(self, key: str) -> None:
        super().__init__(
            "Invalid import ID",
            f"Expected format: project_id,project_type,traffic_filter_id. Got: {key}",
        )
        self.key = key


class TransportError(TrafficFilterError):
    """The HTTP call itself failed (connection, timeout, retries exhausted)."""

    pass


class UnexpectedResponseError(TrafficFilterError):
    """The API answered with a status or body we cannot use."""

    def __init__(self, summary: str, response: ApiResponse) -> None:
        super().__init__(summary, format_api_failure(response))
        self.status_code = response.status_code
        self.reason = response.reason
        self.body = response.body


def format_api_failure(response: ApiResponse) -> str:
    """Render a failed response for diagnostics: status line plus raw body."""
    return f"The API request failed with: {response.status_code} {response.reason}\n{response.body}"
