"""Project traffic filter membership, one implementation per project kind.

ARCHITECTURE:
The serverless API has no association endpoint. A project's traffic
filters live in a list embedded in the project record, and the only way to
change membership is to PATCH the whole list. Each project kind has its own
GET/PATCH pair, with identical semantics.

ProjectMembership is the narrow capability the association reconciler
needs:
- get_filter_ids(project_id): current set of filter ids
- patch_filter_ids(project_id, ids): overwrite the whole set

Inline filter sets (a project declaring its whole set) use the attribute view:
- get_traffic_filters(project_id): frozenset of ids, None when unset
- set_traffic_filters(project_id, ids): write the declared set, skipped when unset

All read-modify-write traffic for associations goes through this class, so
the lost-update window (between get and patch) is confined to one place.
There is no server-side atomic add/remove and no concurrency token.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from azure.core.exceptions import AzureError

from .client import ApiResponse, ServerlessClient
from .errors import (
    InvalidProjectTypeError,
    ProjectNotFoundError,
    TransportError,
    UnexpectedResponseError,
)
from .models import ProjectType
from .project_filters import (
    filter_ids,
    filters_payload,
    traffic_filters_from_ids,
    traffic_filters_to_ids,
)

logger = logging.getLogger(__name__)

READ_FAILED = "Failed to read project"
UPDATE_FAILED = "Failed to update project"


class ProjectMembership(ABC):
    """Read and overwrite the traffic filter set of one project kind."""

    project_type: ProjectType

    def __init__(self, client: ServerlessClient) -> None:
        self._client = client

    @abstractmethod
    def _get_project(self, project_id: str) -> ApiResponse: ...

    @abstractmethod
    def _patch_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse: ...

    def get_filter_ids(self, project_id: str) -> list[str]:
        """Return the project's current filter ids (deduplicated).

        Raises:
            ProjectNotFoundError: The project does not exist.
            UnexpectedResponseError: Any other non-success response.
            TransportError: The request could not be completed.
        """
        return filter_ids(self._read_project(project_id).get("traffic_filters"))

    def get_traffic_filters(self, project_id: str) -> frozenset[str] | None:
        """Return the project's ``traffic_filters`` attribute, None when unset or empty.

        Raises the same errors as get_filter_ids.
        """
        return traffic_filters_to_ids(self._read_project(project_id).get("traffic_filters"))

    def set_traffic_filters(
        self, project_id: str, ids: Iterable[str] | None
    ) -> frozenset[str] | None:
        """Declare the project's whole filter set.

        An unset or empty declaration omits the field, so nothing is written
        and the current server value is returned instead.

        Returns:
            The attribute as echoed by the server (None when unset).
        """
        payload = traffic_filters_from_ids(ids)
        if payload is None:
            return self.get_traffic_filters(project_id)

        response = self._call(
            UPDATE_FAILED, self._patch_project, project_id, {"traffic_filters": payload}
        )
        if response.not_found:
            raise ProjectNotFoundError(self.project_type.value, project_id)
        if response.payload is None:
            raise UnexpectedResponseError(UPDATE_FAILED, response)
        return traffic_filters_to_ids(response.payload.get("traffic_filters"))

    def _read_project(self, project_id: str) -> dict[str, Any]:
        response = self._call(READ_FAILED, self._get_project, project_id)
        if response.not_found:
            raise ProjectNotFoundError(self.project_type.value, project_id)
        if response.payload is None:
            raise UnexpectedResponseError(READ_FAILED, response)
        return response.payload

    def patch_filter_ids(self, project_id: str, ids: list[str]) -> list[str] | None:
        """Overwrite the project's filter set with ``ids``.

        An empty list is sent as an empty list, never omitted, so removing
        the last association clears the set.

        Returns:
            The filter ids echoed back by the server, or None when the
            response did not include them.

        Raises:
            UnexpectedResponseError: Any non-success response.
            TransportError: The request could not be completed.
        """
        body = {"traffic_filters": filters_payload(ids)}
        response = self._call(UPDATE_FAILED, self._patch_project, project_id, body)
        if response.payload is None:
            raise UnexpectedResponseError(UPDATE_FAILED, response)
        echoed = response.payload.get("traffic_filters")
        return None if echoed is None else filter_ids(echoed)

    def _call(
        self, summary: str, fn: Callable[..., ApiResponse], *args: Any
    ) -> ApiResponse:
        try:
            return fn(*args)
        except AzureError as e:
            logger.error(
                "Project API call failed",
                extra={"project_type": self.project_type.value, "error": str(e)},
            )
            raise TransportError(summary, str(e)) from e


class ElasticsearchProjectMembership(ProjectMembership):
    project_type = ProjectType.ELASTICSEARCH

    def _get_project(self, project_id: str) -> ApiResponse:
        return self._client.get_elasticsearch_project(project_id)

    def _patch_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._client.patch_elasticsearch_project(project_id, body)


class ObservabilityProjectMembership(ProjectMembership):
    project_type = ProjectType.OBSERVABILITY

    def _get_project(self, project_id: str) -> ApiResponse:
        return self._client.get_observability_project(project_id)

    def _patch_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._client.patch_observability_project(project_id, body)


class SecurityProjectMembership(ProjectMembership):
    project_type = ProjectType.SECURITY

    def _get_project(self, project_id: str) -> ApiResponse:
        return self._client.get_security_project(project_id)

    def _patch_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._client.patch_security_project(project_id, body)


MEMBERSHIP_BY_PROJECT_TYPE: dict[ProjectType, type[ProjectMembership]] = {
    ProjectType.ELASTICSEARCH: ElasticsearchProjectMembership,
    ProjectType.OBSERVABILITY: ObservabilityProjectMembership,
    ProjectType.SECURITY: SecurityProjectMembership,
}


def membership_for(project_type: ProjectType | str, client: ServerlessClient) -> ProjectMembership:
    """Select the membership implementation for a project kind.

    Raises:
        InvalidProjectTypeError: If the project type is not recognized.
    """
    try:
        kind = ProjectType(project_type)
    except ValueError as e:
        raise InvalidProjectTypeError(str(project_type)) from e
    return MEMBERSHIP_BY_PROJECT_TYPE[kind](client)
