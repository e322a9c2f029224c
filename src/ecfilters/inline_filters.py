"""Inline project filter sets: a project declaring its whole traffic filter set.

Unlike an association, an inline set owns the project's ``traffic_filters``
attribute outright. Applying it overwrites every membership, including ones
created by associations; mixing both on one project is unsupported and the
overwrite is logged at WARNING.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .client import ServerlessClient
from .diagnostics import OperationResult, resource_ready, validate_model
from .errors import ProjectNotFoundError, TrafficFilterError
from .models import ProjectFilters
from .projects import membership_for

logger = logging.getLogger(__name__)

RESOURCE_TYPE_NAME = "ec_serverless_project_traffic_filters"


def _as_list(ids: frozenset[str] | None) -> list[str] | None:
    return None if ids is None else sorted(ids)


class InlineFilterSetResource:
    """Read and apply a project's declared traffic filter set."""

    type_name = RESOURCE_TYPE_NAME

    def __init__(self, client: ServerlessClient | None = None) -> None:
        self._client = client

    def configure(self, client: ServerlessClient) -> None:
        self._client = client

    def read(self, state: ProjectFilters | Mapping[str, Any]) -> OperationResult[ProjectFilters]:
        """Refresh the set from the server, dropping it when the project is gone."""
        result: OperationResult[ProjectFilters] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        tracked = validate_model(ProjectFilters, state, diags, "Invalid project filters")
        if tracked is None:
            return result
        result.state = tracked

        try:
            current = membership_for(tracked.project_type, self._client).get_traffic_filters(
                tracked.project_id
            )
        except ProjectNotFoundError:
            logger.warning(
                "Project no longer exists, dropping its filter set",
                extra={"project_id": tracked.project_id, "project_type": tracked.project_type.value},
            )
            result.state = None
            return result
        except TrafficFilterError as e:
            diags.add_exception(e)
            return result

        result.state = tracked.model_copy(update={"traffic_filters": _as_list(current)})
        return result

    def apply(self, plan: ProjectFilters | Mapping[str, Any]) -> OperationResult[ProjectFilters]:
        """Write the declared set; an unset declaration only reads."""
        result: OperationResult[ProjectFilters] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        spec = validate_model(ProjectFilters, plan, diags, "Invalid project filters")
        if spec is None:
            return result

        log_fields = {"project_id": spec.project_id, "project_type": spec.project_type.value}
        if spec.traffic_filters:
            logger.warning(
                "Overwriting project traffic filter set with declared set",
                extra={**log_fields, "target": spec.traffic_filters},
            )

        try:
            echoed = membership_for(spec.project_type, self._client).set_traffic_filters(
                spec.project_id, spec.traffic_filters
            )
        except TrafficFilterError as e:
            diags.add_exception(e)
            return result

        if (
            spec.traffic_filters
            and echoed is not None
            and echoed != frozenset(spec.traffic_filters)
        ):
            logger.warning(
                "Concurrent modification of project traffic filters detected",
                extra={**log_fields, "written": spec.traffic_filters, "echoed": _as_list(echoed)},
            )
            diags.add_warning(
                "Concurrent modification detected",
                f"Project {spec.project_id} reports traffic filters {_as_list(echoed)} "
                f"after writing {sorted(spec.traffic_filters)}. Another writer may have "
                f"modified the project concurrently.",
            )

        if echoed is not None:
            spec = spec.model_copy(update={"traffic_filters": _as_list(echoed)})
        result.state = spec
        return result
