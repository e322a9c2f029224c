"""Traffic filter entity lifecycle.

A traffic filter is a plain single-entity resource: create, read, update
and delete map one-to-one onto the traffic filter endpoints. Region and
type cannot change in place; a plan that changes them must be handled by
the driver as delete + create.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from azure.core.exceptions import AzureError

from .client import ApiResponse, ServerlessClient
from .diagnostics import OperationResult, resource_ready, validate_model
from .errors import format_api_failure
from .models import TrafficFilterSpec, TrafficFilterState

logger = logging.getLogger(__name__)

RESOURCE_TYPE_NAME = "ec_serverless_traffic_filter"

# Delete is idempotent: already gone counts as success
DELETE_OK_STATUSES = frozenset({200, 204, 404})

FILTER_NOT_FOUND = "Traffic filter not found"


class TrafficFilterResource:
    """Lifecycle operations for serverless traffic filters."""

    type_name = RESOURCE_TYPE_NAME

    def __init__(self, client: ServerlessClient | None = None) -> None:
        self._client = client

    def configure(self, client: ServerlessClient) -> None:
        self._client = client

    def create(
        self, plan: TrafficFilterSpec | Mapping[str, Any]
    ) -> OperationResult[TrafficFilterState]:
        result: OperationResult[TrafficFilterState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        spec = validate_model(TrafficFilterSpec, plan, diags, "Invalid traffic filter")
        if spec is None:
            return result

        summary = "Failed to create traffic filter"
        response = self._call(
            result, summary, self._client.create_traffic_filter, spec.to_create_request()
        )
        if response is None:
            return result
        if response.payload is None:
            diags.add_error(summary, format_api_failure(response))
            return result

        result.state = TrafficFilterState.from_api(response.payload)
        logger.info(
            "Traffic filter created",
            extra={"traffic_filter_id": result.state.id, "region": result.state.region},
        )
        return result

    def read(
        self, state: TrafficFilterState | Mapping[str, Any]
    ) -> OperationResult[TrafficFilterState]:
        result: OperationResult[TrafficFilterState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        tracked = validate_model(TrafficFilterState, state, diags, "Invalid traffic filter state")
        if tracked is None:
            return result
        result.state = tracked

        summary = "Failed to read traffic filter"
        response = self._call(result, summary, self._client.get_traffic_filter, tracked.id)
        if response is None:
            return result
        if response.not_found:
            logger.info(
                "Traffic filter no longer exists, dropping it",
                extra={"traffic_filter_id": tracked.id},
            )
            result.state = None
            return result
        if response.payload is None:
            diags.add_error(summary, format_api_failure(response))
            return result

        result.state = TrafficFilterState.from_api(response.payload)
        return result

    def update(
        self,
        plan: TrafficFilterSpec | Mapping[str, Any],
        state: TrafficFilterState | Mapping[str, Any],
    ) -> OperationResult[TrafficFilterState]:
        result: OperationResult[TrafficFilterState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        # Validate both inputs before giving up so every problem is reported
        spec = validate_model(TrafficFilterSpec, plan, diags, "Invalid traffic filter")
        tracked = validate_model(TrafficFilterState, state, diags, "Invalid traffic filter state")
        if spec is None or tracked is None:
            return result
        result.state = tracked

        replaced = spec.replacement_fields(tracked)
        if replaced:
            diags.add_error(
                "Replacement required",
                f"Changing {', '.join(replaced)} requires replacing the traffic filter. "
                "Reaching update indicates a defect in the lifecycle driver, please report it.",
            )
            return result

        summary = "Failed to update traffic filter"
        response = self._call(
            result,
            summary,
            self._client.patch_traffic_filter,
            tracked.id,
            spec.to_patch_request(tracked),
        )
        if response is None:
            return result
        if response.payload is None:
            diags.add_error(summary, format_api_failure(response))
            return result

        result.state = TrafficFilterState.from_api(response.payload)
        logger.info("Traffic filter updated", extra={"traffic_filter_id": tracked.id})
        return result

    def delete(
        self, state: TrafficFilterState | Mapping[str, Any]
    ) -> OperationResult[TrafficFilterState]:
        result: OperationResult[TrafficFilterState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        tracked = validate_model(TrafficFilterState, state, diags, "Invalid traffic filter state")
        if tracked is None:
            return result
        result.state = tracked

        summary = "Failed to delete traffic filter"
        response = self._call(result, summary, self._client.delete_traffic_filter, tracked.id)
        if response is None:
            return result
        if response.status_code not in DELETE_OK_STATUSES:
            diags.add_error(summary, format_api_failure(response))
            return result

        logger.info(
            "Traffic filter deleted",
            extra={"traffic_filter_id": tracked.id, "status_code": response.status_code},
        )
        result.state = None
        return result

    def import_state(self, filter_id: str) -> OperationResult[TrafficFilterState]:
        """Import by id; the filter is fetched straight away to fill in state."""
        result: OperationResult[TrafficFilterState] = OperationResult()
        diags = result.diagnostics
        if not filter_id:
            diags.add_error("Invalid import ID", "Expected a traffic filter id")
            return result
        if not resource_ready(self._client, diags):
            return result

        summary = "Failed to import traffic filter"
        response = self._call(result, summary, self._client.get_traffic_filter, filter_id)
        if response is None:
            return result
        if response.not_found:
            diags.add_error(FILTER_NOT_FOUND, format_api_failure(response))
            return result
        if response.payload is None:
            diags.add_error(summary, format_api_failure(response))
            return result

        result.state = TrafficFilterState.from_api(response.payload)
        return result

    @staticmethod
    def _call(
        result: OperationResult[TrafficFilterState],
        summary: str,
        fn: Callable[..., ApiResponse],
        *args: Any,
    ) -> ApiResponse | None:
        """Run one API call, turning transport failures into a diagnostic."""
        try:
            return fn(*args)
        except AzureError as e:
            logger.error(summary, extra={"error": str(e)})
            result.diagnostics.add_error(summary, str(e))
            return None
