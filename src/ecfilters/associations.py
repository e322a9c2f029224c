"""Association reconciler: links one traffic filter to one serverless project.

An association is a client-side record. On the server the relationship is
a filter id inside the project's embedded ``traffic_filters`` list, a list
that any number of independently declared associations share. Every
lifecycle operation therefore follows the same pattern:

1. Read the project's full filter set
2. Compute the target set by adding or removing exactly one filter id
3. Write the full set back (only when it changed)

CONSISTENCY:
Read and write are not atomic and the API offers no concurrency token, so
two associations reconciled concurrently against the same project can
overwrite each other (last writer wins). This is a property of the API,
not something this module can fix. Instead the race is made visible:
- every full-set write is logged at WARNING with the before/after sets
- when the PATCH response echoes a set that differs from what was written,
  a "concurrent modification" warning is logged and reported as a warning
  diagnostic

State machine per (project_id, project_type, traffic_filter_id):

    create: filter in set  -> PRESENT, no write
            otherwise      -> write set + filter, PRESENT
    read:   filter in set  -> PRESENT
            otherwise      -> ABSENT (dropped from tracked state)
    update: always an error (every attribute forces replacement)
    delete: write set - filter, ABSENT (no write, no error if already absent)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .client import ServerlessClient
from .diagnostics import Diagnostics, OperationResult, resource_ready, validate_model
from .errors import ProjectNotFoundError, TrafficFilterError
from .import_key import parse_import_key
from .models import AssociationSpec, AssociationState
from .projects import ProjectMembership, membership_for

logger = logging.getLogger(__name__)

RESOURCE_TYPE_NAME = "ec_serverless_traffic_filter_association"

AssociationInput = AssociationSpec | Mapping[str, Any]


class AssociationResource:
    """Lifecycle operations for traffic filter associations.

    Operations never raise for API conditions: problems are reported in
    the returned OperationResult diagnostics, and ``result.state`` holds
    what is now true (None when the association is no longer tracked).
    """

    type_name = RESOURCE_TYPE_NAME

    def __init__(self, client: ServerlessClient | None = None) -> None:
        self._client = client

    def configure(self, client: ServerlessClient) -> None:
        self._client = client

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create(self, plan: AssociationInput) -> OperationResult[AssociationState]:
        """Ensure the filter is a member of the project's filter set."""
        result: OperationResult[AssociationState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        spec = validate_model(AssociationSpec, plan, diags, "Invalid association")
        if spec is None:
            return result

        try:
            membership = self._membership(spec)
            current = membership.get_filter_ids(spec.project_id)

            if spec.traffic_filter_id in current:
                logger.info(
                    "Traffic filter already associated, no write needed",
                    extra=self._log_fields(spec),
                )
            else:
                target = [*current, spec.traffic_filter_id]
                self._write(membership, spec, current, target, diags)
        except TrafficFilterError as e:
            diags.add_exception(e)
            return result

        result.state = AssociationState.from_spec(spec)
        return result

    def read(self, state: AssociationInput) -> OperationResult[AssociationState]:
        """Verify the association still holds, dropping it when it does not."""
        result: OperationResult[AssociationState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        tracked = validate_model(AssociationState, state, diags, "Invalid association state")
        if tracked is None:
            return result
        # Errors leave tracked state untouched
        result.state = tracked

        try:
            membership = self._membership(tracked)
            current = membership.get_filter_ids(tracked.project_id)
        except ProjectNotFoundError:
            logger.warning(
                "Project no longer exists, dropping association",
                extra=self._log_fields(tracked),
            )
            result.state = None
            return result
        except TrafficFilterError as e:
            diags.add_exception(e)
            return result

        if tracked.traffic_filter_id not in current:
            logger.info(
                "Association no longer present on project, dropping it",
                extra=self._log_fields(tracked),
            )
            result.state = None

        return result

    def update(
        self, plan: AssociationInput, state: AssociationInput
    ) -> OperationResult[AssociationState]:
        """Always fails: every attribute of an association forces replacement."""
        result: OperationResult[AssociationState] = OperationResult()
        result.state = validate_model(
            AssociationState, state, result.diagnostics, "Invalid association state"
        )
        result.diagnostics.add_error(
            "Update not supported",
            "All attributes of this resource require replacement. "
            "Reaching update indicates a defect in the lifecycle driver, please report it.",
        )
        return result

    def delete(self, state: AssociationInput) -> OperationResult[AssociationState]:
        """Ensure the filter is absent from the project's filter set."""
        result: OperationResult[AssociationState] = OperationResult()
        diags = result.diagnostics
        if not resource_ready(self._client, diags):
            return result

        tracked = validate_model(AssociationState, state, diags, "Invalid association state")
        if tracked is None:
            return result
        result.state = tracked

        try:
            membership = self._membership(tracked)
            current = membership.get_filter_ids(tracked.project_id)

            if tracked.traffic_filter_id not in current:
                logger.info(
                    "Traffic filter already absent from project, no write needed",
                    extra=self._log_fields(tracked),
                )
            else:
                target = [f for f in current if f != tracked.traffic_filter_id]
                self._write(membership, tracked, current, target, diags)
        except TrafficFilterError as e:
            diags.add_exception(e)
            return result

        result.state = None
        return result

    def import_state(self, key: str) -> OperationResult[AssociationState]:
        """Build tracked state from a ``project_id,project_type,filter_id`` key."""
        result: OperationResult[AssociationState] = OperationResult()
        try:
            result.state = parse_import_key(key)
        except TrafficFilterError as e:
            result.diagnostics.add_exception(e)
            return result

        logger.info("Association imported", extra=self._log_fields(result.state))
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _membership(self, spec: AssociationSpec) -> ProjectMembership:
        assert self._client is not None
        return membership_for(spec.project_type, self._client)

    def _write(
        self,
        membership: ProjectMembership,
        spec: AssociationSpec,
        current: list[str],
        target: list[str],
        diags: Diagnostics,
    ) -> None:
        """Overwrite the project's filter set and check for concurrent writers."""
        logger.warning(
            "Overwriting project traffic filter set, concurrent changes may be lost",
            extra={**self._log_fields(spec), "previous": current, "target": target},
        )
        echoed = membership.patch_filter_ids(spec.project_id, target)

        if echoed is not None and set(echoed) != set(target):
            detail = (
                f"Project {spec.project_id} reports traffic filters {sorted(echoed)} "
                f"after writing {sorted(target)}. Another writer may have modified "
                f"the project concurrently."
            )
            logger.warning(
                "Concurrent modification of project traffic filters detected",
                extra={**self._log_fields(spec), "written": target, "echoed": echoed},
            )
            diags.add_warning("Concurrent modification detected", detail)

    @staticmethod
    def _log_fields(spec: AssociationSpec) -> dict[str, str]:
        return {
            "project_id": spec.project_id,
            "project_type": spec.project_type.value,
            "traffic_filter_id": spec.traffic_filter_id,
        }
