"""Parsing of association import keys.

Format: ``<project_id>,<project_type>,<traffic_filter_id>``

The project type has to be part of the key because the association
identity (``<project_id>-<traffic_filter_id>``) does not say which
project endpoint to query.
"""

from __future__ import annotations

from .errors import InvalidImportKeyError, InvalidProjectTypeError
from .models import AssociationState, ProjectType, association_id

IMPORT_KEY_SEPARATOR = ","
IMPORT_KEY_COMPONENTS = 3


def parse_import_key(key: str) -> AssociationState:
    """Materialize tracked association state from an import key.

    No server call is made; the caller is expected to follow up with a
    read to reconcile against live state.

    Raises:
        InvalidImportKeyError: Wrong component count or an empty component.
        InvalidProjectTypeError: Unknown project type.
    """
    parts = key.split(IMPORT_KEY_SEPARATOR)
    if len(parts) != IMPORT_KEY_COMPONENTS or not all(parts):
        raise InvalidImportKeyError(key)

    project_id, project_type, traffic_filter_id = parts
    if project_type not in ProjectType.values():
        raise InvalidProjectTypeError(
            project_type,
            f"project_type must be one of: {', '.join(ProjectType.values())}. "
            f"Got: {project_type}",
        )

    return AssociationState(
        id=association_id(project_id, traffic_filter_id),
        project_id=project_id,
        project_type=ProjectType(project_type),
        traffic_filter_id=traffic_filter_id,
    )
