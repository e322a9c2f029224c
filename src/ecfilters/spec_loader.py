"""Declaration file loading with validation.

Declarations are YAML files describing one traffic filter, one association
or one project filter set. Both a flat layout and a Kubernetes-style wrapper are
accepted:

    apiVersion: ecfilters/v1
    kind: TrafficFilterAssociation
    spec:
      projectId: 1234abcd
      projectType: elasticsearch
      trafficFilterId: 5678efgh

SECURITY: File size is checked before reading to prevent DoS via large
files. Input validation is performed at the boundary.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from .config import MAX_DECLARATION_FILE_SIZE_BYTES
from .models import AssociationSpec, ProjectFilters, TrafficFilterSpec

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

KIND_TO_MODEL: dict[str, type[BaseModel]] = {
    "TrafficFilter": TrafficFilterSpec,
    "TrafficFilterAssociation": AssociationSpec,
    "ProjectTrafficFilters": ProjectFilters,
}


class SpecLoadError(Exception):
    """Raised when declaration loading or validation fails."""

    pass


def read_declaration(path: Path, model_cls: type[BaseModel] | None = None) -> dict[str, Any]:
    """Read a YAML declaration and unwrap the ``spec`` section if present.

    When ``model_cls`` is given, a wrapped declaration must carry the kind
    that belongs to it.

    Raises:
        SpecLoadError: If the file is missing, too large, not a mapping or of
            the wrong kind.
    """
    if not path.exists():
        raise SpecLoadError(f"Declaration file not found: {path}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise SpecLoadError(f"Failed to stat declaration file {path}: {e}") from e

    if file_size > MAX_DECLARATION_FILE_SIZE_BYTES:
        raise SpecLoadError(
            f"Declaration file exceeds maximum size of {MAX_DECLARATION_FILE_SIZE_BYTES} bytes: {path}"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecLoadError(f"Failed to read declaration file {path}: {e}") from e

    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise SpecLoadError(f"Declaration file must contain a YAML mapping: {path}")

    if "apiVersion" in raw_data and "spec" in raw_data:
        kind = raw_data.get("kind")
        if kind is not None and kind not in KIND_TO_MODEL:
            raise SpecLoadError(
                f"Unknown kind '{kind}' in {path}. Valid kinds: {list(KIND_TO_MODEL)}"
            )
        if kind is not None and model_cls is not None and KIND_TO_MODEL[kind] is not model_cls:
            expected = next(
                (k for k, m in KIND_TO_MODEL.items() if m is model_cls), model_cls.__name__
            )
            raise SpecLoadError(f"Expected kind '{expected}' in {path}, got '{kind}'")
        spec_data = raw_data.get("spec")
        if not isinstance(spec_data, dict):
            raise SpecLoadError(f"Spec section must be a mapping: {path}")
        return spec_data

    return raw_data


def load_declaration(path: Path, model_cls: type[ModelT]) -> ModelT:
    """Load and validate a declaration as ``model_cls``.

    Raises:
        SpecLoadError: If the declaration cannot be loaded or fails validation.
    """
    data = read_declaration(path, model_cls)

    try:
        declaration = model_cls.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")

        error_list = "\n".join(errors)
        raise SpecLoadError(f"Validation failed for {path}:\n{error_list}") from e

    logger.info("Loaded %s declaration from %s", model_cls.__name__, path)
    return declaration


def load_traffic_filter(path: Path) -> TrafficFilterSpec:
    return load_declaration(path, TrafficFilterSpec)


def load_association(path: Path) -> AssociationSpec:
    return load_declaration(path, AssociationSpec)


def load_project_filters(path: Path) -> ProjectFilters:
    return load_declaration(path, ProjectFilters)
