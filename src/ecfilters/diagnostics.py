"""Structured diagnostics and lifecycle operation results.

Lifecycle operations never raise for API-level conditions. Instead every
problem is appended to a Diagnostics collection carried by the
OperationResult, and callers check ``has_error()`` to short-circuit.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import TrafficFilterError

StateT = TypeVar("StateT")
ModelT = TypeVar("ModelT", bound=BaseModel)


class Severity(str, Enum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single reported problem."""

    severity: Severity
    summary: str
    detail: str

    def __str__(self) -> str:
        return f"{self.severity.value}: {self.summary}: {self.detail}"


@dataclass
class Diagnostics:
    """Ordered collection of diagnostics for one operation."""

    items: list[Diagnostic] = field(default_factory=list)

    def add_error(self, summary: str, detail: str) -> None:
        self.items.append(Diagnostic(Severity.ERROR, summary, detail))

    def add_warning(self, summary: str, detail: str) -> None:
        self.items.append(Diagnostic(Severity.WARNING, summary, detail))

    def add_exception(self, error: TrafficFilterError) -> None:
        """Record a controller error as an error diagnostic."""
        self.add_error(error.summary, error.detail)

    def add_validation_error(self, summary: str, error: ValidationError) -> None:
        """Record one error diagnostic per pydantic validation failure."""
        for item in error.errors():
            loc = ".".join(str(x) for x in item["loc"]) or "value"
            self.add_error(summary, f"{loc}: {item['msg']}")

    def extend(self, other: Diagnostics) -> None:
        self.items.extend(other.items)

    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.items)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.items if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.items if d.severity == Severity.WARNING]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class OperationResult(Generic[StateT]):
    """Outcome of one lifecycle operation.

    Attributes:
        state: What is now true. None means the resource is no longer
            tracked (deleted, or found missing on read).
        diagnostics: Problems reported while running the operation.
    """

    state: StateT | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def success(self) -> bool:
        """Check if the operation completed without error diagnostics."""
        return not self.diagnostics.has_error()

    @property
    def removed(self) -> bool:
        """True when the resource should be dropped from tracked state."""
        return self.state is None


def validate_model(
    model_cls: type[ModelT],
    data: ModelT | Mapping[str, Any],
    diagnostics: Diagnostics,
    summary: str,
) -> ModelT | None:
    """Coerce lifecycle input into a model, reporting validation failures.

    Returns None (with error diagnostics added) when ``data`` is invalid.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        diagnostics.add_validation_error(summary, e)
        return None


def resource_ready(client: object | None, diagnostics: Diagnostics) -> bool:
    """Report an error diagnostic when no API client has been configured."""
    if client is None:
        diagnostics.add_error(
            "Unconfigured API Client",
            "Expected configured API client. Please report this issue to the developers.",
        )
        return False
    return True
