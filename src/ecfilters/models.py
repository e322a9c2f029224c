"""Pydantic models for traffic filters and associations with validation.

These models provide:
1. Type-safe parsing of declarations (YAML files, CLI arguments)
2. Validation at the boundary (fail fast, fail loudly)
3. Clean transformation to and from Elastic Cloud API payloads
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Enumerations
# =============================================================================


class FilterType(str, Enum):
    """Traffic filter kinds supported by the serverless API."""

    IP = "ip"
    VPCE = "vpce"


class ProjectType(str, Enum):
    """Serverless project kinds a traffic filter can be associated with."""

    ELASTICSEARCH = "elasticsearch"
    OBSERVABILITY = "observability"
    SECURITY = "security"

    @classmethod
    def values(cls) -> list[str]:
        return [t.value for t in cls]


def association_id(project_id: str, traffic_filter_id: str) -> str:
    """Identity of an association.

    The project type is deliberately not part of the key so that imported
    and created associations share one format.
    """
    return f"{project_id}-{traffic_filter_id}"


# =============================================================================
# Traffic Filters
# =============================================================================


class TrafficFilterRule(BaseModel):
    """A single rule: an IP, CIDR mask or VPC endpoint id."""

    model_config = {"extra": "ignore", "frozen": True}

    source: Annotated[str, Field(min_length=1)]
    description: str | None = None

    @field_validator("description")
    @classmethod
    def empty_description_is_unset(cls, v: str | None) -> str | None:
        return v or None

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"source": self.source}
        if self.description is not None:
            payload["description"] = self.description
        return payload


def rule_set(rules: list[TrafficFilterRule]) -> frozenset[tuple[str, str | None]]:
    """Rules compare as a set; their order carries no meaning."""
    return frozenset((r.source, r.description) for r in rules)


class TrafficFilterSpec(BaseModel):
    """Declared configuration of a traffic filter."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    name: Annotated[str, Field(min_length=1)]
    type: FilterType
    region: Annotated[str, Field(min_length=1)]
    description: str | None = None
    include_by_default: bool = Field(False, alias="includeByDefault")
    # None means rules are not managed; an explicit list needs at least one rule
    rules: list[TrafficFilterRule] | None = Field(None, alias="rule")

    @field_validator("description")
    @classmethod
    def empty_description_is_unset(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("rules")
    @classmethod
    def validate_rules(cls, v: list[TrafficFilterRule] | None) -> list[TrafficFilterRule] | None:
        if v is None:
            return v
        if len(v) < 1:
            raise ValueError("at least one rule is required when rules are set")
        # Set semantics: drop exact duplicates, keep first occurrence
        return list(dict.fromkeys(v))

    def to_create_request(self) -> dict[str, Any]:
        """Body for POST /traffic-filters.

        The ``rules`` field is omitted entirely when no rules are declared
        so the server can tell "unset" from "explicitly empty".
        """
        request: dict[str, Any] = {
            "name": self.name,
            "region": self.region,
            "type": self.type.value,
            "include_by_default": self.include_by_default,
        }
        if self.description is not None:
            request["description"] = self.description
        if self.rules:
            request["rules"] = [rule.to_api() for rule in self.rules]
        return request

    def to_patch_request(self, prior: TrafficFilterState | None = None) -> dict[str, Any]:
        """Body for PATCH /traffic-filters/{id}.

        ``name`` and ``include_by_default`` are always sent. ``description``
        and ``rules`` are sent only when declared and different from the
        prior tracked state.
        """
        request: dict[str, Any] = {
            "name": self.name,
            "include_by_default": self.include_by_default,
        }
        if self.description is not None and (
            prior is None or prior.description != self.description
        ):
            request["description"] = self.description
        if self.rules and (prior is None or rule_set(prior.rules) != rule_set(self.rules)):
            request["rules"] = [rule.to_api() for rule in self.rules]
        return request

    def replacement_fields(self, state: TrafficFilterState) -> list[str]:
        """Attributes that differ from state and cannot be changed in place."""
        changed = []
        if self.region != state.region:
            changed.append("region")
        if self.type != state.type:
            changed.append("type")
        return changed


class TrafficFilterState(BaseModel):
    """Tracked state of a traffic filter as last seen on the server."""

    model_config = {"extra": "ignore"}

    id: Annotated[str, Field(min_length=1)]
    name: str
    type: FilterType
    region: str
    description: str | None = None
    include_by_default: bool = False
    rules: list[TrafficFilterRule] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> TrafficFilterState:
        """Build state from a TrafficFilterInfo payload.

        Empty descriptions are normalised to None so they do not show up
        as drift against an undeclared description.
        """
        return cls(
            id=payload["id"],
            name=payload.get("name", ""),
            type=payload["type"],
            region=payload.get("region", ""),
            description=payload.get("description") or None,
            include_by_default=bool(payload.get("include_by_default", False)),
            rules=[
                TrafficFilterRule(
                    source=rule["source"],
                    description=rule.get("description") or None,
                )
                for rule in payload.get("rules") or []
            ],
        )


# =============================================================================
# Associations
# =============================================================================


class ProjectRef(BaseModel):
    """A serverless project, identified by id and kind."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    project_id: Annotated[str, Field(min_length=1, alias="projectId")]
    project_type: ProjectType = Field(alias="projectType")

    @field_validator("project_type", mode="before")
    @classmethod
    def validate_project_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v not in ProjectType.values():
            raise ValueError(
                f"project_type must be one of: {', '.join(ProjectType.values())}. Got: {v}"
            )
        return v


class AssociationSpec(ProjectRef):
    """Declared association between one traffic filter and one project.

    Every attribute forces replacement: associations are never updated.
    """

    traffic_filter_id: Annotated[str, Field(min_length=1, alias="trafficFilterId")]


class AssociationState(AssociationSpec):
    """Tracked state of an association."""

    id: str

    @classmethod
    def from_spec(cls, spec: AssociationSpec) -> AssociationState:
        return cls(
            id=association_id(spec.project_id, spec.traffic_filter_id),
            project_id=spec.project_id,
            project_type=spec.project_type,
            traffic_filter_id=spec.traffic_filter_id,
        )


# =============================================================================
# Inline Project Filter Sets
# =============================================================================


class ProjectFilters(ProjectRef):
    """A project's whole traffic filter set, declared inline on the project.

    ``traffic_filters`` of None means the set is not managed: nothing is
    written and the project keeps whatever the server has.
    """

    traffic_filters: list[str] | None = Field(None, alias="trafficFilters")

    @field_validator("traffic_filters")
    @classmethod
    def dedupe_filters(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if not all(v):
            raise ValueError("traffic filter ids must not be empty")
        return list(dict.fromkeys(v))
