"""Mock serverless API state.

Holds projects and traffic filters in memory with the same shapes the
real API returns.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MockProject:
    """A serverless project with its embedded traffic filter list."""

    project_id: str
    project_type: str
    name: str = "test-project"
    traffic_filters: list[dict[str, str]] | None = None

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.project_id,
            "name": self.name,
            "type": self.project_type,
        }
        if self.traffic_filters is not None:
            payload["traffic_filters"] = copy.deepcopy(self.traffic_filters)
        return payload


@dataclass
class MockServerlessState:
    """In-memory projects and traffic filters."""

    projects: dict[tuple[str, str], MockProject] = field(default_factory=dict)
    traffic_filters: dict[str, dict[str, Any]] = field(default_factory=dict)

    # Projects

    def add_project(
        self,
        project_type: str,
        project_id: str,
        filter_ids: list[str] | None = None,
    ) -> MockProject:
        project = MockProject(
            project_id=project_id,
            project_type=project_type,
            traffic_filters=None if filter_ids is None else [{"id": f} for f in filter_ids],
        )
        self.projects[(project_type, project_id)] = project
        return project

    def get_project(self, project_type: str, project_id: str) -> MockProject | None:
        return self.projects.get((project_type, project_id))

    def remove_project(self, project_type: str, project_id: str) -> None:
        self.projects.pop((project_type, project_id), None)

    def project_filter_ids(self, project_type: str, project_id: str) -> list[str]:
        project = self.projects[(project_type, project_id)]
        return [f["id"] for f in project.traffic_filters or []]

    def set_project_filter_ids(self, project_type: str, project_id: str, ids: list[str]) -> None:
        self.projects[(project_type, project_id)].traffic_filters = [{"id": f} for f in ids]

    # Traffic filters

    def create_traffic_filter(self, body: dict[str, Any]) -> dict[str, Any]:
        filter_id = uuid.uuid4().hex
        stored = {
            "id": filter_id,
            "name": body["name"],
            "type": body["type"],
            "region": body["region"],
            "description": body.get("description", ""),
            "include_by_default": body.get("include_by_default", False),
            "rules": copy.deepcopy(body.get("rules", [])),
        }
        self.traffic_filters[filter_id] = stored
        return copy.deepcopy(stored)

    def add_traffic_filter(self, filter_id: str, **fields: Any) -> dict[str, Any]:
        stored = {
            "id": filter_id,
            "name": "test-filter",
            "type": "ip",
            "region": "aws-us-east-1",
            "description": "",
            "include_by_default": False,
            "rules": [{"source": "10.0.0.0/8"}],
        }
        stored.update(fields)
        self.traffic_filters[filter_id] = stored
        return stored
