"""Elastic Cloud serverless API client built on the azure-core pipeline.

The client is deliberately thin: one method per endpoint, exactly one HTTP
call per method, no batching. Retries for transient failures (connection
errors, 408/429/5xx) and per-request timeouts are handled by the azure-core
pipeline policies configured here, so callers above this layer never retry.

Every method returns an ApiResponse. ``payload`` is only populated when the
status matches the expected success status for that endpoint, mirroring
typed "JSON200/JSON201" responses: callers check for ``payload is None``
rather than re-implementing status handling.

Transport failures raise azure.core.exceptions.AzureError subclasses.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from azure.core import PipelineClient
from azure.core.credentials import AzureKeyCredential
from azure.core.pipeline.policies import (
    AzureKeyCredentialPolicy,
    HeadersPolicy,
    NetworkTraceLoggingPolicy,
    RetryPolicy,
    UserAgentPolicy,
)
from azure.core.pipeline.transport import HttpTransport
from azure.core.rest import HttpRequest

from .config import Config
from .models import ProjectType

logger = logging.getLogger(__name__)

USER_AGENT = "ecfilters/0.1.0"

TRAFFIC_FILTERS_PATH = "/api/v1/serverless/traffic-filters"
PROJECTS_PATH = "/api/v1/serverless/projects"


@dataclass(frozen=True)
class ApiResponse:
    """Decoded API response.

    Attributes:
        status_code: HTTP status code.
        reason: HTTP reason phrase (e.g. "Not Found").
        body: Raw response body, kept for error diagnostics.
        payload: Decoded JSON object, only set for the expected success status.
    """

    status_code: int
    reason: str
    body: str
    payload: dict[str, Any] | None = None

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class ServerlessClient:
    """Client for the traffic filter and project endpoints."""

    def __init__(self, config: Config, transport: HttpTransport | None = None) -> None:
        """Initialize the client.

        Args:
            config: Validated controller configuration.
            transport: Optional azure-core transport, defaults to requests.
        """
        self._config = config
        policies = [
            HeadersPolicy({"Accept": "application/json", "Content-Type": "application/json"}),
            UserAgentPolicy(base_user_agent=USER_AGENT),
            RetryPolicy(retry_total=config.max_retries),
            AzureKeyCredentialPolicy(
                AzureKeyCredential(config.api_key), "Authorization", prefix="ApiKey"
            ),
            NetworkTraceLoggingPolicy(),
        ]
        kwargs: dict[str, Any] = {"policies": policies}
        if transport is not None:
            kwargs["transport"] = transport
        self._pipeline = PipelineClient(base_url=config.base_url, **kwargs)

    def close(self) -> None:
        self._pipeline.close()

    def __enter__(self) -> ServerlessClient:
        return self

    def __exit__(self, *exc_details: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Traffic filters
    # -------------------------------------------------------------------------

    def create_traffic_filter(self, body: dict[str, Any]) -> ApiResponse:
        return self._send("POST", TRAFFIC_FILTERS_PATH, expected=201, body=body)

    def get_traffic_filter(self, filter_id: str) -> ApiResponse:
        return self._send("GET", _filter_path(filter_id), expected=200)

    def patch_traffic_filter(self, filter_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._send("PATCH", _filter_path(filter_id), expected=200, body=body)

    def delete_traffic_filter(self, filter_id: str) -> ApiResponse:
        return self._send("DELETE", _filter_path(filter_id), expected=200)

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def get_elasticsearch_project(self, project_id: str) -> ApiResponse:
        return self._get_project(ProjectType.ELASTICSEARCH, project_id)

    def patch_elasticsearch_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._patch_project(ProjectType.ELASTICSEARCH, project_id, body)

    def get_observability_project(self, project_id: str) -> ApiResponse:
        return self._get_project(ProjectType.OBSERVABILITY, project_id)

    def patch_observability_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._patch_project(ProjectType.OBSERVABILITY, project_id, body)

    def get_security_project(self, project_id: str) -> ApiResponse:
        return self._get_project(ProjectType.SECURITY, project_id)

    def patch_security_project(self, project_id: str, body: dict[str, Any]) -> ApiResponse:
        return self._patch_project(ProjectType.SECURITY, project_id, body)

    def _get_project(self, project_type: ProjectType, project_id: str) -> ApiResponse:
        return self._send("GET", _project_path(project_type, project_id), expected=200)

    def _patch_project(
        self, project_type: ProjectType, project_id: str, body: dict[str, Any]
    ) -> ApiResponse:
        return self._send(
            "PATCH",
            _project_path(project_type, project_id),
            expected=200,
            body=body,
        )

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        *,
        expected: int,
        body: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Send one request and decode the response.

        Raises:
            AzureError: If the request could not be completed.
        """
        request = HttpRequest(method, self._pipeline.format_url(path), json=body)
        response = self._pipeline.send_request(
            request,
            connection_timeout=self._config.request_timeout_seconds,
            read_timeout=self._config.request_timeout_seconds,
        )
        text = response.text()

        logger.debug(
            "API call complete",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )

        return ApiResponse(
            status_code=response.status_code,
            reason=response.reason or "",
            body=text,
            payload=_decode_payload(text) if response.status_code == expected else None,
        )


def _decode_payload(text: str) -> dict[str, Any] | None:
    """Decode a JSON object body, None for anything else."""
    if not text:
        return None
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("API returned a non-JSON success body", extra={"body": text[:200]})
        return None
    return decoded if isinstance(decoded, dict) else None


def _segment(value: str) -> str:
    """Quote one path segment so ids cannot reach another endpoint."""
    return quote(value, safe="")


def _filter_path(filter_id: str) -> str:
    return f"{TRAFFIC_FILTERS_PATH}/{_segment(filter_id)}"


def _project_path(project_type: ProjectType, project_id: str) -> str:
    return f"{PROJECTS_PATH}/{project_type.value}/{_segment(project_id)}"
