"""Elastic Cloud serverless API mock for tests.

Provides an in-memory implementation of the ServerlessClient surface so
lifecycle operations can be exercised without network access.

Key Features:
- In-memory projects (per kind) and traffic filters
- Call log for asserting which endpoints were hit
- Status and transport error injection per operation
- Hooks that run between a project read and write to simulate a
  concurrent writer

Usage:
    from ec_mock import MockServerlessClient

    client = MockServerlessClient()
    client.state.add_project("elasticsearch", "proj-1", ["filter-a"])

    result = AssociationResource(client).create(spec)

    assert client.state.project_filter_ids("elasticsearch", "proj-1") == [...]
    assert client.calls_to("patch_elasticsearch_project") == 1
"""

from .client import MockCall, MockServerlessClient
from .state import MockProject, MockServerlessState

__all__ = [
    "MockCall",
    "MockProject",
    "MockServerlessClient",
    "MockServerlessState",
]
