"""Tests for the traffic filter entity lifecycle."""

import pytest

from ec_mock import MockServerlessClient
from ecfilters.filters import FILTER_NOT_FOUND, TrafficFilterResource
from ecfilters.models import TrafficFilterSpec, TrafficFilterState


def make_spec(**overrides: object) -> TrafficFilterSpec:
    data = {"name": "office", "type": "ip", "region": "aws-us-east-1"}
    data.update(overrides)
    return TrafficFilterSpec.model_validate(data)


class TestCreate:
    """Tests for TrafficFilterResource.create."""

    def test_create(self, mock_client: MockServerlessClient) -> None:
        """Test that the created filter is returned as state."""
        spec = make_spec(rules=[{"source": "10.0.0.0/8", "description": "office"}])

        result = TrafficFilterResource(mock_client).create(spec)

        assert result.success
        assert result.state is not None
        assert result.state.id in mock_client.state.traffic_filters
        assert result.state.rules[0].source == "10.0.0.0/8"
        assert result.state.description is None

    def test_create_omits_unset_rules(self, mock_client: MockServerlessClient) -> None:
        """Test that the create body has no rules field when none are declared."""
        TrafficFilterResource(mock_client).create(make_spec())

        assert "rules" not in mock_client.last_body("create_traffic_filter")

    def test_create_failure(self, mock_client: MockServerlessClient) -> None:
        """Test that a non-201 answer is an error with status and body."""
        mock_client.fail_with_status("create_traffic_filter", 400, "bad region")

        result = TrafficFilterResource(mock_client).create(make_spec())

        assert not result.success
        assert result.state is None
        assert result.diagnostics.errors[0].summary == "Failed to create traffic filter"
        assert result.diagnostics.errors[0].detail.endswith("400 Bad Request\nbad region")

    def test_create_invalid_plan(self, mock_client: MockServerlessClient) -> None:
        """Test that validation failures are reported per field."""
        result = TrafficFilterResource(mock_client).create({"name": "", "type": "ip"})

        assert not result.success
        assert len(result.diagnostics.errors) == 2
        assert mock_client.calls == []


class TestRead:
    """Tests for TrafficFilterResource.read."""

    def test_read_refreshes_state(self, mock_client: MockServerlessClient) -> None:
        """Test that read returns the server view."""
        mock_client.state.add_traffic_filter("tf-1", name="renamed", description="")
        state = TrafficFilterState(id="tf-1", name="office", type="ip", region="aws-us-east-1")

        result = TrafficFilterResource(mock_client).read(state)

        assert result.success
        assert result.state is not None
        assert result.state.name == "renamed"
        assert result.state.description is None

    def test_read_missing_drops_state(self, mock_client: MockServerlessClient) -> None:
        """Test that a 404 drops the filter from tracked state."""
        state = TrafficFilterState(id="tf-1", name="office", type="ip", region="r")

        result = TrafficFilterResource(mock_client).read(state)

        assert result.success
        assert result.state is None

    def test_read_error_keeps_state(self, mock_client: MockServerlessClient) -> None:
        """Test that other failures keep tracked state."""
        mock_client.fail_transport("get_traffic_filter")
        state = TrafficFilterState(id="tf-1", name="office", type="ip", region="r")

        result = TrafficFilterResource(mock_client).read(state)

        assert not result.success
        assert result.state == state


class TestUpdate:
    """Tests for TrafficFilterResource.update."""

    def test_update_in_place(self, mock_client: MockServerlessClient) -> None:
        """Test that only changed fields are patched."""
        stored = mock_client.state.add_traffic_filter("tf-1", name="office")
        state = TrafficFilterState.from_api(stored)
        spec = make_spec(name="hq", rules=[{"source": "10.0.0.0/8"}])

        result = TrafficFilterResource(mock_client).update(spec, state)

        assert result.success
        assert result.state is not None
        assert result.state.name == "hq"
        assert mock_client.last_body("patch_traffic_filter") == {
            "name": "hq",
            "include_by_default": False,
        }

    @pytest.mark.parametrize(
        ("overrides", "field_name"),
        [({"region": "gcp-us-central1"}, "region"), ({"type": "vpce"}, "type")],
    )
    def test_replacement_required(
        self, mock_client: MockServerlessClient, overrides: dict, field_name: str
    ) -> None:
        """Test that region and type changes are rejected without a call."""
        state = TrafficFilterState.from_api(mock_client.state.add_traffic_filter("tf-1"))

        result = TrafficFilterResource(mock_client).update(make_spec(**overrides), state)

        assert not result.success
        assert result.diagnostics.errors[0].summary == "Replacement required"
        assert field_name in result.diagnostics.errors[0].detail
        assert mock_client.calls_to("patch_traffic_filter") == 0


class TestDelete:
    """Tests for TrafficFilterResource.delete."""

    @pytest.mark.parametrize("status_code", [200, 204, 404])
    def test_delete_ok_statuses(self, mock_client: MockServerlessClient, status_code: int) -> None:
        """Test that success and not-found both remove the filter."""
        mock_client.fail_with_status("delete_traffic_filter", status_code)
        state = TrafficFilterState(id="tf-1", name="office", type="ip", region="r")

        result = TrafficFilterResource(mock_client).delete(state)

        assert result.success
        assert result.state is None

    def test_delete_error(self, mock_client: MockServerlessClient) -> None:
        """Test that server errors keep tracked state."""
        mock_client.fail_with_status("delete_traffic_filter", 500, "oops")
        state = TrafficFilterState(id="tf-1", name="office", type="ip", region="r")

        result = TrafficFilterResource(mock_client).delete(state)

        assert not result.success
        assert result.state == state
        assert result.diagnostics.errors[0].detail == (
            "The API request failed with: 500 Internal Server Error\noops"
        )


class TestImport:
    """Tests for TrafficFilterResource.import_state."""

    def test_import(self, mock_client: MockServerlessClient) -> None:
        """Test that import fetches the filter."""
        mock_client.state.add_traffic_filter("tf-1")

        result = TrafficFilterResource(mock_client).import_state("tf-1")

        assert result.success
        assert result.state is not None
        assert result.state.id == "tf-1"

    def test_import_empty_id(self, mock_client: MockServerlessClient) -> None:
        """Test that an empty id is rejected."""
        result = TrafficFilterResource(mock_client).import_state("")

        assert result.diagnostics.errors[0].summary == "Invalid import ID"

    def test_import_missing(self, mock_client: MockServerlessClient) -> None:
        """Test that importing an unknown id is an error."""
        result = TrafficFilterResource(mock_client).import_state("nope")

        assert not result.success
        assert result.diagnostics.errors[0].summary == FILTER_NOT_FOUND
        assert "404 Not Found" in result.diagnostics.errors[0].detail

    def test_import_server_error(self, mock_client: MockServerlessClient) -> None:
        """Test that other failures are not reported as a missing filter."""
        mock_client.fail_with_status("get_traffic_filter", 500, "boom")

        result = TrafficFilterResource(mock_client).import_state("tf-1")

        assert result.diagnostics.errors[0].summary == "Failed to import traffic filter"
