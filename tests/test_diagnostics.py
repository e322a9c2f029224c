"""Tests for diagnostics and operation results."""

from pydantic import ValidationError

from ecfilters.diagnostics import Diagnostics, OperationResult, Severity, validate_model
from ecfilters.errors import ProjectNotFoundError
from ecfilters.models import AssociationSpec


class TestDiagnostics:
    """Tests for Diagnostics collection."""

    def test_warnings_are_not_errors(self) -> None:
        """Test that warnings alone keep an operation successful."""
        result: OperationResult[str] = OperationResult(state="x")
        result.diagnostics.add_warning("Concurrent modification detected", "detail")

        assert result.success
        assert not result.removed
        assert len(result.diagnostics.warnings) == 1

    def test_add_exception(self) -> None:
        """Test that controller errors keep summary and detail."""
        diags = Diagnostics()
        diags.add_exception(ProjectNotFoundError("security", "p1"))

        assert diags.has_error()
        assert diags.errors[0].summary == "Project not found"
        assert diags.errors[0].detail == "Security project p1 not found"
        assert diags.errors[0].severity == Severity.ERROR

    def test_add_validation_error(self) -> None:
        """Test that each validation failure becomes one diagnostic."""
        diags = Diagnostics()
        try:
            AssociationSpec.model_validate({})
        except ValidationError as e:
            diags.add_validation_error("Invalid association", e)

        assert len(diags) == 3
        assert all(d.summary == "Invalid association" for d in diags)


class TestValidateModel:
    """Tests for validate_model."""

    def test_passthrough(self) -> None:
        """Test that model instances are returned unchanged."""
        spec = AssociationSpec(project_id="p", project_type="security", traffic_filter_id="f")

        assert validate_model(AssociationSpec, spec, Diagnostics(), "x") is spec

    def test_invalid(self) -> None:
        """Test that invalid data returns None with diagnostics."""
        diags = Diagnostics()

        assert validate_model(AssociationSpec, {"projectId": "p"}, diags, "Invalid") is None
        assert diags.has_error()
