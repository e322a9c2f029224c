"""Traffic filter CLI (ecf).

Runs single lifecycle operations against the Elastic Cloud serverless API,
printing the resulting tracked state as YAML on stdout and diagnostics on
stderr.

Usage:
    ecf filter create filter.yaml
    ecf filter read <filter-id>
    ecf filter update <filter-id> filter.yaml
    ecf filter delete <filter-id>
    ecf association create -f association.yaml
    ecf association create --project-id P --project-type security --traffic-filter-id F
    ecf association read --project-id P --project-type security --traffic-filter-id F
    ecf association delete --project-id P --project-type security --traffic-filter-id F
    ecf association import P,security,F
    ecf project show --project-id P --project-type security
    ecf project set-filters --project-id P --project-type security -t F -t G

Exit codes: 0 success, 1 an error diagnostic was reported, 2 configuration error.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import BaseModel, ValidationError

from .associations import AssociationResource
from .client import ServerlessClient
from .config import Config, ConfigurationError
from .diagnostics import OperationResult, Severity
from .filters import FILTER_NOT_FOUND, TrafficFilterResource
from .inline_filters import InlineFilterSetResource
from .main import setup_logging
from .models import AssociationSpec, AssociationState, ProjectFilters, ProjectType
from .spec_loader import (
    SpecLoadError,
    load_association,
    load_project_filters,
    load_traffic_filter,
)

EXIT_DIAGNOSTIC_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


def build_client(config: Config) -> ServerlessClient:
    return ServerlessClient(config)


@dataclass
class CliContext:
    """Lazily configured API access shared by all commands."""

    _client: ServerlessClient | None = field(default=None, repr=False)

    def client(self) -> ServerlessClient:
        if self._client is None:
            try:
                config = Config.from_env()
            except ConfigurationError as e:
                click.secho(str(e), fg="red", err=True)
                raise SystemExit(EXIT_CONFIGURATION_ERROR) from e
            setup_logging(config)
            self._client = build_client(config)
        return self._client


pass_cli_context = click.make_pass_decorator(CliContext, ensure=True)


def emit(result: OperationResult[Any], removed_message: str) -> None:
    """Print diagnostics and state, exit non-zero on error diagnostics."""
    for diagnostic in result.diagnostics:
        color = "red" if diagnostic.severity == Severity.ERROR else "yellow"
        click.secho(f"{diagnostic.severity.value.upper()}: {diagnostic.summary}", fg=color, err=True)
        click.echo(f"  {diagnostic.detail}", err=True)

    if result.diagnostics.has_error():
        raise SystemExit(EXIT_DIAGNOSTIC_ERROR)

    if result.state is None:
        click.echo(removed_message, err=True)
        return

    state: BaseModel = result.state
    click.echo(yaml.safe_dump(state.model_dump(mode="json"), sort_keys=False), nl=False)


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="ecf")
def cli() -> None:
    """Elastic Cloud serverless traffic filter CLI (ecf).

    \b
    Configuration comes from the environment:
        EC_API_KEY     API key (required)
        EC_ENDPOINT    API endpoint (default: https://api.elastic-cloud.com)
    """
    pass


# =============================================================================
# Traffic Filter Commands
# =============================================================================


@cli.group("filter")
def filter_group() -> None:
    """Create, read, update and delete traffic filters."""
    pass


def _load_filter(path: Path) -> Any:
    try:
        return load_traffic_filter(path)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e


@filter_group.command("create")
@click.argument("declaration", type=click.Path(path_type=Path))
@pass_cli_context
def filter_create(ctx: CliContext, declaration: Path) -> None:
    """Create a traffic filter from a YAML declaration."""
    spec = _load_filter(declaration)
    emit(TrafficFilterResource(ctx.client()).create(spec), "Traffic filter not created")


@filter_group.command("read")
@click.argument("filter_id")
@pass_cli_context
def filter_read(ctx: CliContext, filter_id: str) -> None:
    """Show a traffic filter."""
    emit(TrafficFilterResource(ctx.client()).import_state(filter_id), "Traffic filter not found")


@filter_group.command("update")
@click.argument("filter_id")
@click.argument("declaration", type=click.Path(path_type=Path))
@pass_cli_context
def filter_update(ctx: CliContext, filter_id: str, declaration: Path) -> None:
    """Update a traffic filter in place from a YAML declaration."""
    spec = _load_filter(declaration)
    resource = TrafficFilterResource(ctx.client())

    current = resource.import_state(filter_id)
    if not current.success:
        emit(current, "")
    emit(resource.update(spec, current.state), "Traffic filter not found")


@filter_group.command("delete")
@click.argument("filter_id")
@pass_cli_context
def filter_delete(ctx: CliContext, filter_id: str) -> None:
    """Delete a traffic filter (already deleted is not an error)."""
    resource = TrafficFilterResource(ctx.client())
    current = resource.import_state(filter_id)
    if any(d.summary == FILTER_NOT_FOUND for d in current.diagnostics.errors):
        click.echo(f"Traffic filter {filter_id} not found, nothing to delete", err=True)
        return
    if not current.success or current.state is None:
        emit(current, "")
    emit(resource.delete(current.state), f"Traffic filter {filter_id} deleted")


# =============================================================================
# Association Commands
# =============================================================================


@cli.group("association")
def association_group() -> None:
    """Associate traffic filters with serverless projects."""
    pass


def association_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options identifying one association, either inline or from a file."""
    options = [
        click.option(
            "--file",
            "-f",
            "declaration",
            type=click.Path(path_type=Path),
            help="YAML declaration of the association",
        ),
        click.option("--project-id", help="Serverless project ID"),
        click.option(
            "--project-type",
            type=click.Choice(ProjectType.values()),
            help="Serverless project type",
        ),
        click.option("--traffic-filter-id", help="Traffic filter ID"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _association_spec(
    declaration: Path | None,
    project_id: str | None,
    project_type: str | None,
    traffic_filter_id: str | None,
) -> AssociationSpec:
    if declaration is not None:
        try:
            return load_association(declaration)
        except SpecLoadError as e:
            raise click.ClickException(str(e)) from e

    try:
        return AssociationSpec(
            project_id=project_id or "",
            project_type=project_type or "",
            traffic_filter_id=traffic_filter_id or "",
        )
    except ValidationError as e:
        raise click.UsageError(
            "Either --file or all of --project-id, --project-type and "
            "--traffic-filter-id are required"
        ) from e


@association_group.command("create")
@association_options
@pass_cli_context
def association_create(ctx: CliContext, **options: Any) -> None:
    """Associate a traffic filter with a project."""
    spec = _association_spec(**options)
    emit(AssociationResource(ctx.client()).create(spec), "Association not created")


@association_group.command("read")
@association_options
@pass_cli_context
def association_read(ctx: CliContext, **options: Any) -> None:
    """Check that an association still exists."""
    state = AssociationState.from_spec(_association_spec(**options))
    emit(AssociationResource(ctx.client()).read(state), f"Association {state.id} does not exist")


@association_group.command("delete")
@association_options
@pass_cli_context
def association_delete(ctx: CliContext, **options: Any) -> None:
    """Remove a traffic filter from a project."""
    state = AssociationState.from_spec(_association_spec(**options))
    emit(AssociationResource(ctx.client()).delete(state), f"Association {state.id} deleted")


@association_group.command("import")
@click.argument("key")
@pass_cli_context
def association_import(ctx: CliContext, key: str) -> None:
    """Import an association from PROJECT_ID,PROJECT_TYPE,TRAFFIC_FILTER_ID.

    The imported association is read straight away to confirm it exists.
    """
    resource = AssociationResource(ctx.client())
    imported = resource.import_state(key)
    if not imported.success or imported.state is None:
        emit(imported, "")
    emit(resource.read(imported.state), f"Association {imported.state.id} does not exist")


# =============================================================================
# Project Commands
# =============================================================================


@cli.group("project")
def project_group() -> None:
    """Manage a project's whole traffic filter set inline."""
    pass


def project_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options identifying one project."""
    fn = click.option(
        "--project-type",
        required=True,
        type=click.Choice(ProjectType.values()),
        help="Serverless project type",
    )(fn)
    return click.option("--project-id", required=True, help="Serverless project ID")(fn)


@project_group.command("show")
@project_options
@pass_cli_context
def project_show(ctx: CliContext, project_id: str, project_type: str) -> None:
    """Show the traffic filters attached to a project."""
    state = ProjectFilters(project_id=project_id, project_type=project_type)
    emit(InlineFilterSetResource(ctx.client()).read(state), f"Project {project_id} not found")


@project_group.command("set-filters")
@click.option("--project-id", help="Serverless project ID")
@click.option(
    "--project-type",
    type=click.Choice(ProjectType.values()),
    help="Serverless project type",
)
@click.option(
    "--traffic-filter-id",
    "-t",
    "traffic_filter_ids",
    multiple=True,
    help="Traffic filter ID, repeat for each filter in the set",
)
@click.option(
    "--file",
    "-f",
    "declaration",
    type=click.Path(path_type=Path),
    help="YAML declaration of the project filter set",
)
@pass_cli_context
def project_set_filters(
    ctx: CliContext,
    project_id: str | None,
    project_type: str | None,
    traffic_filter_ids: tuple[str, ...],
    declaration: Path | None,
) -> None:
    """Replace a project's traffic filter set with the declared one.

    Overwrites memberships created by associations. Without any filter id
    nothing is written and the current set is shown.
    """
    if declaration is not None:
        try:
            spec = load_project_filters(declaration)
        except SpecLoadError as e:
            raise click.ClickException(str(e)) from e
    else:
        try:
            spec = ProjectFilters(
                project_id=project_id or "",
                project_type=project_type or "",
                traffic_filters=list(traffic_filter_ids) or None,
            )
        except ValidationError as e:
            raise click.UsageError(
                "Either --file or both --project-id and --project-type are required"
            ) from e
    emit(InlineFilterSetResource(ctx.client()).apply(spec), f"Project {spec.project_id} not found")
