"""Main Typer application.

Entry point: ``knative-router`` (configured via pyproject.toml scripts).

Commands: services, resolve, versions.
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from knative_router.cloudevents import CLOUD_EVENTS_SPECS, DEFAULT_SPEC_VERSION
from knative_router.config import KnativeSettings
from knative_router.core.environment import Environment
from knative_router.errors import KnativeError
from knative_router.models.service import ServiceKind
from knative_router.router.component import KnativeComponent
from knative_router.transport.http import HttpTransport

app = typer.Typer(
    name="knative-router",
    help="Knative router: CloudEvents codecs and logical endpoint resolution.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (defaults to KNATIVE_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging for every command."""
    level = log_level or KnativeSettings().log_level
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _component(environment: Optional[str]) -> KnativeComponent:
    # Commands only resolve addresses; the HTTP transport opens no connection
    # until an endpoint is started.
    return KnativeComponent(environment_path=environment, transport=HttpTransport())


@app.command(name="services", help="List the services declared in an environment.")
def services_cmd(
    environment: Optional[str] = typer.Option(
        None, "--environment", "-e", help="Environment file or file:/classpath: reference."
    ),
    kind: Optional[ServiceKind] = typer.Option(None, help="Only show this kind."),
) -> None:
    """Show a table of the environment's service definitions."""
    try:
        env: Environment = _component(environment).environment()
    except KnativeError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    services = env.of_kind(kind) if kind else list(env.services)
    if not services:
        console.print("[dim]No services declared.[/dim]")
        return

    table = Table(title="Knative Services")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Protocol")
    table.add_column("Host")
    table.add_column("Port", justify="right")
    table.add_column("Metadata", style="dim")
    for service in services:
        metadata = ", ".join(f"{k}={v}" for k, v in sorted(service.metadata.items()))
        table.add_row(
            service.kind.value,
            service.name,
            service.protocol,
            service.host or "[dim](derived)[/dim]",
            str(service.port) if service.port != -1 else "[dim](default)[/dim]",
            metadata,
        )
    console.print(table)


@app.command(name="resolve", help="Resolve a knative: URI to its physical address.")
def resolve_cmd(
    uri: str = typer.Argument(..., help="Logical URI, e.g. knative:endpoint/myEndpoint"),
    environment: Optional[str] = typer.Option(
        None, "--environment", "-e", help="Environment file or file:/classpath: reference."
    ),
) -> None:
    """Print the physical URI a logical endpoint resolves to."""
    try:
        endpoint = _component(environment).create_endpoint(uri)
    except KnativeError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)
    console.print(endpoint.physical_uri, markup=False, highlight=False)


@app.command(name="versions", help="List supported CloudEvents spec versions.")
def versions_cmd() -> None:
    """Show registered CloudEvents spec versions and their headers."""
    table = Table(title="CloudEvents Spec Versions")
    table.add_column("Version", style="cyan")
    table.add_column("Default", justify="center")
    table.add_column("Headers")
    for version, spec in sorted(CLOUD_EVENTS_SPECS.items()):
        headers = ", ".join(a.header for a in spec.attributes)
        default = "[green]Yes[/green]" if version == DEFAULT_SPEC_VERSION else ""
        table.add_row(version, default, headers)
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
