from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer

from catalog.bindings import RecordBinding
from catalog.serializer import SchemaCatalog, build_default_catalog
from cli.config import CLIConfig, load_config
from cli.render import (
    render_bindings,
    render_record,
    render_registrations,
    render_reports,
    render_schema,
)
from errors import SchemaCatalogError
from logging_config import configure_logging


@dataclass
class CLIState:
    config: CLIConfig
    catalog: SchemaCatalog


app = typer.Typer(
    help="Inspect, register and check the sensor schema catalog.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def build_catalog(config: CLIConfig) -> SchemaCatalog:
    return build_default_catalog(registry_url=config.registry_url, timeout=config.timeout)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _fail(exc: Exception) -> NoReturn:
    retry_hint = " (transient, retry later)" if getattr(exc, "retryable", False) else ""
    typer.secho(f"{type(exc).__name__}: {exc}{retry_hint}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _lookup(catalog: SchemaCatalog, name: str) -> RecordBinding:
    wanted = name.strip().lower()
    for binding in catalog.bindings:
        candidates = {
            binding.name.lower(),
            binding.schema.full_name.lower(),
            binding.destination.lower(),
        }
        if wanted in candidates:
            return binding
    known = ", ".join(binding.name for binding in catalog.bindings)
    raise typer.BadParameter(f"Unknown record {name!r}; known records: {known}")


def _selected(catalog: SchemaCatalog, record: Optional[str]) -> Optional[List[Any]]:
    if record is None:
        return None
    return [_lookup(catalog, record).record_type]


@app.callback()
def main(
    ctx: typer.Context,
    registry_url: Optional[str] = typer.Option(
        None,
        "--registry-url",
        "-r",
        help="Schema registry base URL (defaults to SCHEMA_REGISTRY_URL env or http://localhost:8081).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each registry request.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(registry_url=registry_url, timeout=timeout)
    catalog = build_catalog(config)
    ctx.obj = CLIState(config=config, catalog=catalog)
    ctx.call_on_close(catalog.close)


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List catalog records with their destinations and schema versions."""
    catalog = _get_state(ctx).catalog
    subjects = {binding.name: catalog.subject_for(binding) for binding in catalog.bindings}
    render_bindings(catalog.bindings, subjects)


@app.command("show")
def show_command(
    ctx: typer.Context,
    record: str = typer.Argument(..., help="Record name, full schema name or destination."),
    version: Optional[int] = typer.Option(None, "--version", help="Schema revision to show."),
) -> None:
    """Print a record's schema definition."""
    catalog = _get_state(ctx).catalog
    binding = _lookup(catalog, record)
    try:
        render_schema(binding, version)
    except SchemaCatalogError as exc:
        _fail(exc)


@app.command("register")
def register_command(
    ctx: typer.Context,
    record: Optional[str] = typer.Argument(None, help="Register only this record."),
) -> None:
    """Register every schema revision with the registry."""
    state = _get_state(ctx)
    typer.echo(f"Registering schemas with {state.config.registry_url} ...")
    try:
        registrations = state.catalog.register_all(_selected(state.catalog, record))
    except SchemaCatalogError as exc:
        _fail(exc)
    render_registrations(registrations)


@app.command("check")
def check_command(
    ctx: typer.Context,
    record: Optional[str] = typer.Argument(None, help="Check only this record."),
) -> None:
    """Check the latest schemas for compatibility with the registry."""
    state = _get_state(ctx)
    try:
        reports = state.catalog.check_all(_selected(state.catalog, record))
    except SchemaCatalogError as exc:
        _fail(exc)
    render_reports(reports)
    if not all(report.compatible for report in reports.values()):
        raise typer.Exit(code=1)


@app.command("decode")
def decode_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Captured message."),
    hex_input: bool = typer.Option(False, "--hex", help="The file holds the message as hex text."),
) -> None:
    """Decode a captured message and print its fields."""
    state = _get_state(ctx)
    data = file.read_bytes()
    if hex_input:
        try:
            data = bytes.fromhex(data.decode("ascii").strip())
        except (UnicodeDecodeError, ValueError) as exc:
            raise typer.BadParameter(f"File {file} does not hold hex text.") from exc
    try:
        value = state.catalog.decode(data)
    except SchemaCatalogError as exc:
        _fail(exc)
    render_record(value)
