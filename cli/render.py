from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Any, Iterable, Mapping

import typer

from catalog.bindings import RecordBinding
from catalog.serializer import Registration
from models.schema import CompatibilityReport


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_bindings(bindings: Iterable[RecordBinding], subjects: Mapping[str, str]) -> None:
    echo_heading("Schema Catalog")
    for binding in bindings:
        versions = ", ".join(str(schema.version) for schema in binding.history)
        typer.echo(
            f"  - {binding.name}: destination={binding.destination} "
            f"subject={subjects.get(binding.name)} versions=[{versions}]"
        )


def render_schema(binding: RecordBinding, version: int | None = None) -> None:
    schema = binding.schema_version(version)
    typer.echo(json.dumps(schema.to_avro(), indent=2))


def render_registrations(registrations: Iterable[Registration]) -> None:
    echo_heading("Registered Schemas")
    for registration in registrations:
        typer.echo(
            f"  - {registration.record} v{registration.version}: "
            f"subject={registration.subject} id={registration.schema_id}"
        )


def render_reports(reports: Mapping[str, CompatibilityReport]) -> None:
    echo_heading("Compatibility")
    for record, report in reports.items():
        if report.compatible:
            typer.secho(f"  - {record}: compatible", fg=typer.colors.GREEN)
            continue
        typer.secho(f"  - {record}: INCOMPATIBLE", fg=typer.colors.RED)
        for violation in report.violations:
            typer.echo(f"      {violation}")


def render_record(value: Any) -> None:
    echo_heading(type(value).__name__)
    pairs = []
    for item in dataclasses.fields(value):
        field_value = getattr(value, item.name)
        if field_value is None:
            field_value = "(absent)"
        elif isinstance(field_value, Enum):
            field_value = field_value.value
        pairs.append((item.name, field_value))
    echo_key_values(pairs)
