"""Bindings between record types, their schemas and their destinations."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from pydantic.alias_generators import to_camel

from errors import SchemaDefinitionError, ValidationError
from models.records import AlertEvent, AlertSeverity, SensorData, SensorOutput, SensorStatus
from models.schema import FieldKind, RecordSchema

DEFINITIONS_DIR = Path(__file__).resolve().parent / "definitions"

Invariant = Callable[[Mapping[str, Any]], None]


@lru_cache
def load_definition(filename: str) -> RecordSchema:
    """Load one ``.avsc`` file shipped with the catalog."""
    path = DEFINITIONS_DIR / filename
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaDefinitionError(f"Cannot read schema definition {path}: {exc}") from exc
    return RecordSchema.from_avro(raw)


@dataclass(frozen=True)
class RecordBinding:
    """Ties a record type to its destination and every revision of its schema."""

    record_type: Type[Any]
    destination: str
    history: Tuple[RecordSchema, ...]
    enum_types: Mapping[str, Type[Enum]] = field(default_factory=dict)
    invariants: Tuple[Invariant, ...] = ()

    def __post_init__(self) -> None:
        if not self.history:
            raise SchemaDefinitionError(f"{self.name} has no schema revisions.")
        attributes = self.attributes
        for schema in self.history:
            missing = [name for name in schema.field_names if name not in attributes]
            if missing:
                raise SchemaDefinitionError(
                    f"{schema.full_name} v{schema.version} declares fields with no "
                    f"attribute on {self.name}: {', '.join(missing)}"
                )

    @property
    def name(self) -> str:
        return self.record_type.__name__

    @property
    def schema(self) -> RecordSchema:
        """The reader schema: the latest revision."""
        return self.history[-1]

    @property
    def attributes(self) -> Dict[str, str]:
        """Schema field name to record attribute name."""
        return {to_camel(item.name): item.name for item in dataclasses.fields(self.record_type)}

    def schema_version(self, version: Optional[int] = None) -> RecordSchema:
        if version is None:
            return self.schema
        for schema in self.history:
            if schema.version == version:
                return schema
        known = ", ".join(str(schema.version) for schema in self.history)
        raise ValidationError(
            f"Unknown schema version {version}; known versions: {known}",
            record=self.name,
        )

    def to_fields(self, value: Any) -> Dict[str, Any]:
        """Read a record instance into values keyed by schema field name."""
        if not isinstance(value, self.record_type):
            raise ValidationError(
                "Value is not an instance of the bound record type",
                record=self.name,
                expected=self.name,
                actual=type(value).__name__,
            )
        return {
            schema_name: getattr(value, attribute)
            for schema_name, attribute in self.attributes.items()
        }

    def from_fields(self, values: Mapping[str, Any], schema: Optional[RecordSchema] = None) -> Any:
        """Materialize a record instance from validated, schema-named values."""
        schema = schema or self.schema
        attributes = self.attributes
        kwargs: Dict[str, Any] = {}
        for item in schema.fields:
            value = values.get(item.name)
            if value is not None and item.type.kind is FieldKind.enum:
                enum_type = self.enum_types.get(item.type.name or "")
                if enum_type is not None:
                    value = enum_type(value)
            kwargs[attributes[item.name]] = value
        return self.record_type(**kwargs)

    def check_invariants(self, values: Mapping[str, Any]) -> None:
        for invariant in self.invariants:
            invariant(values)


def _check_sensor_output(values: Mapping[str, Any]) -> None:
    record = SensorOutput.__name__
    window_start = values.get("windowStart")
    window_end = values.get("windowEnd")
    if window_start is not None and window_end is not None and window_start > window_end:
        raise ValidationError(
            "windowStart must not be after windowEnd",
            record=record,
            field="windowStart",
            expected=f"<= {window_end}",
            actual=window_start,
        )

    sensor_count = values.get("sensorCount")
    if sensor_count is None:
        return
    if sensor_count < 0:
        raise ValidationError(
            "sensorCount must not be negative",
            record=record,
            field="sensorCount",
            expected=">= 0",
            actual=sensor_count,
        )
    if sensor_count == 0:
        return

    minimum = values.get("minTemperature")
    average = values.get("averageTemperature")
    maximum = values.get("maxTemperature")
    if None in (minimum, average, maximum):
        return
    if not minimum <= average <= maximum:
        raise ValidationError(
            "temperatures must satisfy min <= average <= max",
            record=record,
            field="averageTemperature",
            expected=f"between {minimum} and {maximum}",
            actual=average,
        )


@lru_cache
def default_bindings() -> Tuple[RecordBinding, ...]:
    return (
        RecordBinding(
            record_type=SensorData,
            destination="sensor-raw-data",
            history=(load_definition("sensor_data.v1.avsc"),),
            enum_types={"SensorStatus": SensorStatus},
        ),
        RecordBinding(
            record_type=SensorOutput,
            destination="aggregated-sensor-metrics",
            history=(
                load_definition("sensor_output.v1.avsc"),
                load_definition("sensor_output.v2.avsc"),
            ),
            invariants=(_check_sensor_output,),
        ),
        RecordBinding(
            record_type=AlertEvent,
            destination="sensor-alerts",
            history=(load_definition("alert_event.v1.avsc"),),
            enum_types={"AlertSeverity": AlertSeverity},
        ),
    )


def binding_for(record_type: Type[Any]) -> RecordBinding:
    for binding in default_bindings():
        if binding.record_type is record_type:
            return binding
    raise ValidationError(
        "Type is not part of the schema catalog",
        record=getattr(record_type, "__name__", repr(record_type)),
    )
