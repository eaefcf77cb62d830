"""Unit tests for validating record builders."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from catalog.builder import RecordBuilder, build
from errors import ValidationError
from models.records import AlertEvent, AlertSeverity, SensorData, SensorOutput, SensorStatus

_VALID: Dict[type, Dict[str, Any]] = {
    SensorData: dict(
        sensor_id="sensor-001",
        equipment_id="boiler-a",
        timestamp=1700000000,
        temperature=75.5,
        unit="Celsius",
        location="Plant-A",
        status=SensorStatus.ONLINE,
    ),
    SensorOutput: dict(
        equipment_id="boiler-a",
        window_start=1000,
        window_end=2000,
        average_temperature=20.0,
        max_temperature=25.0,
        min_temperature=15.0,
        sensor_count=4,
        unit="Celsius",
        location="Plant-A",
        processing_time=2100,
    ),
    AlertEvent: dict(
        alert_id="alert-1",
        sensor_id="sensor-001",
        equipment_id="boiler-a",
        timestamp=1700000000,
        temperature=101.0,
        threshold=100.0,
        severity=AlertSeverity.HIGH,
        message="too hot",
        location="Plant-A",
    ),
}

_REQUIRED = [
    (SensorData, "sensor_id", "sensorId"),
    (SensorData, "equipment_id", "equipmentId"),
    (SensorData, "timestamp", "timestamp"),
    (SensorData, "temperature", "temperature"),
    (SensorData, "unit", "unit"),
    (SensorData, "location", "location"),
    (SensorData, "status", "status"),
    (SensorOutput, "equipment_id", "equipmentId"),
    (SensorOutput, "window_start", "windowStart"),
    (SensorOutput, "window_end", "windowEnd"),
    (SensorOutput, "average_temperature", "averageTemperature"),
    (SensorOutput, "sensor_count", "sensorCount"),
    (SensorOutput, "processing_time", "processingTime"),
    (AlertEvent, "alert_id", "alertId"),
    (AlertEvent, "severity", "severity"),
    (AlertEvent, "message", "message"),
    (AlertEvent, "threshold", "threshold"),
]


def _fields(record_type: type, **overrides: Any) -> Dict[str, Any]:
    fields = dict(_VALID[record_type])
    fields.update(overrides)
    return fields


@pytest.mark.parametrize("record_type", [SensorData, SensorOutput, AlertEvent])
def test_build_accepts_complete_fields(record_type: type) -> None:
    value = build(record_type, **_fields(record_type))

    assert isinstance(value, record_type)


@pytest.mark.parametrize(("record_type", "attribute", "schema_name"), _REQUIRED)
def test_build_rejects_missing_required_field(record_type: type, attribute: str, schema_name: str) -> None:
    fields = _fields(record_type)
    del fields[attribute]

    with pytest.raises(ValidationError) as excinfo:
        build(record_type, **fields)

    assert excinfo.value.field == schema_name
    assert excinfo.value.record == record_type.__name__


def test_build_fills_declared_defaults() -> None:
    alert = build(AlertEvent, **_fields(AlertEvent))
    data = build(SensorData, **_fields(SensorData))
    output = build(SensorOutput, **_fields(SensorOutput))

    assert alert.acknowledged is False
    assert data.pressure is None
    assert data.metadata is None
    assert output.anomaly_score is None


def test_build_accepts_enum_symbols_by_name() -> None:
    data = build(SensorData, **_fields(SensorData, status="MAINTENANCE"))

    assert data.status is SensorStatus.MAINTENANCE


def test_build_rejects_undeclared_enum_symbol() -> None:
    with pytest.raises(ValidationError) as excinfo:
        build(SensorData, **_fields(SensorData, status="BROKEN"))

    assert excinfo.value.field == "status"
    assert excinfo.value.actual == "BROKEN"


def test_build_rejects_enum_of_another_record() -> None:
    with pytest.raises(ValidationError):
        build(SensorData, **_fields(SensorData, status=AlertSeverity.LOW))


def test_build_promotes_integers_to_doubles() -> None:
    data = build(SensorData, **_fields(SensorData, temperature=75))

    assert data.temperature == 75.0
    assert isinstance(data.temperature, float)


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"timestamp": "yesterday"}, "timestamp"),
        ({"timestamp": 1.5}, "timestamp"),
        ({"temperature": True}, "temperature"),
        ({"pressure": "high"}, "pressure"),
        ({"metadata": {"zone": 3}}, "metadata[zone]"),
        ({"metadata": ["zone"]}, "metadata"),
    ],
)
def test_build_rejects_wrong_types(overrides: Dict[str, Any], field: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        build(SensorData, **_fields(SensorData, **overrides))

    assert excinfo.value.field == field


def test_build_rejects_booleans_for_int_fields() -> None:
    with pytest.raises(ValidationError) as excinfo:
        build(SensorOutput, **_fields(SensorOutput, sensor_count=True))

    assert excinfo.value.field == "sensorCount"


def test_build_rejects_int32_overflow() -> None:
    with pytest.raises(ValidationError, match="out of range"):
        build(SensorOutput, **_fields(SensorOutput, sensor_count=2**31))


def test_build_keeps_unit_unconstrained() -> None:
    data = build(SensorData, **_fields(SensorData, unit="Kelvin"))

    assert data.unit == "Kelvin"


def test_build_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError) as excinfo:
        build(SensorData, **_fields(SensorData, humidity=40.0))

    assert excinfo.value.field == "humidity"


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"min_temperature": 21.0}, "averageTemperature"),
        ({"max_temperature": 19.0}, "averageTemperature"),
        ({"window_start": 3000}, "windowStart"),
        ({"sensor_count": -1}, "sensorCount"),
    ],
)
def test_build_enforces_sensor_output_invariants(overrides: Dict[str, Any], field: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        build(SensorOutput, **_fields(SensorOutput, **overrides))

    assert excinfo.value.field == field


def test_empty_window_skips_temperature_ordering() -> None:
    output = build(
        SensorOutput,
        **_fields(SensorOutput, sensor_count=0, min_temperature=30.0, max_temperature=10.0),
    )

    assert output.sensor_count == 0


def test_record_builder_collects_fields_one_at_a_time() -> None:
    builder = RecordBuilder(AlertEvent)
    for name, value in _fields(AlertEvent).items():
        builder.set(name, value)
    builder.set("acknowledged", True)

    alert = builder.build()

    assert alert.acknowledged is True
    assert alert.severity is AlertSeverity.HIGH


def test_record_builder_rejects_unknown_names_immediately() -> None:
    builder = RecordBuilder(SensorData)

    with pytest.raises(ValidationError):
        builder.set("sensorId", "camel-case is not an attribute name")


def test_record_builder_reports_first_missing_field() -> None:
    builder = RecordBuilder(SensorData).set("sensor_id", "sensor-001")

    with pytest.raises(ValidationError) as excinfo:
        builder.build()

    assert excinfo.value.field == "equipmentId"
