from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from catalog.serializer import SchemaCatalog
from cli.app import app
from models.records import SensorData, SensorStatus


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_catalog(monkeypatch, catalog: SchemaCatalog) -> None:
    def factory(config):
        return catalog

    monkeypatch.setattr("cli.app.build_catalog", factory)
    monkeypatch.setattr("cli.app.configure_logging", lambda: None)


def test_list_shows_destinations(monkeypatch, runner: CliRunner, catalog, registry) -> None:
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "SensorData: destination=sensor-raw-data" in result.stdout
    assert "SensorOutput: destination=aggregated-sensor-metrics" in result.stdout
    assert "versions=[1, 2]" in result.stdout
    assert registry.closed is True


def test_show_prints_a_pinned_revision(monkeypatch, runner: CliRunner, catalog) -> None:
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["show", "aggregated-sensor-metrics", "--version", "1"])

    assert result.exit_code == 0
    definition = json.loads(result.stdout)
    assert definition["version"] == 1
    assert "anomalyScore" not in [field["name"] for field in definition["fields"]]


def test_show_unknown_record(monkeypatch, runner: CliRunner, catalog) -> None:
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["show", "Humidity"])

    assert result.exit_code != 0


def test_register_all(monkeypatch, runner: CliRunner, catalog, registry) -> None:
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["register"])

    assert result.exit_code == 0
    assert "SensorOutput v2: subject=sensors.telemetry.SensorOutput id=3" in result.stdout
    assert sorted(registry.subjects) == [
        "sensors.telemetry.AlertEvent",
        "sensors.telemetry.SensorData",
        "sensors.telemetry.SensorOutput",
    ]


def test_register_single_record(monkeypatch, runner: CliRunner, catalog, registry) -> None:
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["register", "SensorData"])

    assert result.exit_code == 0
    assert list(registry.subjects) == ["sensors.telemetry.SensorData"]


def test_register_when_registry_is_down(monkeypatch, runner: CliRunner, catalog, registry) -> None:
    registry.unavailable = True
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["register"])

    assert result.exit_code == 1
    assert "RegistryUnavailableError" in result.output
    assert registry.closed is True


def test_check_fails_on_incompatible_schema(monkeypatch, runner: CliRunner, catalog, registry) -> None:
    registry.incompatible["sensors.telemetry.SensorData"] = ["status: symbol removed"]
    _install_catalog(monkeypatch, catalog)

    result = runner.invoke(app, ["check"])

    assert result.exit_code == 1
    assert "SensorData: INCOMPATIBLE" in result.stdout
    assert "status: symbol removed" in result.stdout
    assert "AlertEvent: compatible" in result.stdout


def test_decode_hex_message(monkeypatch, runner: CliRunner, catalog, tmp_path) -> None:
    _install_catalog(monkeypatch, catalog)
    encoded = catalog.encode(
        SensorData(
            sensor_id="sensor-001",
            equipment_id="boiler-a",
            timestamp=1700000000,
            temperature=75.5,
            unit="Celsius",
            location="Plant-A",
            status=SensorStatus.ONLINE,
        )
    )
    message = tmp_path / "message.hex"
    message.write_text(encoded.hex())

    result = runner.invoke(app, ["decode", str(message), "--hex"])

    assert result.exit_code == 0
    assert "sensor_id: sensor-001" in result.stdout
    assert "status: ONLINE" in result.stdout
    assert "pressure: (absent)" in result.stdout


def test_decode_malformed_message(monkeypatch, runner: CliRunner, catalog, tmp_path) -> None:
    _install_catalog(monkeypatch, catalog)
    message = tmp_path / "message.bin"
    message.write_bytes(b"\x07garbage")

    result = runner.invoke(app, ["decode", str(message)])

    assert result.exit_code == 1
    assert "MalformedMessageError" in result.output
