"""Record types exchanged through the messaging system."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class SensorStatus(str, Enum):
    """Operational state reported by a sensor."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    ERROR = "ERROR"
    MAINTENANCE = "MAINTENANCE"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True, slots=True)
class SensorData:
    """A raw reading published by a single sensor."""

    sensor_id: str
    equipment_id: str
    timestamp: int
    temperature: float
    unit: str
    location: str
    status: SensorStatus
    pressure: Optional[float] = None
    metadata: Optional[Dict[str, str]] = None


@dataclass(frozen=True, slots=True)
class SensorOutput:
    """Per-equipment temperature metrics aggregated over a time window."""

    equipment_id: str
    window_start: int
    window_end: int
    average_temperature: float
    max_temperature: float
    min_temperature: float
    sensor_count: int
    unit: str
    location: str
    processing_time: int
    anomaly_score: Optional[float] = None


@dataclass(frozen=True, slots=True)
class AlertEvent:
    """A threshold breach raised for a sensor."""

    alert_id: str
    sensor_id: str
    equipment_id: str
    timestamp: int
    temperature: float
    threshold: float
    severity: AlertSeverity
    message: str
    location: str
    acknowledged: bool = False
