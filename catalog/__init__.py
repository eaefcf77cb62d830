"""Schema catalog for sensor telemetry, aggregated metrics and alert events."""

from catalog.bindings import RecordBinding, default_bindings
from catalog.builder import RecordBuilder, build
from catalog.serializer import Registration, SchemaCatalog, build_default_catalog

__all__ = [
    "RecordBinding",
    "RecordBuilder",
    "Registration",
    "SchemaCatalog",
    "build",
    "build_default_catalog",
    "default_bindings",
]
