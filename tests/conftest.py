from __future__ import annotations

from threading import Lock
from typing import Dict, Iterator, List

import pytest

from catalog.serializer import SchemaCatalog
from errors import RegistryError, RegistryUnavailableError, UnknownSchemaError
from models.schema import CompatibilityReport, RecordSchema
from registry.cache import SchemaCache
from settings import get_settings


class FakeRegistry:
    """In-memory stand-in for the schema registry used by catalog tests."""

    def __init__(self) -> None:
        self.schemas: Dict[int, str] = {}
        self.subjects: Dict[str, List[int]] = {}
        self.incompatible: Dict[str, List[str]] = {}
        self.unavailable = False
        self.register_calls: List[str] = []
        self.lookup_calls: List[int] = []
        self.closed = False
        self._lock = Lock()

    def _check_available(self) -> None:
        if self.unavailable:
            raise RegistryUnavailableError("registry is down", status_code=503)

    def register(self, subject: str, schema: RecordSchema) -> int:
        self._check_available()
        text = schema.canonical_json()
        with self._lock:
            self.register_calls.append(subject)
            schema_id = next(
                (existing_id for existing_id, existing in self.schemas.items() if existing == text),
                None,
            )
            if schema_id is None:
                schema_id = len(self.schemas) + 1
                self.schemas[schema_id] = text
            versions = self.subjects.setdefault(subject, [])
            if schema_id not in versions:
                versions.append(schema_id)
            return schema_id

    def find_id(self, subject: str, schema: RecordSchema) -> int:
        self._check_available()
        text = schema.canonical_json()
        for schema_id in self.subjects.get(subject, []):
            if self.schemas[schema_id] == text:
                return schema_id
        raise RegistryError(f"{schema.full_name} is not registered under {subject}", status_code=404)

    def lookup(self, schema_id: int) -> RecordSchema:
        self._check_available()
        with self._lock:
            self.lookup_calls.append(schema_id)
            text = self.schemas.get(schema_id)
        if text is None:
            raise UnknownSchemaError(schema_id)
        return RecordSchema.from_avro(text)

    def check_compatibility(self, subject: str, schema: RecordSchema) -> CompatibilityReport:
        self._check_available()
        violations = self.incompatible.get(subject, [])
        return CompatibilityReport(compatible=not violations, violations=violations)

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture()
def catalog(registry: FakeRegistry) -> SchemaCatalog:
    return SchemaCatalog(registry=registry, cache=SchemaCache())


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
