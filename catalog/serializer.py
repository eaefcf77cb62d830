"""Encode and decode catalog records in the registry's wire framing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from catalog.bindings import RecordBinding, default_bindings
from catalog.builder import RecordBuilder
from catalog.codec import frame, read_record, unframe, write_record
from catalog.resolution import resolve
from catalog.validation import validate_fields
from errors import SchemaMismatchError, ValidationError
from models.schema import CompatibilityReport, RecordSchema
from registry.cache import SchemaCache
from registry.client import build_default_registry_client
from settings import SUBJECT_STRATEGIES, get_settings

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class Registration:
    record: str
    subject: str
    version: int
    schema_id: int


class SchemaCatalog:
    """The fixed set of record bindings plus the registry plumbing they need.

    ``registry`` is anything exposing ``register``, ``find_id``, ``lookup``
    and ``check_compatibility`` (see :class:`registry.client.RegistryClient`).
    The cache is owned by the caller; pass one in to share it between
    catalogs or to persist it.
    """

    def __init__(
        self,
        registry: Any,
        cache: Optional[SchemaCache] = None,
        bindings: Optional[Iterable[RecordBinding]] = None,
        auto_register: bool = True,
        subject_strategy: str = "record",
    ) -> None:
        if subject_strategy not in SUBJECT_STRATEGIES:
            raise ValueError(
                f"Unknown subject strategy {subject_strategy!r}; expected one of {SUBJECT_STRATEGIES}"
            )
        self.registry = registry
        self.cache = cache if cache is not None else SchemaCache()
        self.auto_register = auto_register
        self.subject_strategy = subject_strategy
        self.bindings = tuple(bindings) if bindings is not None else default_bindings()
        self._by_type = {binding.record_type: binding for binding in self.bindings}
        self._by_name = {binding.schema.full_name: binding for binding in self.bindings}
        self._by_destination = {binding.destination: binding for binding in self.bindings}

    def close(self) -> None:
        close = getattr(self.registry, "close", None)
        if close is not None:
            close()

    def binding_for(self, record_type: Type[Any]) -> RecordBinding:
        binding = self._by_type.get(record_type)
        if binding is None:
            raise ValidationError(
                "Type is not part of the schema catalog",
                record=getattr(record_type, "__name__", repr(record_type)),
            )
        return binding

    def binding_for_destination(self, destination: str) -> RecordBinding:
        try:
            return self._by_destination[destination]
        except KeyError:
            raise KeyError(f"No record type is bound to destination {destination!r}.") from None

    def destination_for(self, record_type: Type[Any]) -> str:
        return self.binding_for(record_type).destination

    def subject_for(self, binding: RecordBinding) -> str:
        if self.subject_strategy == "topic":
            return f"{binding.destination}-value"
        return binding.schema.full_name

    def build(self, record_type: Type[RecordT], **fields: Any) -> RecordT:
        builder: RecordBuilder[RecordT] = RecordBuilder(record_type, self.binding_for(record_type))
        for name, value in fields.items():
            builder.set(name, value)
        return builder.build()

    def encode(self, value: Any, version: Optional[int] = None) -> bytes:
        """Validate ``value`` and frame it with the id of its writer schema.

        ``version`` pins an older schema revision as the writer schema.
        """
        binding = self.binding_for(type(value))
        schema = binding.schema_version(version)
        values = binding.to_fields(value)
        for name in list(values):
            if schema.field(name) is not None:
                continue
            if values[name] is not None:
                raise ValidationError(
                    f"Field is not part of schema version {schema.version}",
                    record=binding.name,
                    field=name,
                )
            del values[name]

        normalized = validate_fields(schema, values, record=binding.name)
        binding.check_invariants(normalized)
        schema_id = self.schema_id_for(binding, schema)
        return frame(schema_id, write_record(schema, normalized))

    def decode(self, data: bytes, record_type: Optional[Type[RecordT]] = None) -> RecordT:
        """Decode a framed message into the reader's record type."""
        schema_id, payload = unframe(data)
        writer = self.writer_schema(schema_id)

        if record_type is not None:
            binding = self.binding_for(record_type)
            if binding.schema.full_name != writer.full_name:
                raise SchemaMismatchError(
                    f"Message was written as {writer.full_name}, not {binding.schema.full_name}",
                    schema_id=schema_id,
                )
        else:
            binding = self._by_name.get(writer.full_name)
            if binding is None:
                raise SchemaMismatchError(
                    f"No reader schema is bound to {writer.full_name}",
                    schema_id=schema_id,
                )

        written = read_record(writer, payload)
        resolved = resolve(writer, binding.schema, written, schema_id=schema_id)
        return binding.from_fields(resolved, binding.schema)

    def schema_id_for(self, binding: RecordBinding, schema: Optional[RecordSchema] = None) -> int:
        schema = schema or binding.schema
        subject = self.subject_for(binding)
        fetch = self.registry.register if self.auto_register else self.registry.find_id
        return self.cache.id_or_fetch(subject, schema, fetch)

    def writer_schema(self, schema_id: int) -> RecordSchema:
        return self.cache.get_or_fetch(schema_id, self.registry.lookup)

    def register_all(self, record_types: Optional[Iterable[Type[Any]]] = None) -> List[Registration]:
        """Register every revision of the selected records, oldest first."""
        registrations: List[Registration] = []
        for binding in self._select(record_types):
            subject = self.subject_for(binding)
            for schema in binding.history:
                schema_id = self.registry.register(subject, schema)
                self.cache.put_id(subject, schema, schema_id)
                registrations.append(
                    Registration(
                        record=binding.name,
                        subject=subject,
                        version=schema.version,
                        schema_id=schema_id,
                    )
                )
        return registrations

    def check_all(
        self, record_types: Optional[Iterable[Type[Any]]] = None
    ) -> Dict[str, CompatibilityReport]:
        """Ask the registry whether each latest schema is compatible with its subject."""
        reports: Dict[str, CompatibilityReport] = {}
        for binding in self._select(record_types):
            subject = self.subject_for(binding)
            report = self.registry.check_compatibility(subject, binding.schema)
            if not report.compatible:
                logger.warning(
                    "Schema is incompatible with the registered versions",
                    extra={"record": binding.name, "subject": subject},
                )
            reports[binding.name] = report
        return reports

    def _select(self, record_types: Optional[Iterable[Type[Any]]]) -> List[RecordBinding]:
        if record_types is None:
            return list(self.bindings)
        return [self.binding_for(record_type) for record_type in record_types]


def build_default_catalog(
    registry_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> SchemaCatalog:
    """Factory that wires a catalog, its registry client and cache from settings.

    The caller owns the returned catalog and should ``close()`` it.
    """
    settings = get_settings()
    cache_path = Path(settings.cache_path) if settings.cache_path else None
    return SchemaCatalog(
        registry=build_default_registry_client(base_url=registry_url, timeout=timeout),
        cache=SchemaCache(persistence_path=cache_path),
        auto_register=settings.auto_register,
        subject_strategy=settings.subject_strategy,
    )
