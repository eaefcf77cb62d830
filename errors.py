"""Error kinds raised by the schema catalog and the registry client."""

from __future__ import annotations

from typing import Any, Optional, Sequence


class SchemaCatalogError(Exception):
    """Base class for every catalog failure."""

    retryable = False


class ValidationError(SchemaCatalogError, ValueError):
    """A record value is missing a required field or carries a wrongly typed one."""

    def __init__(
        self,
        message: str,
        *,
        record: Optional[str] = None,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Any = None,
    ) -> None:
        self.record = record
        self.field = field
        self.expected = expected
        self.actual = actual
        parts = [message]
        if record:
            parts.append(f"record={record}")
        if field:
            parts.append(f"field={field}")
        if expected:
            parts.append(f"expected={expected}")
        if actual is not None:
            parts.append(f"actual={actual}")
        super().__init__(" | ".join(parts))


class MalformedMessageError(SchemaCatalogError, ValueError):
    """Wire bytes could not be parsed."""


class SchemaMismatchError(SchemaCatalogError):
    """Writer and reader schemas cannot be reconciled."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        schema_id: Optional[int] = None,
        violations: Sequence[str] = (),
    ) -> None:
        self.field = field
        self.schema_id = schema_id
        self.violations = list(violations)
        parts = [message]
        if field:
            parts.append(f"field={field}")
        if schema_id is not None:
            parts.append(f"schema_id={schema_id}")
        super().__init__(" | ".join(parts))


class SchemaDefinitionError(SchemaCatalogError, ValueError):
    """A schema definition is malformed or uses an unsupported type."""


class UnknownSchemaError(SchemaCatalogError, KeyError):
    """The registry does not know the requested schema identifier."""

    def __init__(self, schema_id: int) -> None:
        self.schema_id = schema_id
        super().__init__(f"Schema id {schema_id} is not known to the registry.")

    def __str__(self) -> str:
        return str(self.args[0])


class RegistryError(SchemaCatalogError):
    """The registry answered with a response the client cannot use."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RegistryUnavailableError(RegistryError):
    """Transient registry failure; safe to retry with backoff."""

    retryable = True
