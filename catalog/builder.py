"""Validating builders for catalog records."""

from __future__ import annotations

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from catalog.bindings import RecordBinding, binding_for
from catalog.validation import validate_fields
from errors import ValidationError

RecordT = TypeVar("RecordT")


class RecordBuilder(Generic[RecordT]):
    """Collects fields one at a time and validates them on ``build()``."""

    def __init__(self, record_type: Type[RecordT], binding: Optional[RecordBinding] = None) -> None:
        self.binding = binding or binding_for(record_type)
        self._values: Dict[str, Any] = {}
        self._schema_names = {attribute: name for name, attribute in self.binding.attributes.items()}

    def set(self, name: str, value: Any) -> "RecordBuilder[RecordT]":
        schema_name = self._schema_names.get(name)
        if schema_name is None:
            raise ValidationError("Unknown field", record=self.binding.name, field=name)
        self._values[schema_name] = value
        return self

    def build(self) -> RecordT:
        schema = self.binding.schema
        values = validate_fields(schema, self._values, record=self.binding.name)
        self.binding.check_invariants(values)
        return self.binding.from_fields(values, schema)


def build(record_type: Type[RecordT], **fields: Any) -> RecordT:
    """Build a validated record from keyword fields.

    Raises :class:`errors.ValidationError` naming the first offending field.
    """
    builder = RecordBuilder(record_type)
    for name, value in fields.items():
        builder.set(name, value)
    return builder.build()
