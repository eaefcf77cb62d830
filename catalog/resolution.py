"""Reconcile values decoded with a writer schema against a reader schema."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from errors import SchemaMismatchError
from models.schema import FieldKind, FieldSchema, FieldType, RecordSchema


def resolve(
    writer: RecordSchema,
    reader: RecordSchema,
    values: Mapping[str, Any],
    schema_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Project writer values onto the reader's fields.

    Reader fields missing from the writer take the reader default (optional
    fields fall back to absent). Writer-only fields are dropped. The only
    implicit conversion is ``long`` to ``double``.
    """
    resolved: Dict[str, Any] = {}
    for field in reader.fields:
        written = writer.field(field.name)
        if written is not None:
            _check_field(written, field, schema_id)
            resolved[field.name] = _resolve_value(
                written.type, field.type, values.get(field.name), field.name, schema_id
            )
        elif field.has_default:
            resolved[field.name] = field.default
        elif field.optional:
            resolved[field.name] = None
        else:
            raise SchemaMismatchError(
                f"Writer schema {writer.full_name} v{writer.version} has no value for required "
                f"field and the reader declares no default",
                field=field.name,
                schema_id=schema_id,
            )
    return resolved


def _check_field(written: FieldSchema, field: FieldSchema, schema_id: Optional[int]) -> None:
    if written.optional and not field.optional:
        raise SchemaMismatchError(
            "Writer declares the field optional but the reader requires it",
            field=field.name,
            schema_id=schema_id,
        )
    if not _types_compatible(written.type, field.type):
        raise SchemaMismatchError(
            f"Cannot read {written.type.describe()} as {field.type.describe()}",
            field=field.name,
            schema_id=schema_id,
        )


def _types_compatible(written: FieldType, wanted: FieldType) -> bool:
    if written.kind is FieldKind.long and wanted.kind is FieldKind.double:
        return True
    if written.kind is not wanted.kind:
        return False
    if written.kind is FieldKind.map:
        assert written.values is not None and wanted.values is not None
        return _types_compatible(written.values, wanted.values)
    return True


def _resolve_value(
    written: FieldType,
    wanted: FieldType,
    value: Any,
    field_name: str,
    schema_id: Optional[int],
) -> Any:
    if value is None:
        return None
    if written.kind is FieldKind.long and wanted.kind is FieldKind.double:
        return float(value)
    if wanted.kind is FieldKind.enum and value not in wanted.symbols:
        raise SchemaMismatchError(
            f"Enum symbol {value!r} is not declared by the reader's {wanted.name}",
            field=field_name,
            schema_id=schema_id,
        )
    if wanted.kind is FieldKind.map:
        assert written.values is not None and wanted.values is not None
        return {
            key: _resolve_value(written.values, wanted.values, item, field_name, schema_id)
            for key, item in value.items()
        }
    return value
