"""Type checks applied to record values before they are built or encoded."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from errors import ValidationError
from models.schema import FieldKind, FieldType, RecordSchema

INT32_RANGE = (-(2**31), 2**31 - 1)
INT64_RANGE = (-(2**63), 2**63 - 1)


def validate_fields(
    schema: RecordSchema,
    values: Mapping[str, Any],
    record: Optional[str] = None,
) -> Dict[str, Any]:
    """Check ``values`` against ``schema`` and return them normalized.

    ``None`` and omitted values are treated alike: optional fields become
    absent, defaulted fields take their default and anything else is reported
    as an unset required field. Enum members are normalized to their symbol.
    """
    record = record or schema.name
    unknown = sorted(set(values) - set(schema.field_names))
    if unknown:
        raise ValidationError("Unknown field", record=record, field=unknown[0])

    normalized: Dict[str, Any] = {}
    for field in schema.fields:
        value = values.get(field.name)
        if value is None:
            if field.optional:
                normalized[field.name] = None
                continue
            if field.has_default:
                value = field.default
            else:
                raise ValidationError(
                    "Required field is unset",
                    record=record,
                    field=field.name,
                    expected=field.describe(),
                )
        normalized[field.name] = check_value(field.type, value, record=record, field=field.name)
    return normalized


def check_value(field_type: FieldType, value: Any, record: str, field: str) -> Any:
    kind = field_type.kind

    def mismatch(expected: Optional[str] = None) -> ValidationError:
        return ValidationError(
            "Field has the wrong type",
            record=record,
            field=field,
            expected=expected or field_type.describe(),
            actual=type(value).__name__,
        )

    if kind is FieldKind.string:
        if not isinstance(value, str):
            raise mismatch()
        return value

    if kind is FieldKind.bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise mismatch()
        return bytes(value)

    if kind in (FieldKind.int, FieldKind.long):
        if isinstance(value, bool) or not isinstance(value, int):
            raise mismatch()
        low, high = INT32_RANGE if kind is FieldKind.int else INT64_RANGE
        if not low <= value <= high:
            raise ValidationError(
                "Integer out of range",
                record=record,
                field=field,
                expected=f"{kind.value} in [{low}, {high}]",
                actual=value,
            )
        return value

    if kind in (FieldKind.float, FieldKind.double):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise mismatch()
        return float(value)

    if kind is FieldKind.boolean:
        if not isinstance(value, bool):
            raise mismatch()
        return value

    if kind is FieldKind.enum:
        symbol = value.value if isinstance(value, Enum) else value
        if not isinstance(symbol, str):
            raise mismatch()
        if symbol not in field_type.symbols:
            raise ValidationError(
                "Value is not a declared enum symbol",
                record=record,
                field=field,
                expected=" | ".join(field_type.symbols),
                actual=symbol,
            )
        return symbol

    if kind is FieldKind.map:
        if not isinstance(value, Mapping):
            raise mismatch()
        assert field_type.values is not None
        checked: Dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValidationError(
                    "Map keys must be strings",
                    record=record,
                    field=field,
                    expected="str",
                    actual=type(key).__name__,
                )
            checked[key] = check_value(field_type.values, item, record=record, field=f"{field}[{key}]")
        return checked

    raise mismatch()  # pragma: no cover - FieldKind is closed
