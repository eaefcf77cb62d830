"""Avro payload encoding and message framing.

Message layout::

    [magic byte 0x00][schema id, 4 bytes big-endian][Avro binary payload]

The payload is plain schemaless Avro written against the writer schema, so
any Avro producer or consumer sharing the registry can read it. Optional
fields are ``["null", T]`` unions: the branch index is the presence tag
(``0x00`` absent, ``0x02`` present) ahead of the value.
"""

from __future__ import annotations

import struct
from io import BytesIO
from typing import Any, Dict, Mapping, Tuple

from fastavro import schemaless_reader, schemaless_writer

from errors import MalformedMessageError, ValidationError
from models.schema import RecordSchema

MAGIC_BYTE = 0
HEADER_SIZE = 5

_HEADER = struct.Struct(">BI")

# fastavro reports corrupt input through whichever builtin the failing read hits.
_READ_ERRORS = (EOFError, ValueError, IndexError, KeyError, TypeError, OverflowError, struct.error)


def frame(schema_id: int, payload: bytes) -> bytes:
    return _HEADER.pack(MAGIC_BYTE, schema_id) + payload


def unframe(data: bytes) -> Tuple[int, bytes]:
    """Split a framed message into its schema id and payload."""
    if len(data) < HEADER_SIZE:
        raise MalformedMessageError(
            f"Message is {len(data)} bytes; at least {HEADER_SIZE} are required for the header."
        )
    magic, schema_id = _HEADER.unpack_from(data)
    if magic != MAGIC_BYTE:
        raise MalformedMessageError(f"Unknown magic byte {magic:#04x}; expected {MAGIC_BYTE:#04x}.")
    return schema_id, bytes(data[HEADER_SIZE:])


def write_record(schema: RecordSchema, values: Mapping[str, Any]) -> bytes:
    """Encode already validated values keyed by schema field name."""
    buffer = BytesIO()
    try:
        schemaless_writer(buffer, schema.parsed(), dict(values))
    except (ValueError, TypeError, struct.error) as exc:
        raise ValidationError(
            f"Values do not fit the schema: {exc}",
            record=schema.name,
        ) from exc
    return buffer.getvalue()


def read_record(schema: RecordSchema, payload: bytes) -> Dict[str, Any]:
    """Decode a payload written with ``schema`` into values keyed by field name."""
    buffer = BytesIO(payload)
    try:
        values = schemaless_reader(buffer, schema.parsed())
    except _READ_ERRORS as exc:
        raise MalformedMessageError(
            f"Cannot decode {schema.full_name} payload: {type(exc).__name__}: {exc}"
        ) from exc
    trailing = len(payload) - buffer.tell()
    if trailing:
        raise MalformedMessageError(f"{trailing} trailing bytes after {schema.full_name} payload.")
    if not isinstance(values, dict):
        raise MalformedMessageError(f"{schema.full_name} payload did not decode to a record.")
    return values
