"""Unit tests for the Avro payload codec and message framing."""

from __future__ import annotations

import struct
from io import BytesIO

import pytest
from fastavro import schemaless_reader, schemaless_writer

from catalog.codec import frame, read_record, unframe, write_record
from errors import MalformedMessageError
from models.schema import RecordSchema


def _schema() -> RecordSchema:
    return RecordSchema.from_avro(
        {
            "type": "record",
            "name": "Gauge",
            "fields": [
                {"name": "name", "type": "string"},
                {"name": "count", "type": "int"},
                {"name": "reading", "type": ["null", "double"], "default": None},
                {
                    "name": "state",
                    "type": {"type": "enum", "name": "State", "symbols": ["UP", "DOWN"]},
                },
            ],
        }
    )


def _labels_schema() -> RecordSchema:
    return RecordSchema.from_avro(
        {
            "type": "record",
            "name": "Labels",
            "fields": [{"name": "labels", "type": {"type": "map", "values": "string"}}],
        }
    )


def test_absent_optional_field_writes_branch_zero() -> None:
    payload = write_record(_schema(), {"name": "x", "count": 3, "reading": None, "state": "DOWN"})

    assert payload == b"\x02x\x06\x00\x02"
    assert read_record(_schema(), payload) == {
        "name": "x",
        "count": 3,
        "reading": None,
        "state": "DOWN",
    }


def test_present_optional_field_writes_zigzag_branch_one() -> None:
    payload = write_record(_schema(), {"name": "", "count": 0, "reading": 1.0, "state": "UP"})

    assert payload == b"\x00\x00\x02" + struct.pack("<d", 1.0) + b"\x00"


def test_payload_matches_a_plain_avro_writer() -> None:
    values = {"name": "boiler", "count": -64, "reading": 75.5, "state": "DOWN"}
    buffer = BytesIO()
    schemaless_writer(buffer, _schema().parsed(), values)

    assert write_record(_schema(), values) == buffer.getvalue()
    assert schemaless_reader(BytesIO(write_record(_schema(), values)), _schema().parsed()) == values


def test_map_is_written_as_a_single_block() -> None:
    assert write_record(_labels_schema(), {"labels": {"a": "b"}}) == b"\x02\x02a\x02b\x00"


def test_map_reader_accepts_sized_blocks() -> None:
    # count -1 (zigzag 0x01), block size 4, then one pair and the terminator
    assert read_record(_labels_schema(), b"\x01\x08\x02a\x02b\x00") == {"labels": {"a": "b"}}


@pytest.mark.parametrize(
    ("payload", "reason"),
    [
        (b"\x02x\x06", "Cannot decode"),
        (b"\x02x\x06\x00\x04", "Cannot decode"),
        (b"\x02\xff\x06\x00\x00", "Cannot decode"),
        (b"\x02x\x06\x00\x00\x00", "trailing"),
    ],
    ids=["truncated", "enum-index-out-of-range", "invalid-utf8", "trailing-bytes"],
)
def test_read_record_rejects_malformed_payloads(payload: bytes, reason: str) -> None:
    with pytest.raises(MalformedMessageError, match=reason):
        read_record(_schema(), payload)


def test_frame_layout() -> None:
    framed = frame(258, b"payload")

    assert framed == b"\x00\x00\x00\x01\x02payload"
    assert unframe(framed) == (258, b"payload")


def test_unframe_rejects_wrong_magic_byte() -> None:
    with pytest.raises(MalformedMessageError, match="magic"):
        unframe(b"\x01\x00\x00\x00\x01")


def test_unframe_rejects_short_messages() -> None:
    with pytest.raises(MalformedMessageError, match="header"):
        unframe(b"\x00\x00\x01")
