"""Tests for the big-endian field reader."""
import io

import pytest

from hprof_analyzer.errors import MalformedRecord, TruncatedInput
from hprof_analyzer.field_reader import FieldReader


def test_fixed_width_integers():
    data = (b"\x00\x00\x01\x00"
            b"\xff\xff\xff\xfd"
            b"\x01\x02\x03\x04\x05\x06\x07\x08")
    reader = FieldReader(io.BytesIO(data))
    assert reader.read_u4() == 256
    assert reader.read_i4() == -3
    assert reader.read_u8() == 0x0102030405060708
    assert reader.position == 16


def test_unsigned_read_of_negative_pattern():
    reader = FieldReader(io.BytesIO(b"\xff\xff\xff\xfd"))
    assert reader.read_u4() == 0xFFFFFFFD


def test_read_id_follows_configured_width():
    reader = FieldReader(io.BytesIO(b"\x00\x00\x00\x2a" + b"\x00" * 7 + b"\x07"), id_size=4)
    assert reader.read_id() == 42
    reader.set_id_size(8)
    assert reader.read_id() == 7
    assert reader.position == 12


def test_unsupported_id_size():
    reader = FieldReader(io.BytesIO(b""))
    with pytest.raises(MalformedRecord):
        reader.set_id_size(3)


def test_read_utf8_replaces_malformed_bytes():
    reader = FieldReader(io.BytesIO(b"ab\xffcd"))
    assert reader.read_utf8(5) == "ab\ufffdcd"


def test_read_utf8_valid_text_is_unchanged():
    text = "java/lang/Thread é☕"
    encoded = text.encode("utf-8")
    reader = FieldReader(io.BytesIO(encoded))
    assert reader.read_utf8(len(encoded)) == text


def test_short_read_raises_truncated_input():
    reader = FieldReader(io.BytesIO(b"\x00\x01"))
    with pytest.raises(TruncatedInput) as excinfo:
        reader.read_u4("record length")
    assert excinfo.value.expected == 4
    assert excinfo.value.actual == 2
    assert excinfo.value.field_name == "record length"
    assert "record length" in str(excinfo.value)


def test_read_tag_byte_at_end_of_input():
    reader = FieldReader(io.BytesIO(b"\x05"))
    assert reader.read_tag_byte() == 5
    assert reader.read_tag_byte() is None
    assert reader.position == 1


def test_skip_advances_position():
    stream = io.BytesIO(b"\x00" * 10 + b"\x01")
    reader = FieldReader(stream)
    reader.skip(10)
    assert reader.position == 10
    assert reader.read_u1() == 1


def test_skip_past_end_raises():
    reader = FieldReader(io.BytesIO(b"\x00" * 3))
    with pytest.raises(TruncatedInput) as excinfo:
        reader.skip(8, "HeapDump payload")
    assert excinfo.value.actual == 3


def test_skip_larger_than_chunk_size():
    size = 200 * 1024
    reader = FieldReader(io.BytesIO(b"\x00" * size + b"\x09"))
    reader.skip(size)
    assert reader.read_u1() == 9


class _TrickleStream(io.RawIOBase):
    """Returns at most one byte per read call."""

    def __init__(self, data):
        self._data = io.BytesIO(data)

    def readable(self):
        return True

    def read(self, size=-1):
        return self._data.read(1 if size != 0 else 0)


def test_partial_reads_are_completed():
    reader = FieldReader(_TrickleStream(b"\x00\x00\x00\x07"))
    assert reader.read_u4() == 7
