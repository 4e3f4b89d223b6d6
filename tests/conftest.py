"""
Test Configuration
==================

Pytest fixtures for building HPROF byte streams in memory.
"""

import io
import struct

import pytest

from hprof_analyzer.records import HEADER_FORMAT_LENGTH, RecordTag


_ID_FORMATS = {1: ">B", 2: ">H", 4: ">I", 8: ">Q"}


class HprofBuilder:
    """Assembles a dump byte by byte, one record at a time."""

    def __init__(self, id_size=8, format_text="JAVA PROFILE 1.0.1",
                 high_word_ms=0, low_word_ms=0, declared_id_size=None):
        self.id_size = id_size
        self.format_text = format_text
        self.high_word_ms = high_word_ms
        self.low_word_ms = low_word_ms
        self.declared_id_size = id_size if declared_id_size is None else declared_id_size
        self.records = []

    def header(self):
        text = self.format_text.encode("utf-8").ljust(HEADER_FORMAT_LENGTH, b"\x00")
        return text[:HEADER_FORMAT_LENGTH] + struct.pack(
            ">III", self.declared_id_size, self.high_word_ms, self.low_word_ms
        )

    def ident(self, value):
        return struct.pack(_ID_FORMATS[self.id_size], value)

    def record(self, tag, body, time=0, length=None):
        if length is None:
            length = len(body)
        self.records.append(struct.pack(">BII", int(tag), time, length) + body)
        return self

    def string(self, identifier, text):
        if isinstance(text, str):
            text = text.encode("utf-8")
        return self.record(RecordTag.UTF8_STRING, self.ident(identifier) + text)

    def load_class(self, serial_num, strname_id, object_id=0x1000, strace_num=0):
        body = (struct.pack(">I", serial_num) + self.ident(object_id)
                + struct.pack(">I", strace_num) + self.ident(strname_id))
        return self.record(RecordTag.LOAD_CLASS, body)

    def unload_class(self, serial_num):
        return self.record(RecordTag.UNLOAD_CLASS, struct.pack(">I", serial_num))

    def stack_frame(self, frame_id, method_name_id, class_serial_num, line_num,
                    source_name_id=0, method_sign_id=0):
        body = (self.ident(frame_id) + self.ident(method_name_id)
                + self.ident(method_sign_id) + self.ident(source_name_id)
                + struct.pack(">Ii", class_serial_num, line_num))
        return self.record(RecordTag.STACK_FRAME, body)

    def stack_trace(self, serial_num, thread_serial_num, frame_ids):
        body = struct.pack(">III", serial_num, thread_serial_num, len(frame_ids))
        body += b"".join(self.ident(frame_id) for frame_id in frame_ids)
        return self.record(RecordTag.STACK_TRACE, body)

    def build(self):
        return self.header() + b"".join(self.records)

    def stream(self):
        return io.BytesIO(self.build())


@pytest.fixture
def hprof():
    """A fresh builder using 8 byte identifiers."""
    return HprofBuilder()


@pytest.fixture
def builder_class():
    return HprofBuilder


@pytest.fixture
def scenario_a():
    """One string, class, frame and trace: Main.Main() at an unknown location."""
    builder = HprofBuilder()
    builder.string(1, "Main")
    builder.load_class(serial_num=1, strname_id=1)
    builder.stack_frame(frame_id=1, method_name_id=1, class_serial_num=1,
                        line_num=-1, source_name_id=0)
    builder.stack_trace(serial_num=1, thread_serial_num=1, frame_ids=[1])
    return builder


@pytest.fixture(autouse=True)
def clean_hprof_env(monkeypatch):
    """Keep HPROF_* settings from the developer's shell out of the tests."""
    for name in ("HPROF_ID_SIZE", "HPROF_UNPARSED_TAGS", "HPROF_LENIENT",
                 "HPROF_VERIFY_LENGTHS", "HPROF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
