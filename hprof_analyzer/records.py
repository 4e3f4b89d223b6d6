"""HPROF record structures.

References for the binary layout:
- the HPROF agent manual shipped with the OpenJDK 6/7 jvmti demos
- hprof_b_spec.h from the OpenJDK 8 demos
- services/heapDumper.cpp in current OpenJDK sources
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import List, Union


# ============================================================================
# CONSTANTS
# ============================================================================

HEADER_FORMAT_LENGTH = 19
HEADER_SIZE = HEADER_FORMAT_LENGTH + 3 * 4
ENVELOPE_SIZE = 1 + 4 + 4

# StackFrameRecord.line_num sentinels
UNKNOWN_LOCATION = -1
COMPILED_METHOD = -2
NATIVE_METHOD = -3


class RecordTag(IntEnum):
    """Top-level record tags."""
    UTF8_STRING = 0x01
    LOAD_CLASS = 0x02
    UNLOAD_CLASS = 0x03
    STACK_FRAME = 0x04
    STACK_TRACE = 0x05
    ALLOC_SITES = 0x06
    HEAP_SUMMARY = 0x07
    START_THREAD = 0x0A
    END_THREAD = 0x0B
    HEAP_DUMP = 0x0C
    CPU_SAMPLES = 0x0D
    CONTROL_SETTINGS = 0x0E

    # 1.0.2
    HEAP_DUMP_SEGMENT = 0x1C
    HEAP_DUMP_END = 0x2C

    @property
    def label(self) -> str:
        """CamelCase name, e.g. HEAP_DUMP -> HeapDump."""
        return "".join(part.capitalize() for part in self.name.split("_"))


# Tags whose bodies are decoded and tallied by the stream driver
COUNTED_TAGS = (
    RecordTag.UTF8_STRING,
    RecordTag.LOAD_CLASS,
    RecordTag.UNLOAD_CLASS,
    RecordTag.STACK_FRAME,
    RecordTag.STACK_TRACE,
)


# ============================================================================
# HEADER / ENVELOPE
# ============================================================================

@dataclass(frozen=True)
class Header:
    """File preamble."""
    format: str  # e.g. "JAVA PROFILE 1.0.2"
    identifier_size: int
    high_word_ms: int
    low_word_ms: int

    @property
    def timestamp_ms(self) -> int:
        return (self.high_word_ms << 32) | self.low_word_ms

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp_ms / 1000.0, tz=timezone.utc)


@dataclass
class RecordEnvelope:
    """Tag/time/length prefix of every record."""
    tag: RecordTag
    time: int  # ms since the header timestamp
    length: int  # payload bytes following the envelope
    offset: int = 0  # file offset of the tag byte


# ============================================================================
# RECORD BODIES
# ============================================================================

@dataclass
class Utf8StringRecord:
    identifier: int
    value: str


@dataclass
class LoadClassRecord:
    serial_num: int
    object_id: int
    strace_num: int
    strname_id: int  # string id of the slash-separated class name


@dataclass
class UnloadClassRecord:
    serial_num: int


@dataclass
class StackFrameRecord:
    frame_id: int
    method_name_id: int
    method_sign_id: int
    source_name_id: int  # 0 when there is no source file
    class_serial_num: int
    line_num: int


@dataclass
class StackTraceRecord:
    serial_num: int
    thread_serial_num: int
    nframes: int
    frame_ids: List[int] = field(default_factory=list)


@dataclass
class UnparsedRecord:
    """A known tag whose payload has no body decoder.

    The payload is left unread; the driver decides whether to skip it or
    stop the stream.
    """
    tag: RecordTag
    length: int


RecordBody = Union[
    Utf8StringRecord,
    LoadClassRecord,
    UnloadClassRecord,
    StackFrameRecord,
    StackTraceRecord,
    UnparsedRecord,
]


@dataclass
class Record:
    """One decoded record: its envelope plus the decoded body."""
    envelope: RecordEnvelope
    body: RecordBody

    @property
    def tag(self) -> RecordTag:
        return self.envelope.tag

    @property
    def is_counted(self) -> bool:
        return self.envelope.tag in COUNTED_TAGS
