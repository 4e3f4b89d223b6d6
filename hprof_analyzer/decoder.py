"""Header, envelope and per-tag body decoding for HPROF streams.

Layout of a dump:

    header   u1[19] format text ("JAVA PROFILE 1.0.x" + NUL)
             u4     identifier size
             u4     timestamp high word (ms)
             u4     timestamp low word (ms)
    record*  u1     tag
             u4     time offset (ms)
             u4     payload length
             u1[n]  tag specific body
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .errors import MalformedRecord, UnknownTag
from .field_reader import FieldReader
from .records import (
    HEADER_FORMAT_LENGTH,
    Header,
    LoadClassRecord,
    Record,
    RecordBody,
    RecordEnvelope,
    RecordTag,
    StackFrameRecord,
    StackTraceRecord,
    UnloadClassRecord,
    UnparsedRecord,
    Utf8StringRecord,
)


logger = logging.getLogger(__name__)


def parse_header(reader: FieldReader) -> Header:
    """Read the fixed 31 byte preamble."""
    raw_format = reader.read_exact(HEADER_FORMAT_LENGTH, "header format")
    identifier_size = reader.read_u4("header identifier size")
    high_word_ms = reader.read_u4("header timestamp high word")
    low_word_ms = reader.read_u4("header timestamp low word")

    return Header(
        format=raw_format.decode("utf-8", errors="replace").rstrip("\x00"),
        identifier_size=identifier_size,
        high_word_ms=high_word_ms,
        low_word_ms=low_word_ms,
    )


def read_envelope(reader: FieldReader) -> Optional[RecordEnvelope]:
    """Read a record envelope, or return None at a clean end of input."""
    offset = reader.position
    tag_byte = reader.read_tag_byte()
    if tag_byte is None:
        return None
    try:
        tag = RecordTag(tag_byte)
    except ValueError:
        raise UnknownTag(tag_byte, offset) from None
    time = reader.read_u4("record time")
    length = reader.read_u4("record length")
    return RecordEnvelope(tag=tag, time=time, length=length, offset=offset)


# ============================================================================
# BODY DECODERS
# ============================================================================

def parse_utf8_string(reader: FieldReader, envelope: RecordEnvelope) -> Utf8StringRecord:
    if envelope.length < reader.id_size:
        raise MalformedRecord(
            f"String record payload of {envelope.length} bytes is shorter "
            f"than its {reader.id_size} byte identifier",
            envelope.offset,
        )
    identifier = reader.read_id("string id")
    value = reader.read_utf8(envelope.length - reader.id_size, "string text")
    return Utf8StringRecord(identifier=identifier, value=value)


def parse_load_class(reader: FieldReader, envelope: RecordEnvelope) -> LoadClassRecord:
    return LoadClassRecord(
        serial_num=reader.read_u4("class serial number"),
        object_id=reader.read_id("class object id"),
        strace_num=reader.read_u4("class stack trace serial number"),
        strname_id=reader.read_id("class name id"),
    )


def parse_unload_class(reader: FieldReader, envelope: RecordEnvelope) -> UnloadClassRecord:
    return UnloadClassRecord(serial_num=reader.read_u4("class serial number"))


def parse_stack_frame(reader: FieldReader, envelope: RecordEnvelope) -> StackFrameRecord:
    return StackFrameRecord(
        frame_id=reader.read_id("frame id"),
        method_name_id=reader.read_id("method name id"),
        method_sign_id=reader.read_id("method signature id"),
        source_name_id=reader.read_id("source file name id"),
        class_serial_num=reader.read_u4("frame class serial number"),
        line_num=reader.read_i4("frame line number"),
    )


def parse_stack_trace(reader: FieldReader, envelope: RecordEnvelope) -> StackTraceRecord:
    serial_num = reader.read_u4("stack trace serial number")
    thread_serial_num = reader.read_u4("thread serial number")
    nframes = reader.read_u4("frame count")
    # Frame count comes from the record itself, not from the payload length
    frame_ids = [reader.read_id("stack trace frame id") for _ in range(nframes)]
    return StackTraceRecord(
        serial_num=serial_num,
        thread_serial_num=thread_serial_num,
        nframes=nframes,
        frame_ids=frame_ids,
    )


BODY_DECODERS: Dict[RecordTag, Callable[[FieldReader, RecordEnvelope], RecordBody]] = {
    RecordTag.UTF8_STRING: parse_utf8_string,
    RecordTag.LOAD_CLASS: parse_load_class,
    RecordTag.UNLOAD_CLASS: parse_unload_class,
    RecordTag.STACK_FRAME: parse_stack_frame,
    RecordTag.STACK_TRACE: parse_stack_trace,
}


def _check_consumed(reader: FieldReader, envelope: RecordEnvelope, consumed: int) -> None:
    if consumed > envelope.length:
        raise MalformedRecord(
            f"{envelope.tag.label} record body used {consumed} bytes but "
            f"declares {envelope.length}",
            envelope.offset,
        )
    if consumed < envelope.length:
        leftover = envelope.length - consumed
        logger.warning(
            "%s record at offset %d declares %d bytes but only %d were decoded; "
            "skipping %d trailing bytes",
            envelope.tag.label, envelope.offset, envelope.length, consumed, leftover,
        )
        reader.skip(leftover, f"{envelope.tag.label} trailing bytes")


def decode_record(reader: FieldReader, verify_lengths: bool = False) -> Optional[Record]:
    """Decode the next record, or return None at the end of input.

    Tags without a body decoder come back as UnparsedRecord with their
    payload still unread.
    """
    envelope = read_envelope(reader)
    if envelope is None:
        return None

    decoder = BODY_DECODERS.get(envelope.tag)
    if decoder is None:
        return Record(envelope, UnparsedRecord(tag=envelope.tag, length=envelope.length))

    start = reader.position
    body = decoder(reader, envelope)
    if verify_lengths:
        _check_consumed(reader, envelope, reader.position - start)

    logger.debug("Decoded %s at offset %d: %r", envelope.tag.label, envelope.offset, body)
    return Record(envelope, body)
