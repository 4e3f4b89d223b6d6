"""Stream driver: runs the decode loop over one HPROF dump.

The driver owns the symbol tables for its stream. It reads the header once,
then decodes records until the input ends or a record arrives whose tag has
no body decoder. With the default "stop" policy that record terminates the
stream (the HeapDump record normally comes right after the symbol records,
so only the preamble is examined). With the "skip" policy its payload is
skipped and decoding continues to the end of input.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union

from .config import AnalyzerConfig
from .decoder import decode_record, parse_header
from .errors import (
    DanglingReference,
    DumpFileNotFound,
    DumpFileUnreadable,
    TruncatedInput,
)
from .field_reader import FieldReader
from .log import safe_print
from .records import (
    Header,
    Record,
    RecordEnvelope,
    RecordTag,
    StackTraceRecord,
)
from .resolver import ResolvedStackTrace, StackTraceResolver
from .symbols import SymbolTables


logger = logging.getLogger(__name__)


class StreamState(Enum):
    STREAMING = "streaming"
    TERMINATED = "terminated"


@dataclass
class RecordCounts:
    """Running totals for the five decoded record kinds."""
    strings: int = 0
    loads: int = 0
    unloads: int = 0
    frames: int = 0
    traces: int = 0

    _FIELDS = {
        RecordTag.UTF8_STRING: "strings",
        RecordTag.LOAD_CLASS: "loads",
        RecordTag.UNLOAD_CLASS: "unloads",
        RecordTag.STACK_FRAME: "frames",
        RecordTag.STACK_TRACE: "traces",
    }

    def increment(self, tag: RecordTag) -> None:
        name = self._FIELDS[tag]
        setattr(self, name, getattr(self, name) + 1)

    @property
    def total(self) -> int:
        return self.strings + self.loads + self.unloads + self.frames + self.traces

    def summary_line(self) -> str:
        return (
            f"entries: {self.strings} string {self.loads} load "
            f"{self.unloads} unload {self.frames} frame {self.traces} trace"
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "string": self.strings,
            "load": self.loads,
            "unload": self.unloads,
            "frame": self.frames,
            "trace": self.traces,
        }


@dataclass
class HprofAnalysisResult:
    """Results from streaming one dump."""
    file_path: Optional[str] = None
    header: Optional[Header] = None
    counts: RecordCounts = field(default_factory=RecordCounts)

    stack_traces: List[ResolvedStackTrace] = field(default_factory=list)

    # Records seen with no body decoder, in stream order
    unparsed_records: List[RecordEnvelope] = field(default_factory=list)

    # Tag of the record that stopped the stream, None if the input ran out
    terminated_by: Optional[RecordTag] = None
    reached_end: bool = False

    # Recovered errors (lenient mode only)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        header = None
        if self.header is not None:
            header = {
                "format": self.header.format,
                "identifier_size": self.header.identifier_size,
                "timestamp_ms": self.header.timestamp_ms,
            }
        return {
            "file_path": self.file_path,
            "header": header,
            "counts": self.counts.to_dict(),
            "stack_traces": [trace.to_dict() for trace in self.stack_traces],
            "unparsed_records": [
                {"tag": env.tag.label, "offset": env.offset, "length": env.length}
                for env in self.unparsed_records
            ],
            "terminated_by": self.terminated_by.label if self.terminated_by else None,
            "reached_end": self.reached_end,
            "errors": list(self.errors),
        }


class HprofStreamDriver:
    """Decodes one stream, maintaining its symbol tables and record counts."""

    def __init__(self, config: Optional[AnalyzerConfig] = None,
                 output: Callable[[str], None] = safe_print):
        self.config = config or AnalyzerConfig()
        self.output = output
        self.tables = SymbolTables()
        self.resolver = StackTraceResolver(self.tables)
        self.state = StreamState.STREAMING
        self.result = HprofAnalysisResult()

    def run(self, stream: BinaryIO, file_path: Optional[str] = None) -> HprofAnalysisResult:
        """Decode the whole stream and print the per-tag summary."""
        self.result = HprofAnalysisResult(file_path=file_path)
        self.state = StreamState.STREAMING

        reader = FieldReader(stream)
        header = parse_header(reader)
        self.result.header = header
        logger.info(
            "Header: %s, identifier size %d, timestamp %d ms",
            header.format, header.identifier_size, header.timestamp_ms,
        )

        id_size = self.config.id_size or header.identifier_size
        if id_size != header.identifier_size:
            logger.info(
                "Using %d byte identifiers instead of the declared %d",
                id_size, header.identifier_size,
            )
        reader.set_id_size(id_size)

        while self.state is StreamState.STREAMING:
            self.step(reader)

        self.output(self.result.counts.summary_line())
        return self.result

    def step(self, reader: FieldReader) -> None:
        """Decode and handle a single record."""
        try:
            record = decode_record(reader, verify_lengths=self.config.verify_lengths)
            if record is None:
                logger.info("End of input at offset %d", reader.position)
                self.result.reached_end = True
                self._terminate()
            elif record.is_counted:
                self._handle_counted(record)
            else:
                self._handle_unparsed(reader, record)
        except TruncatedInput as e:
            if not self.config.lenient:
                raise
            self._recover(e)
            self._terminate()

    def _terminate(self, tag: Optional[RecordTag] = None) -> None:
        self.result.terminated_by = tag
        self.state = StreamState.TERMINATED

    def _recover(self, error: Exception) -> None:
        logger.warning("%s", error)
        self.result.errors.append(str(error))

    def _handle_counted(self, record: Record) -> None:
        body = record.body
        if isinstance(body, StackTraceRecord):
            self._emit_stack_trace(body)
        else:
            # UnloadClass records are decoded but not kept
            self.tables.absorb(body)
        self.result.counts.increment(record.tag)

    def _emit_stack_trace(self, trace: StackTraceRecord) -> None:
        try:
            resolved = self.resolver.resolve(trace)
        except DanglingReference as e:
            if not self.config.lenient:
                raise
            self._recover(e)
            return
        self.result.stack_traces.append(resolved)
        for line in resolved.render():
            self.output(line)

    def _handle_unparsed(self, reader: FieldReader, record: Record) -> None:
        envelope = record.envelope
        self.output(f"tag: {envelope.tag.label} of size {envelope.length} bytes")
        self.result.unparsed_records.append(envelope)

        if self.config.skip_unparsed:
            reader.skip(envelope.length, f"{envelope.tag.label} payload")
            return

        logger.info("Stopping at %s record (offset %d)", envelope.tag.label, envelope.offset)
        self._terminate(envelope.tag)


def analyze_stream(stream: BinaryIO, config: Optional[AnalyzerConfig] = None,
                   output: Callable[[str], None] = safe_print) -> HprofAnalysisResult:
    return HprofStreamDriver(config, output).run(stream)


def analyze_file(path: Union[str, Path], config: Optional[AnalyzerConfig] = None,
                 output: Callable[[str], None] = safe_print) -> HprofAnalysisResult:
    """Open `path` and decode it. The file is closed on every exit path."""
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        raise DumpFileNotFound(str(path)) from None
    except OSError as e:
        raise DumpFileUnreadable(str(path), e.strerror or str(e)) from e

    with f:
        try:
            return HprofStreamDriver(config, output).run(f, file_path=str(path))
        except OSError as e:
            raise DumpFileUnreadable(str(path), e.strerror or str(e)) from e
