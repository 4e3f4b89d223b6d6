"""Stack trace resolution against the symbol tables."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .records import (
    COMPILED_METHOD,
    NATIVE_METHOD,
    UNKNOWN_LOCATION,
    StackFrameRecord,
    StackTraceRecord,
)
from .symbols import SymbolTables


logger = logging.getLogger(__name__)


class FrameLocation(Enum):
    SOURCE = "source"
    UNKNOWN = "unknown"
    COMPILED = "compiled"
    NATIVE = "native"
    UNRECOGNIZED = "unrecognized"


@dataclass
class ResolvedFrame:
    """A stack frame with its class, method and source names looked up."""
    frame: StackFrameRecord
    class_name: str
    method_name: str
    location: FrameLocation
    source_file: Optional[str] = None

    @property
    def line_number(self) -> int:
        return self.frame.line_num

    def render(self) -> str:
        """One output line for this frame."""
        qualified = f"{self.class_name}.{self.method_name}()"
        if self.location is FrameLocation.SOURCE:
            return f"\t{qualified} [{self.source_file}:{self.frame.line_num}]"
        if self.location is FrameLocation.UNKNOWN:
            return f"\t{qualified} [Unknown]"
        if self.location is FrameLocation.COMPILED:
            return f"\t{qualified} [Compiled]"
        if self.location is FrameLocation.NATIVE:
            return f"\t{qualified} [Native]"
        # Unrecognized line sentinel: surface the raw record
        return repr(self.frame)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_id": self.frame.frame_id,
            "class_name": self.class_name,
            "method_name": self.method_name,
            "source_file": self.source_file,
            "line_number": self.frame.line_num,
            "location": self.location.value,
        }


@dataclass
class ResolvedStackTrace:
    trace: StackTraceRecord
    frames: List[ResolvedFrame] = field(default_factory=list)

    @property
    def thread_serial_num(self) -> int:
        return self.trace.thread_serial_num

    def render(self) -> List[str]:
        """Output block: thread line, one line per frame, blank separator."""
        lines = [f"Thread {self.trace.thread_serial_num}:"]
        lines.extend(frame.render() for frame in self.frames)
        lines.append("")
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serial_num": self.trace.serial_num,
            "thread_serial_num": self.trace.thread_serial_num,
            "frames": [frame.to_dict() for frame in self.frames],
        }


class StackTraceResolver:
    """Renders stack trace records using the tables built so far.

    Every lookup is mandatory: a missing frame, class or string raises
    DanglingReference rather than dropping the frame.
    """

    def __init__(self, tables: SymbolTables):
        self.tables = tables

    def resolve_frame(self, frame_id: int, trace: Optional[StackTraceRecord] = None) -> ResolvedFrame:
        referrer = f"stack trace {trace.serial_num}" if trace is not None else ""
        frame = self.tables.lookup_frame(frame_id, referrer)

        frame_referrer = f"frame 0x{frame.frame_id:X}"
        load_class = self.tables.lookup_class(frame.class_serial_num, frame_referrer)
        class_name = self.tables.class_name(load_class)
        method_name = self.tables.lookup_string(frame.method_name_id, frame_referrer)

        # A source file takes precedence over the line sentinels
        if frame.source_name_id != 0:
            source_file = self.tables.lookup_string(frame.source_name_id, frame_referrer)
            return ResolvedFrame(frame, class_name, method_name, FrameLocation.SOURCE, source_file)

        if frame.line_num == UNKNOWN_LOCATION:
            location = FrameLocation.UNKNOWN
        elif frame.line_num == COMPILED_METHOD:
            location = FrameLocation.COMPILED
        elif frame.line_num == NATIVE_METHOD:
            location = FrameLocation.NATIVE
        else:
            location = FrameLocation.UNRECOGNIZED

        if location is not FrameLocation.UNKNOWN:
            logger.debug("%s frame: %r", location.value, frame)
        return ResolvedFrame(frame, class_name, method_name, location)

    def resolve(self, trace: StackTraceRecord) -> ResolvedStackTrace:
        return ResolvedStackTrace(
            trace=trace,
            frames=[self.resolve_frame(frame_id, trace) for frame_id in trace.frame_ids],
        )
