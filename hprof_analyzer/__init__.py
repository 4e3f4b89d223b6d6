"""HPROF Analyzer package.

This package decodes HPROF heap-profiler dumps produced by Java virtual
machines, including:
- Header and record envelope decoding with configurable identifier width
- String, class, stack frame and stack trace record decoding
- Incremental symbol tables (strings, frames, classes)
- Human-readable stack trace resolution
"""
from .config import AnalyzerConfig, UnparsedTagPolicy
from .decoder import decode_record, parse_header, read_envelope
from .driver import (
    HprofAnalysisResult,
    HprofStreamDriver,
    RecordCounts,
    StreamState,
    analyze_file,
    analyze_stream,
)
from .errors import (
    DanglingReference,
    DumpFileError,
    DumpFileNotFound,
    DumpFileUnreadable,
    HprofError,
    HprofFormatError,
    MalformedRecord,
    TruncatedInput,
    UnknownTag,
)
from .field_reader import FieldReader
from .records import (
    Header,
    LoadClassRecord,
    Record,
    RecordEnvelope,
    RecordTag,
    StackFrameRecord,
    StackTraceRecord,
    UnloadClassRecord,
    UnparsedRecord,
    Utf8StringRecord,
)
from .resolver import (
    FrameLocation,
    ResolvedFrame,
    ResolvedStackTrace,
    StackTraceResolver,
)
from .symbols import SymbolTables

__all__ = [
    # Driver
    "HprofStreamDriver",
    "HprofAnalysisResult",
    "RecordCounts",
    "StreamState",
    "analyze_file",
    "analyze_stream",
    # Configuration
    "AnalyzerConfig",
    "UnparsedTagPolicy",
    # Decoding
    "FieldReader",
    "parse_header",
    "read_envelope",
    "decode_record",
    # Records
    "Header",
    "Record",
    "RecordEnvelope",
    "RecordTag",
    "Utf8StringRecord",
    "LoadClassRecord",
    "UnloadClassRecord",
    "StackFrameRecord",
    "StackTraceRecord",
    "UnparsedRecord",
    # Symbols
    "SymbolTables",
    "StackTraceResolver",
    "ResolvedFrame",
    "ResolvedStackTrace",
    "FrameLocation",
    # Errors
    "HprofError",
    "HprofFormatError",
    "TruncatedInput",
    "UnknownTag",
    "MalformedRecord",
    "DanglingReference",
    "DumpFileError",
    "DumpFileNotFound",
    "DumpFileUnreadable",
]

__version__ = "0.1.0"
