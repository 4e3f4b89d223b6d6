"""Error types raised while decoding HPROF dumps.

Every failure the analyzer can report derives from HprofError so callers
can catch one type at the boundary. Format problems are also ValueErrors,
file problems are also OSErrors.
"""
from __future__ import annotations

from typing import Optional


class HprofError(Exception):
    """Base class for all analyzer errors."""


class HprofFormatError(HprofError, ValueError):
    """The byte stream does not follow the HPROF layout."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)


class TruncatedInput(HprofFormatError):
    """Fewer bytes remained than a field requires."""

    def __init__(self, field_name: str, expected: int, actual: int,
                 offset: Optional[int] = None):
        self.field_name = field_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Truncated input reading {field_name}: needed {expected} bytes, got {actual}",
            offset,
        )


class UnknownTag(HprofFormatError):
    """Record envelope tag byte outside the known enumeration."""

    def __init__(self, tag_byte: int, offset: Optional[int] = None):
        self.tag_byte = tag_byte
        super().__init__(f"Unknown record tag 0x{tag_byte:02X}", offset)


class MalformedRecord(HprofFormatError):
    """A record whose declared sizes contradict its fixed layout."""


class DanglingReference(HprofFormatError):
    """A record refers to an id or serial number never defined earlier."""

    def __init__(self, table: str, key: int, referrer: str = ""):
        self.table = table
        self.key = key
        self.referrer = referrer
        message = f"Dangling reference: {table} 0x{key:X} is not defined"
        if referrer:
            message += f" (referenced by {referrer})"
        super().__init__(message)


class DumpFileError(HprofError, OSError):
    """The dump file could not be opened or read."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class DumpFileNotFound(DumpFileError):
    def __init__(self, path: str):
        super().__init__("File not found", path)


class DumpFileUnreadable(DumpFileError):
    def __init__(self, path: str, reason: str = ""):
        self.reason = reason
        message = "Cannot read file"
        if reason:
            message += f" ({reason})"
        super().__init__(message, path)
