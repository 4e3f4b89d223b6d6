"""Big-endian field reader over a binary stream.

All reads are sequential and byte-exact: a short read raises TruncatedInput
instead of returning partial data.
"""
from __future__ import annotations

import struct
from typing import BinaryIO, Optional

from .errors import MalformedRecord, TruncatedInput


_U1 = struct.Struct(">B")
_U2 = struct.Struct(">H")
_U4 = struct.Struct(">I")
_I4 = struct.Struct(">i")
_U8 = struct.Struct(">Q")

# Identifier width -> unpacker
ID_STRUCTS = {
    1: _U1,
    2: _U2,
    4: _U4,
    8: _U8,
}

DEFAULT_ID_SIZE = 8
SKIP_CHUNK_SIZE = 64 * 1024


class FieldReader:
    """Reads HPROF primitive fields and tracks the byte offset."""

    def __init__(self, stream: BinaryIO, id_size: int = DEFAULT_ID_SIZE):
        self.stream = stream
        self.position = 0
        self._id_struct = _U8
        self.id_size = DEFAULT_ID_SIZE
        self.set_id_size(id_size)

    def set_id_size(self, id_size: int) -> None:
        """Change the width used by read_id()."""
        id_struct = ID_STRUCTS.get(id_size)
        if id_struct is None:
            raise MalformedRecord(
                f"Unsupported identifier size {id_size} (expected one of "
                f"{', '.join(str(s) for s in sorted(ID_STRUCTS))})"
            )
        self.id_size = id_size
        self._id_struct = id_struct

    def _read_up_to(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self.stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def read_exact(self, size: int, field_name: str = "field") -> bytes:
        """Read exactly `size` bytes or raise TruncatedInput."""
        data = self._read_up_to(size)
        if len(data) != size:
            raise TruncatedInput(field_name, size, len(data), self.position)
        self.position += size
        return data

    def read_tag_byte(self) -> Optional[int]:
        """Read one byte, returning None at a clean end of input."""
        data = self.stream.read(1)
        if not data:
            return None
        self.position += 1
        return data[0]

    def read_u1(self, field_name: str = "u1") -> int:
        return _U1.unpack(self.read_exact(1, field_name))[0]

    def read_u4(self, field_name: str = "u4") -> int:
        return _U4.unpack(self.read_exact(4, field_name))[0]

    def read_i4(self, field_name: str = "i4") -> int:
        return _I4.unpack(self.read_exact(4, field_name))[0]

    def read_u8(self, field_name: str = "u8") -> int:
        return _U8.unpack(self.read_exact(8, field_name))[0]

    def read_id(self, field_name: str = "id") -> int:
        return self._id_struct.unpack(self.read_exact(self.id_size, field_name))[0]

    def read_utf8(self, size: int, field_name: str = "utf8 text") -> str:
        """Read `size` bytes and decode them as UTF-8, replacing bad sequences."""
        return self.read_exact(size, field_name).decode("utf-8", errors="replace")

    def skip(self, size: int, field_name: str = "payload") -> None:
        """Discard `size` bytes, failing if the stream ends first."""
        remaining = size
        while remaining > 0:
            wanted = min(remaining, SKIP_CHUNK_SIZE)
            chunk = self._read_up_to(wanted)
            remaining -= len(chunk)
            self.position += len(chunk)
            if len(chunk) < wanted:
                break
        if remaining > 0:
            raise TruncatedInput(field_name, size, size - remaining, self.position)
