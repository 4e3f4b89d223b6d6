"""Symbol tables built while streaming through a dump."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .errors import DanglingReference
from .records import (
    LoadClassRecord,
    RecordBody,
    StackFrameRecord,
    Utf8StringRecord,
)


@dataclass
class SymbolTables:
    """String, frame and class tables for one stream.

    Entries are never removed. A later record with the same key replaces
    the earlier one.
    """
    # string id -> text
    strings: Dict[int, str] = field(default_factory=dict)
    # frame id -> frame record
    frames: Dict[int, StackFrameRecord] = field(default_factory=dict)
    # class serial number -> load class record
    classes: Dict[int, LoadClassRecord] = field(default_factory=dict)

    def absorb(self, body: RecordBody) -> bool:
        """Insert a defining record into its table. Returns True if stored."""
        if isinstance(body, Utf8StringRecord):
            self.strings[body.identifier] = body.value
        elif isinstance(body, LoadClassRecord):
            self.classes[body.serial_num] = body
        elif isinstance(body, StackFrameRecord):
            self.frames[body.frame_id] = body
        else:
            return False
        return True

    def lookup_string(self, string_id: int, referrer: str = "") -> str:
        try:
            return self.strings[string_id]
        except KeyError:
            raise DanglingReference("string id", string_id, referrer) from None

    def lookup_frame(self, frame_id: int, referrer: str = "") -> StackFrameRecord:
        try:
            return self.frames[frame_id]
        except KeyError:
            raise DanglingReference("frame id", frame_id, referrer) from None

    def lookup_class(self, serial_num: int, referrer: str = "") -> LoadClassRecord:
        try:
            return self.classes[serial_num]
        except KeyError:
            raise DanglingReference("class serial number", serial_num, referrer) from None

    def class_name(self, load_class: LoadClassRecord) -> str:
        """Dotted class name, e.g. java/lang/Thread -> java.lang.Thread."""
        name = self.lookup_string(
            load_class.strname_id, f"class serial {load_class.serial_num}"
        )
        return name.replace("/", ".")
