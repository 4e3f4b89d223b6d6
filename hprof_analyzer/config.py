"""Analyzer configuration.

Sources, lowest to highest precedence:
    1. Defaults below
    2. Environment variables (a .env file is loaded by the launchers)
    3. Command-line flags

Environment variables:
    HPROF_ID_SIZE         -> id_size (1, 2, 4 or 8; unset honors the header)
    HPROF_UNPARSED_TAGS   -> unparsed_tags ("stop" or "skip")
    HPROF_LENIENT         -> lenient
    HPROF_VERIFY_LENGTHS  -> verify_lengths
    HPROF_LOG_LEVEL       -> log_level
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .field_reader import ID_STRUCTS


LOG_LEVELS = ("critical", "error", "warn", "warning", "info", "debug")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


class UnparsedTagPolicy(Enum):
    """What the driver does with a record that has no body decoder."""
    STOP = "stop"
    SKIP = "skip"


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_id_size(name: str, value: str) -> Optional[int]:
    if not value.strip():
        return None
    try:
        id_size = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if id_size not in ID_STRUCTS:
        raise ValueError(f"{name} must be one of {sorted(ID_STRUCTS)}, got {id_size}")
    return id_size


@dataclass
class AnalyzerConfig:
    # Forced identifier width; None uses the width declared in the header
    id_size: Optional[int] = None
    unparsed_tags: UnparsedTagPolicy = UnparsedTagPolicy.STOP
    lenient: bool = False
    verify_lengths: bool = False
    log_level: str = "warning"

    def __post_init__(self):
        if self.id_size is not None and self.id_size not in ID_STRUCTS:
            raise ValueError(f"id_size must be one of {sorted(ID_STRUCTS)}, got {self.id_size}")
        if isinstance(self.unparsed_tags, str):
            self.unparsed_tags = UnparsedTagPolicy(self.unparsed_tags.lower())
        self.log_level = self.log_level.lower()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")

    @property
    def skip_unparsed(self) -> bool:
        return self.unparsed_tags is UnparsedTagPolicy.SKIP

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AnalyzerConfig":
        """Build a config from HPROF_* environment variables."""
        env = os.environ if environ is None else environ
        kwargs = {}

        if "HPROF_ID_SIZE" in env:
            kwargs["id_size"] = _parse_id_size("HPROF_ID_SIZE", env["HPROF_ID_SIZE"])
        if "HPROF_UNPARSED_TAGS" in env:
            value = env["HPROF_UNPARSED_TAGS"].strip().lower()
            try:
                kwargs["unparsed_tags"] = UnparsedTagPolicy(value)
            except ValueError:
                raise ValueError(
                    f"HPROF_UNPARSED_TAGS must be 'stop' or 'skip', got {value!r}"
                ) from None
        if "HPROF_LENIENT" in env:
            kwargs["lenient"] = _parse_bool("HPROF_LENIENT", env["HPROF_LENIENT"])
        if "HPROF_VERIFY_LENGTHS" in env:
            kwargs["verify_lengths"] = _parse_bool("HPROF_VERIFY_LENGTHS", env["HPROF_VERIFY_LENGTHS"])
        if "HPROF_LOG_LEVEL" in env:
            kwargs["log_level"] = env["HPROF_LOG_LEVEL"].strip()

        return cls(**kwargs)
