"""Trace and span identifiers and their hexadecimal encodings."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

_MAX_UINT64 = (1 << 64) - 1
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


def _check_uint64(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= _MAX_UINT64:
        raise ValueError(f"{name} out of 64-bit unsigned range: {value}")
    return value


def _parse_uint64_hex(text: str) -> int:
    if not _HEX_DIGITS.fullmatch(text):
        raise ValueError(f"invalid syntax in hexadecimal value {text!r}")
    value = int(text, 16)
    if value > _MAX_UINT64:
        raise ValueError(f"value out of range: {text!r}")
    return value


@dataclass(frozen=True)
class TraceID:
    """A 128-bit trace identifier kept as high and low 64-bit halves.

    A 64-bit trace identifier lives in ``low`` with ``high`` left at zero.
    """

    high: int = 0
    low: int = 0

    def __post_init__(self) -> None:
        _check_uint64("high", self.high)
        _check_uint64("low", self.low)

    def empty(self) -> bool:
        """Return True when both halves are zero."""
        return self.high == 0 and self.low == 0

    def __str__(self) -> str:
        if self.high == 0:
            return f"{self.low:016x}"
        return f"{self.high:016x}{self.low:016x}"

    @classmethod
    def from_hex(cls, text: str) -> TraceID:
        """Parse a hexadecimal trace identifier of up to 32 digits."""
        if len(text) > 16:
            return cls(high=_parse_uint64_hex(text[:-16]), low=_parse_uint64_hex(text[-16:]))
        return cls(low=_parse_uint64_hex(text))

    def to_json(self) -> str:
        """Encode as a JSON string holding the zero-padded hex form."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, value: str) -> TraceID:
        """Decode from a JSON string holding the hex form."""
        decoded = json.loads(value)
        if not isinstance(decoded, str) or not decoded:
            raise ValueError("valid traceId required")
        return cls.from_hex(decoded)


def format_span_id(value: int) -> str:
    """Format a 64-bit span identifier as 16 zero-padded hex digits."""
    return f"{_check_uint64('span id', value):016x}"


def parse_span_id(text: str) -> int:
    """Parse a hex span identifier; an empty string yields zero."""
    if not text:
        return 0
    return _parse_uint64_hex(text)