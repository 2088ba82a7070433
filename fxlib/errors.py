# fxlib/errors.py
from __future__ import annotations

from typing import Optional

__all__ = [
    "FxError",
    "ParseError",
    "MalformedSource",
    "CorruptIndex",
    "UnknownSequence",
    "OutOfRange",
]


class FxError(Exception):
    """Base class for everything fxlib raises on bad input or bad data."""


class ParseError(FxError, ValueError):
    """A region string could not be parsed."""

    def __init__(self, region: str, field: str, fragment: str, reason: str = "") -> None:
        self.region = region
        self.field = field
        self.fragment = fragment
        self.reason = reason
        msg = f"Could not parse region {region!r}: bad {field} {fragment!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class MalformedSource(FxError, ValueError):
    """The FASTA file is inconsistent and cannot be indexed."""

    def __init__(self, path: str, offset: int, reason: str) -> None:
        self.path = path
        self.offset = offset
        self.reason = reason
        super().__init__(f"{path}: byte {offset}: {reason}")


class CorruptIndex(FxError, ValueError):
    """An index file on disk is structurally invalid."""

    def __init__(self, path: str, line_no: int, reason: str) -> None:
        self.path = path
        self.line_no = line_no
        self.reason = reason
        super().__init__(f"{path}: line {line_no}: {reason}")


class UnknownSequence(FxError, KeyError):
    def __init__(self, name: object) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown sequence {self.name!r}"


class OutOfRange(FxError, IndexError):
    """Non-empty range requested from a record that holds no residues."""

    def __init__(self, name: str, begin: Optional[int], end: Optional[int]) -> None:
        self.name = name
        self.begin = begin
        self.end = end
        super().__init__(f"Range [{begin}, {end}) is out of range for empty sequence {name!r}")
