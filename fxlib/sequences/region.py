# fxlib/sequences/region.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..errors import ParseError

__all__ = ["Region", "parse_region"]


@dataclass(frozen=True, slots=True)
class Region:
    """
    A subsequence request against one record.

    Coordinates are 0-based, half-open [begin_pos, end_pos). Either bound may
    be None: an unset begin means the start of the record, an unset end means
    the end of the record. Region strings use 1-based inclusive coordinates,
    so "chr1:5-10" is Region("chr1", 4, 10).
    """
    seq_name: str
    begin_pos: Optional[int] = None
    end_pos: Optional[int] = None

    def to_string(self) -> str:
        """Render back to NAME[:START[-END]] (1-based, inclusive)."""
        if self.begin_pos is None and self.end_pos is None:
            return self.seq_name
        start = (self.begin_pos or 0) + 1
        if self.end_pos is None:
            return f"{self.seq_name}:{start}"
        return f"{self.seq_name}:{start}-{self.end_pos}"

    def __str__(self) -> str:
        return self.to_string()


class _State(Enum):
    READING_NAME = "name"
    READING_START = "start"
    READING_END = "end"
    DONE = "done"


class _Char(Enum):
    DIGIT = 1
    SEPARATOR = 2    # ',' digit grouping, dropped
    RANGE = 3        # '-' between START and END
    DELIMITER = 4    # ':' between NAME and START
    OTHER = 5
    END = 6


def _classify(ch: Optional[str]) -> _Char:
    if ch is None:
        return _Char.END
    if "0" <= ch <= "9":
        return _Char.DIGIT
    if ch == ",":
        return _Char.SEPARATOR
    if ch == "-":
        return _Char.RANGE
    if ch == ":":
        return _Char.DELIMITER
    return _Char.OTHER


class _RegionScanner:
    """One-pass state machine over a region string."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.state = _State.READING_NAME
        self.name_end = 0
        self.field_start = 0
        self.digits: List[str] = []
        self.begin: Optional[int] = None
        self.end: Optional[int] = None

    def fail(self, field: str, upto: int, reason: str) -> ParseError:
        return ParseError(self.text, field, self.text[self.field_start:upto], reason)

    def finish_number(self, field: str, pos: int) -> int:
        if not self.digits:
            raise self.fail(field, pos, "missing number")
        value = int("".join(self.digits))
        if value <= 0:
            raise self.fail(field, pos, "positions are 1-based and must be positive")
        self.digits = []
        return value

    def step(self, pos: int, ch: Optional[str]) -> None:
        kind = _classify(ch)
        state = self.state

        if state is _State.DONE:
            raise self.fail("end", len(self.text), "trailing input")

        if state is _State.READING_NAME:
            if kind is _Char.DELIMITER or kind is _Char.END:
                if pos == 0:
                    raise ParseError(self.text, "name", "", "empty sequence name")
                self.name_end = pos
                self.field_start = pos + 1
                self.state = _State.READING_START if kind is _Char.DELIMITER else _State.DONE
            return

        if state is _State.READING_START:
            if kind is _Char.DIGIT:
                self.digits.append(ch)  # type: ignore[arg-type]
            elif kind is _Char.SEPARATOR:
                pass
            elif kind is _Char.RANGE or kind is _Char.END:
                self.begin = self.finish_number("start", pos) - 1
                self.field_start = pos + 1
                self.state = _State.READING_END if kind is _Char.RANGE else _State.DONE
            else:
                raise self.fail("start", pos + 1, f"unexpected character {ch!r}")
            return

        if state is _State.READING_END:
            if kind is _Char.DIGIT:
                self.digits.append(ch)  # type: ignore[arg-type]
            elif kind is _Char.SEPARATOR:
                pass
            elif kind is _Char.END:
                # 1-based inclusive END is already the exclusive 0-based bound
                self.end = self.finish_number("end", pos)
                self.state = _State.DONE
            else:
                raise self.fail("end", pos + 1, f"unexpected character {ch!r}")
            return

    def run(self) -> Region:
        for pos, ch in enumerate(self.text):
            self.step(pos, ch)
        self.step(len(self.text), None)
        return Region(self.text[:self.name_end], self.begin, self.end)


def parse_region(text: str) -> Region:
    """
    Parse NAME, NAME:START or NAME:START-END into a Region.

    START and END are 1-based and inclusive; ',' may be used to group digits
    ("chr1:1,000-2,000"). Raises ParseError for an empty name, a missing or
    non-positive number, or any character other than digits and ','.
    """
    return _RegionScanner(text).run()
