# fxlib/sequences/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol, Tuple, Union

from ..errors import UnknownSequence
from .region import Region, parse_region

__all__ = [
    "SequenceSource",
    "DictSequenceSource",
    "clamp_range",
    "as_region",
]

class SequenceSource(Protocol):
    def has(self, seq_id: str) -> bool: ...
    def length(self, seq_id: str) -> int: ...
    def get(self, seq_id: str, start: int, end: int) -> str: ...
    def fetch(self, region: Union[Region, str]) -> str: ...
    def ids(self) -> Iterable[str]: ...

def clamp_range(begin: Optional[int], end: Optional[int], length: int) -> Tuple[int, int]:
    """
    Resolve a 0-based half-open request against a record of `length` bases.

    Unset bounds mean start/end of record; both bounds are clamped to
    [0, length] and an inverted range collapses to an empty one at `begin`.
    """
    b = 0 if begin is None else min(max(begin, 0), length)
    e = length if end is None else min(max(end, 0), length)
    if e < b:
        e = b
    return b, e

def as_region(region: Union[Region, str]) -> Region:
    return region if isinstance(region, Region) else parse_region(region)

def _check_closed(start: int, end: int) -> None:
    if start < 1 or end < start:
        raise ValueError("invalid range")

@dataclass
class DictSequenceSource:
    """
    Tiny in-memory source for tests:
      seqs: dict{id -> sequence_string}
    get() coordinates: 1-based, fully-closed. Raises UnknownSequence for unknown ids.
    """
    seqs: Dict[str, str]

    def _seq(self, seq_id: str) -> str:
        try:
            return self.seqs[seq_id]
        except KeyError:
            raise UnknownSequence(seq_id) from None

    def has(self, seq_id: str) -> bool:
        return seq_id in self.seqs

    def length(self, seq_id: str) -> int:
        return len(self._seq(seq_id))

    def ids(self) -> Iterable[str]:
        return self.seqs.keys()

    def get(self, seq_id: str, start: int, end: int) -> str:
        _check_closed(start, end)
        s = self._seq(seq_id)
        b, e = clamp_range(start - 1, end, len(s))
        return s[b:e]

    def fetch(self, region: Union[Region, str]) -> str:
        r = as_region(region)
        s = self._seq(r.seq_name)
        b, e = clamp_range(r.begin_pos, r.end_pos, len(s))
        return s[b:e]
