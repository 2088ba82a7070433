# fxlib/sequences/fasta.py
from __future__ import annotations

import os
from dataclasses import dataclass
from itertools import chain
from typing import BinaryIO, Dict, Iterable, Optional, Union

from ..errors import OutOfRange, UnknownSequence
from ..formats import fasta as fmt_fasta
from .base import SequenceSource, _check_closed, as_region, clamp_range
from .fai import FaiIndex, IndexEntry, build_index, load_or_build_index
from .region import Region

__all__ = [
    "FastaSequenceSource",
    "IndexedFastaSequenceSource",
    "fetch",
    "byte_offset",
]

# Residues are single bytes; latin-1 maps every byte to one character.
_RESIDUE_ENCODING = "latin-1"


def byte_offset(entry: IndexEntry, pos: int) -> int:
    """Absolute file offset of 0-based residue `pos` of `entry`."""
    lb, lB = entry.line_bases, entry.line_bytes
    return entry.offset + (pos // lb) * lB + (pos % lb)


def _pread(fh: BinaryIO, size: int, offset: int) -> bytes:
    if not hasattr(os, "pread"):
        fh.seek(offset)
        return fh.read(size)
    fd = fh.fileno()
    buf = bytearray()
    while len(buf) < size:
        chunk = os.pread(fd, size - len(buf), offset + len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


def fetch(fh: BinaryIO, entry: IndexEntry, begin: Optional[int] = None, end: Optional[int] = None) -> str:
    """
    Read bases [begin, end) (0-based, half-open) of one record.

    Unset bounds mean start/end of record and the range is clamped to the
    record, so asking past the end is not an error. The whole byte span is
    read with one positioned read and the line terminators inside it dropped.

    Raises OutOfRange for a non-empty request against a record with no bases
    and OSError if the file is shorter than the index says.
    """
    if entry.length == 0 or entry.line_bases == 0:
        if (begin or 0) > 0 or (end or 0) > 0:
            raise OutOfRange(entry.name, begin, end)
        return ""

    b, e = clamp_range(begin, end, entry.length)
    if b == e:
        return ""

    lb, lB = entry.line_bases, entry.line_bytes
    span_start = byte_offset(entry, b)
    span_len = byte_offset(entry, e - 1) + 1 - span_start

    data = _pread(fh, span_len, span_start)
    if len(data) < span_len:
        raise OSError(
            f"short read for {entry.name!r}: wanted {span_len} bytes at offset {span_start}, "
            f"got {len(data)} (file changed since it was indexed?)"
        )
    # bases left on the line holding `b`
    head = min(lb - b % lb, e - b)
    if head == e - b or lB == lb:
        return data.decode(_RESIDUE_ENCODING)
    view = memoryview(data)
    pieces = chain((view[:head],), (view[i:i + lb] for i in range(head + lB - lb, span_len, lB)))
    return b"".join(pieces).decode(_RESIDUE_ENCODING)


class _IndexedReader:
    """Shared read path for sources backed by a FaiIndex and an open file."""

    path: str
    index: FaiIndex
    _fh: Optional[BinaryIO]

    def _entry(self, seq_id: str) -> IndexEntry:
        return self.index[seq_id]

    def _handle(self) -> BinaryIO:
        if self._fh is None:
            raise ValueError("I/O operation on closed source")
        return self._fh

    def _get_indexed(self, seq_id: str, start: int, end: int) -> str:
        _check_closed(start, end)
        return fetch(self._handle(), self._entry(seq_id), start - 1, end)

    def _fetch_indexed(self, region: Region) -> str:
        return fetch(self._handle(), self._entry(region.seq_name), region.begin_pos, region.end_pos)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


@dataclass
class FastaSequenceSource(_IndexedReader, SequenceSource):
    """
    FASTA source with two modes:
      - mode='load'  : load entire FASTA to memory (dict of sequences)
      - mode='index' : build in-memory .fai-like index; read slices from file on demand
    """
    path: str
    mode: str = "index"  # 'load' or 'index'

    def __post_init__(self):
        if self.mode not in {"load", "index"}:
            raise ValueError("mode must be 'load' or 'index'")
        self._seqs: Dict[str, str] = {}
        self._fh = None
        self.index = FaiIndex()
        if self.mode == "load":
            self._load_all()
        else:
            self.index = build_index(self.path)
            self._fh = open(self.path, "rb")

    def _load_all(self):
        for rec in fmt_fasta.decode(self.path):
            self._seqs.setdefault(rec.id, rec.sequence)

    def _seq(self, seq_id: str) -> str:
        try:
            return self._seqs[seq_id]
        except KeyError:
            raise UnknownSequence(seq_id) from None

    def has(self, seq_id: str) -> bool:
        return (seq_id in self._seqs) or (seq_id in self.index)

    def ids(self) -> Iterable[str]:
        if self.mode == "load":
            return self._seqs.keys()
        return self.index.names()

    def length(self, seq_id: str) -> int:
        if self.mode == "load":
            return len(self._seq(seq_id))
        return self._entry(seq_id).length

    def get(self, seq_id: str, start: int, end: int) -> str:
        if self.mode == "load":
            _check_closed(start, end)
            s = self._seq(seq_id)
            b, e = clamp_range(start - 1, end, len(s))
            return s[b:e]
        return self._get_indexed(seq_id, start, end)

    def fetch(self, region: Union[Region, str]) -> str:
        r = as_region(region)
        if self.mode == "load":
            s = self._seq(r.seq_name)
            b, e = clamp_range(r.begin_pos, r.end_pos, len(s))
            return s[b:e]
        return self._fetch_indexed(r)


@dataclass
class IndexedFastaSequenceSource(_IndexedReader, SequenceSource):
    """
    samtools-faidx-like: uses the .fai on disk if present and valid; otherwise
    builds one and writes it next to the FASTA (or to `fai_path`).

    The FASTA file is opened read-only once and read with
    positioned reads only, so one source can serve several threads.
    """
    path: str
    fai_path: Optional[str] = None
    rebuild: bool = False

    def __post_init__(self):
        self._fh = None
        self.index = load_or_build_index(self.path, self.fai_path, rebuild=self.rebuild)
        self._fh = open(self.path, "rb")

    # SequenceSource
    def has(self, seq_id: str) -> bool:
        return seq_id in self.index

    def ids(self) -> Iterable[str]:
        return self.index.names()

    def length(self, seq_id: str) -> int:
        return self._entry(seq_id).length

    def get(self, seq_id: str, start: int, end: int) -> str:
        return self._get_indexed(seq_id, start, end)

    def fetch(self, region: Union[Region, str]) -> str:
        return self._fetch_indexed(as_region(region))
