# fxlib/sequences/fai.py
from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from types import MappingProxyType
from typing import BinaryIO, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..errors import CorruptIndex, MalformedSource, UnknownSequence

__all__ = [
    "IndexEntry",
    "FaiIndex",
    "build_index",
    "save_index",
    "load_index",
    "load_or_build_index",
    "default_index_path",
]

log = logging.getLogger(__name__)

# Record names are kept byte-exact through decode/encode.
_NAME_ENCODING = "utf-8"
_NAME_ERRORS = "surrogateescape"

_UINT = re.compile(r"[0-9]+")

# longest piece of a line held in memory while indexing
_READ_LIMIT = 1 << 20


@dataclass(frozen=True, slots=True)
class IndexEntry:
    name: str
    length: int            # number of bases
    offset: int            # byte offset of 1st base in file
    line_bases: int        # bases per data line
    line_bytes: int        # bytes per line including newline

    def to_line(self) -> str:
        return f"{self.name}\t{self.length}\t{self.offset}\t{self.line_bases}\t{self.line_bytes}\n"


class FaiIndex:
    """
    Immutable, ordered collection of IndexEntry values.

    Order is the order in which records appear in the FASTA file; the position
    of an entry in that order is its numeric id.
    """

    __slots__ = ("_entries", "_by_name")

    def __init__(self, entries: Iterable[IndexEntry] = ()) -> None:
        ordered = tuple(entries)
        by_name: Dict[str, IndexEntry] = {}
        for e in ordered:
            if e.name in by_name:
                raise ValueError(f"duplicate sequence name {e.name!r}")
            by_name[e.name] = e
        self._entries: Tuple[IndexEntry, ...] = ordered
        self._by_name: Mapping[str, IndexEntry] = MappingProxyType(by_name)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> IndexEntry:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownSequence(name) from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FaiIndex):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FaiIndex({len(self._entries)} entries)"

    @property
    def entries(self) -> Tuple[IndexEntry, ...]:
        return self._entries

    def get(self, name: str) -> Optional[IndexEntry]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    def entry_by_id(self, seq_id: int) -> IndexEntry:
        if not 0 <= seq_id < len(self._entries):
            raise UnknownSequence(seq_id)
        return self._entries[seq_id]

    def id_of(self, name: str) -> int:
        entry = self[name]
        return self._entries.index(entry)


# =====================================
# Build
# =====================================

class _RecordBuilder:
    __slots__ = ("name", "offset", "length", "line_bases", "line_bytes", "short_at")

    def __init__(self, name: str, offset: int) -> None:
        self.name = name
        self.offset = offset
        self.length = 0
        self.line_bases = 0
        self.line_bytes = 0
        # position of the first line that may only be followed by blank lines
        self.short_at: Optional[int] = None

    def add_line(self, path: str, pos: int, bases: int, term: int) -> None:
        if bases == 0:
            if self.short_at is None:
                self.short_at = pos
            return
        if self.short_at is not None:
            raise MalformedSource(
                path, self.short_at,
                f"uneven line width in sequence {self.name!r}: short line is followed by more data",
            )

        if self.line_bases == 0:
            self.line_bases = bases
            self.line_bytes = bases + term
        elif bases > self.line_bases:
            raise MalformedSource(
                path, pos,
                f"uneven line width in sequence {self.name!r}: "
                f"line has {bases} bases, expected at most {self.line_bases}",
            )
        elif bases < self.line_bases:
            self.short_at = pos
        elif term and bases + term != self.line_bytes:
            raise MalformedSource(path, pos, f"inconsistent line terminator in sequence {self.name!r}")
        self.length += bases

    def finish(self) -> IndexEntry:
        return IndexEntry(
            name=self.name, length=self.length, offset=self.offset,
            line_bases=self.line_bases, line_bytes=self.line_bytes,
        )


def _scan_lines(f: BinaryIO) -> Iterator[Tuple[int, Optional[bytes], int, int, bool]]:
    """
    Yield (pos, header, bases, term, blank) for every line of a binary file.

    Lines are read at most _READ_LIMIT bytes at a time, so an unwrapped
    chromosome never has to fit in memory. `header` holds the whole line only
    for '>' lines; `term` is the terminator width (0, 1 or 2) and `bases` the
    line length without it.
    """
    pos = 0
    while True:
        piece = f.readline(_READ_LIMIT)
        if not piece:
            return
        header = bytearray(piece) if piece.startswith(b">") else None
        size = len(piece)
        blank = not piece.strip()
        tail = piece[-2:]
        while not tail.endswith(b"\n"):
            more = f.readline(_READ_LIMIT)
            if not more:
                break
            size += len(more)
            blank = blank and not more.strip()
            if header is not None:
                header += more
            tail = (tail + more)[-2:]
        if tail.endswith(b"\r\n"):
            term = 2
        elif tail.endswith(b"\n"):
            term = 1
        else:
            term = 0
        yield pos, (bytes(header) if header is not None else None), size - term, term, blank
        pos += size


def build_index(path: str) -> FaiIndex:
    """
    Build a .fai-style index with a single pass over a FASTA file.

    Works for LF or CRLF files. Every data line of a record except the last
    must hold the same number of bases; the last line may be shorter. Blank
    lines are only allowed at the end of a record.

    Raises MalformedSource (uneven line width, duplicate or empty name, data
    before the first '>' line) and OSError on read failures.
    """
    entries: List[IndexEntry] = []
    seen: Dict[str, int] = {}
    cur: Optional[_RecordBuilder] = None

    def _commit() -> None:
        if cur is not None:
            e = cur.finish()
            log.debug("indexed %s: length=%d offset=%d line_bases=%d line_bytes=%d",
                      e.name, e.length, e.offset, e.line_bases, e.line_bytes)
            entries.append(e)

    with open(path, "rb") as f:
        for pos, header, bases, term, blank in _scan_lines(f):
            if header is not None:
                _commit()
                tokens = header[1:].split(None, 1)
                if not tokens:
                    raise MalformedSource(path, pos, "empty sequence name")
                name = tokens[0].decode(_NAME_ENCODING, _NAME_ERRORS)
                if name in seen:
                    raise MalformedSource(
                        path, pos,
                        f"duplicate sequence name {name!r} (first seen at byte {seen[name]})",
                    )
                seen[name] = pos
                cur = _RecordBuilder(name, pos + len(header))
            elif cur is not None:
                cur.add_line(path, pos, bases, term)
            elif not blank:
                raise MalformedSource(path, pos, "sequence data before the first '>' name line")
        _commit()

    log.info("indexed %d sequence(s) from %s", len(entries), path)
    return FaiIndex(entries)


# =====================================
# Store
# =====================================

def default_index_path(fasta_path: str) -> str:
    return fasta_path + ".fai"


def save_index(index: Iterable[IndexEntry], path: str) -> None:
    """
    Write the index as name/length/offset/line_bases/line_bytes TSV.

    The file is written to a temporary sibling and moved into place, so a
    failure never leaves a truncated index behind.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=os.path.basename(path) + ".", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wt", encoding=_NAME_ENCODING, errors=_NAME_ERRORS, newline="\n") as out:
            for e in index:
                out.write(e.to_line())
            out.flush()
            os.fsync(out.fileno())
        # mkstemp creates 0600; keep the mode of an index being replaced
        try:
            mode = os.stat(path).st_mode & 0o777
        except FileNotFoundError:
            mode = 0o644
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    log.debug("wrote index %s", path)


def _parse_index_line(path: str, line_no: int, line: str) -> IndexEntry:
    fields = line.split("\t")
    if len(fields) != 5:
        raise CorruptIndex(path, line_no, f"expected 5 tab-separated fields, found {len(fields)}")
    name = fields[0]
    if not name:
        raise CorruptIndex(path, line_no, "empty sequence name")
    nums: List[int] = []
    for label, value in zip(("length", "offset", "line_bases", "line_bytes"), fields[1:]):
        if not _UINT.fullmatch(value):
            raise CorruptIndex(path, line_no, f"{label} is not a non-negative integer: {value!r}")
        nums.append(int(value))
    length, offset, line_bases, line_bytes = nums
    if line_bytes < line_bases:
        raise CorruptIndex(path, line_no, f"line_bytes {line_bytes} < line_bases {line_bases}")
    if length > 0 and line_bases == 0:
        raise CorruptIndex(path, line_no, "non-empty sequence with zero line_bases")
    return IndexEntry(name, length, offset, line_bases, line_bytes)


def load_index(path: str) -> FaiIndex:
    """
    Read an index written by save_index (or samtools faidx).

    Raises FileNotFoundError if the file does not exist and CorruptIndex,
    with a 1-based line number, if any line is malformed.
    """
    entries: List[IndexEntry] = []
    first_line: Dict[str, int] = {}
    with open(path, "rt", encoding=_NAME_ENCODING, errors=_NAME_ERRORS, newline="") as f:
        for line_no, ln in enumerate(f, start=1):
            s = ln.rstrip("\n")
            if s.endswith("\r"):
                s = s[:-1]
            e = _parse_index_line(path, line_no, s)
            if e.name in first_line:
                raise CorruptIndex(
                    path, line_no,
                    f"duplicate sequence name {e.name!r} (first on line {first_line[e.name]})",
                )
            first_line[e.name] = line_no
            entries.append(e)
    return FaiIndex(entries)


def load_or_build_index(fasta_path: str, fai_path: Optional[str] = None, *, rebuild: bool = False) -> FaiIndex:
    """
    Load the index for fasta_path, building and saving it when it is missing
    or corrupt (or when rebuild=True).

    A failure to save the freshly built index is logged and the in-memory
    index is returned anyway.
    """
    if fai_path is None:
        fai_path = default_index_path(fasta_path)

    if not rebuild:
        try:
            return load_index(fai_path)
        except FileNotFoundError:
            log.info("no index at %s", fai_path)
        except CorruptIndex as exc:
            log.warning("ignoring corrupt index: %s", exc)

    log.info("building index %s for %s", fai_path, fasta_path)
    index = build_index(fasta_path)
    try:
        save_index(index, fai_path)
    except OSError as exc:
        log.warning("could not write index %s: %s", fai_path, exc)
    return index
