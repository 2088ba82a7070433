# fxlib/formats/fasta.py
from __future__ import annotations

import io
import os
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO, Tuple, Union

__all__ = ["FastaRecord", "decode", "encode", "DEFAULT_LINE_LENGTH"]

DEFAULT_LINE_LENGTH = 70

Source = Union[str, TextIO, Sequence[str]]   # path | text blob | file-like | sequence of lines
Sink   = Optional[Union[str, TextIO]]        # path | file-like | None (return string)


@dataclass(frozen=True, slots=True)
class FastaRecord:
    name: str        # full name line without '>'
    sequence: str

    @property
    def id(self) -> str:
        return self.name.split(None, 1)[0] if self.name.strip() else ""


def _lines(source: Source) -> Iterator[str]:
    if isinstance(source, str):
        if os.path.isfile(source):
            with open(source, "rt", encoding="utf-8", errors="surrogateescape", newline="") as f:
                yield from f
        else:
            yield from io.StringIO(source, newline="")
    else:
        yield from source


def decode(source: Source) -> Iterator[FastaRecord]:
    """
    Plain full-scan FASTA reader. Line terminators (LF or CRLF) are dropped
    and the data lines of each record concatenated.
    """
    name: Optional[str] = None
    buf: List[str] = []
    for ln in _lines(source):
        s = ln.rstrip("\r\n")
        if s.startswith(">"):
            if name is not None:
                yield FastaRecord(name, "".join(buf))
            name = s[1:]
            buf = []
        elif name is not None:
            buf.append(s)
    if name is not None:
        yield FastaRecord(name, "".join(buf))


def _wrap(seq: str, line_length: int) -> Iterator[str]:
    if line_length <= 0:
        yield seq
        return
    for i in range(0, len(seq), line_length):
        yield seq[i:i + line_length]


def encode(
    records: Iterable[Union[FastaRecord, Tuple[str, str]]],
    sink: Sink = None,
    line_length: int = DEFAULT_LINE_LENGTH,
) -> str:
    """
    Write records as FASTA, wrapping sequence lines at `line_length`
    (0 disables wrapping). An empty sequence produces only its name line.
    Returns the text when sink is None; otherwise writes to the sink.
    """
    def _write(fp: TextIO) -> None:
        for rec in records:
            name, seq = (rec.name, rec.sequence) if isinstance(rec, FastaRecord) else rec
            fp.write(f">{name}\n")
            if seq:
                for chunk in _wrap(seq, line_length):
                    fp.write(chunk + "\n")

    if sink is None:
        buf = io.StringIO()
        _write(buf)
        return buf.getvalue()

    if isinstance(sink, str):
        with open(sink, "wt", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
            _write(f)
        return ""

    if hasattr(sink, "write"):
        _write(sink)  # type: ignore[arg-type]
        return ""

    raise TypeError("sink must be a path string, a file-like with .write, or None")
