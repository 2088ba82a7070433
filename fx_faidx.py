#!/usr/bin/env python3
"""
Index a FASTA file and retrieve regions from it (the equivalent of "samtools faidx").

Regions are NAME, NAME:START or NAME:START-END with 1-based, inclusive
positions; ',' may group digits.

Example:
  ./fx_faidx.py -f REF.fa                         # write REF.fa.fai
  ./fx_faidx.py -f REF.fa -i INDEX.fai            # write INDEX.fai
  ./fx_faidx.py -f REF.fa -r chr1                 # all of chr1
  ./fx_faidx.py -f REF.fa -r chr1:100-1100 -r chr2:2,000 -o out.fa
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence, TextIO, Tuple

from fxlib.errors import FxError, ParseError, UnknownSequence
from fxlib.formats import fasta as fmt_fasta
from fxlib.sequences.fai import FaiIndex, default_index_path, load_or_build_index
from fxlib.sequences.fasta import fetch
from fxlib.sequences.region import Region, parse_region


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Indexing FASTA and indexed FASTA access. Equivalent program to samtools faidx."
    )
    p.add_argument("-f", "--fasta-file", dest="fasta", required=True, help="Path to the FASTA file.")
    p.add_argument("-i", "--index-file", dest="index", default=None,
                   help="Path to the .fai index file. Defaults to FASTA.fai")
    p.add_argument("-o", "--out-file", dest="output", default=None,
                   help="Path to the resulting file. If omitted, result is printed to stdout.")
    p.add_argument("-r", "--region", action="append", default=[],
                   help="Region to retrieve (NAME, NAME:START or NAME:START-END, 1-based). "
                        "Repeat -r for several regions.")
    p.add_argument("--line-length", type=int, default=fmt_fasta.DEFAULT_LINE_LENGTH,
                   help="Wrap output sequence lines at this width; 0 disables wrapping.")
    p.add_argument("--rebuild", action="store_true", help="Rebuild the index even if one exists.")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="Log to STDERR (-v progress, -vv debug).")
    return p.parse_args(argv)


def _setup_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    level = logging.DEBUG if verbosity >= 2 else logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger("fxlib").setLevel(level)


def resolve_regions(index: FaiIndex, texts: Sequence[str]) -> List[Tuple[str, Region]]:
    """Parse all region strings and check their names before anything is written."""
    out: List[Tuple[str, Region]] = []
    for text in texts:
        region = parse_region(text)
        if region.seq_name not in index:
            raise UnknownSequence(region.seq_name)
        out.append((text, region))
    return out


def write_regions(fasta_path: str, index: FaiIndex, regions: Sequence[Tuple[str, Region]],
                  out: TextIO, line_length: int) -> None:
    with open(fasta_path, "rb") as fh:
        for text, region in regions:
            seq = fetch(fh, index[region.seq_name], region.begin_pos, region.end_pos)
            fmt_fasta.encode([(text, seq)], sink=out, line_length=line_length)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.verbose)

    if not os.path.exists(args.fasta):
        print(f"[error] file not found: {args.fasta}", file=sys.stderr)
        return 2
    if args.line_length < 0:
        print("[error] --line-length must be >= 0", file=sys.stderr)
        return 2

    fai_path = args.index or default_index_path(args.fasta)
    try:
        index = load_or_build_index(args.fasta, fai_path, rebuild=args.rebuild)
    except (FxError, OSError) as exc:
        print(f"[error] Could not build FAI index at {fai_path} for FASTA file {args.fasta}: {exc}",
              file=sys.stderr)
        return 1

    if not args.region:
        return 0

    try:
        regions = resolve_regions(index, args.region)
    except ParseError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    except UnknownSequence as exc:
        print(f"[error] Unknown sequence for region: no sequence named {exc.name!r} in {fai_path}", file=sys.stderr)
        return 1

    sink: Optional[TextIO] = None
    try:
        if args.output:
            try:
                sink = open(args.output, "wt", encoding="utf-8", newline="\n")
            except OSError as exc:
                print(f"[error] Could not open output file {args.output}: {exc}", file=sys.stderr)
                return 1
            out = sink
        else:
            out = sys.stdout
        write_regions(args.fasta, index, regions, out, args.line_length)
    except (FxError, OSError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    finally:
        if sink is not None:
            sink.close()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
