# fxlib/__init__.py
from .errors import FxError, ParseError, MalformedSource, CorruptIndex, UnknownSequence, OutOfRange
from .sequences.region import Region, parse_region
from .sequences.fai import IndexEntry, FaiIndex, build_index, save_index, load_index, load_or_build_index

# Convenience re-exports for direct functional use (optional)
from .sequences.base import SequenceSource, DictSequenceSource
from .sequences.fasta import FastaSequenceSource, IndexedFastaSequenceSource, fetch
