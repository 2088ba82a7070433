from pathlib import Path
import pytest

# Fixture to initialize the location of test data
# files for use in tests.  E.g.
#
#   def test_something(test_data_dir):
#       fa = test_data_dir / "ex1.fa"
#
@pytest.fixture(scope="session")
def test_data_dir() -> Path:
    # tests/data
    return Path(__file__).resolve().parent / "data"


def wrap(seq: str, width: int, newline: str = "\n") -> str:
    if not seq:
        return ""
    return "".join(seq[i:i + width] + newline for i in range(0, len(seq), width))


@pytest.fixture
def write_fasta(tmp_path):
    """
    Factory writing a FASTA file from (name, sequence) pairs, wrapped at
    `width` with the given line terminator. Returns the path as str.
    """
    def _write(records, width=10, newline="\n", name="x.fa"):
        path = tmp_path / name
        text = "".join(f">{n}{newline}" + wrap(s, width, newline) for n, s in records)
        path.write_bytes(text.encode("ascii"))
        return str(path)
    return _write
