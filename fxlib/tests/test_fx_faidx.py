import logging
import shutil
import pytest
from fx_faidx import main

@pytest.fixture
def ex1(test_data_dir, tmp_path):
    dst = tmp_path / "ex1.fa"
    shutil.copyfile(test_data_dir / "ex1.fa", dst)
    return dst

def test_index_only_writes_default_fai(ex1):
    assert main(["-f", str(ex1)]) == 0
    fai = ex1.with_name("ex1.fa.fai")
    assert fai.read_text().splitlines()[0] == "seq1\t24\t26\t10\t11"

def test_explicit_index_path(ex1, tmp_path):
    fai = tmp_path / "other.fai"
    assert main(["-f", str(ex1), "-i", str(fai)]) == 0
    assert fai.exists()
    assert not ex1.with_name("ex1.fa.fai").exists()

def test_regions_to_stdout(ex1, capsys):
    rc = main(["-f", str(ex1), "-r", "seq1:11-20", "-r", "seq1:21-30", "-r", "seq2", "--line-length", "8"])
    assert rc == 0
    out = capsys.readouterr().out
    assert out == (
        ">seq1:11-20\nACGTACGT\nAC\n"
        ">seq1:21-30\nACGT\n"
        ">seq2\nGGGATACG\nGACCACAC\n"
    )

def test_regions_to_file(ex1, tmp_path):
    out = tmp_path / "out.fa"
    assert main(["-f", str(ex1), "-r", "chrM:1,0-1,5", "-o", str(out)]) == 0
    assert out.read_text() == ">chrM:1,0-1,5\nTAAAAA\n"

def test_parse_error_aborts_before_output(ex1, capsys):
    assert main(["-f", str(ex1), "-r", "seq1:1-5", "-r", "seq1:x"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[error]" in captured.err and "seq1:x" in captured.err

def test_unknown_sequence(ex1, capsys):
    assert main(["-f", str(ex1), "-r", "chr9:1-5"]) == 1
    assert "Unknown sequence" in capsys.readouterr().err

def test_empty_record_out_of_range(ex1, capsys):
    assert main(["-f", str(ex1), "-r", "empty"]) == 0
    assert capsys.readouterr().out == ">empty\n"
    assert main(["-f", str(ex1), "-r", "empty:1-5"]) == 1
    assert "out of range" in capsys.readouterr().err

def test_missing_fasta(tmp_path, capsys):
    assert main(["-f", str(tmp_path / "nope.fa")]) == 2
    assert "not found" in capsys.readouterr().err

def test_malformed_fasta(tmp_path, capsys):
    fa = tmp_path / "bad.fa"
    fa.write_bytes(b">a\nACGT\nAC\nACGT\n")
    assert main(["-f", str(fa)]) == 1
    assert "Could not build FAI index" in capsys.readouterr().err
    assert not (tmp_path / "bad.fa.fai").exists()

@pytest.fixture
def fxlib_log_level():
    logger = logging.getLogger("fxlib")
    level = logger.level
    yield logger
    logger.setLevel(level)

def test_rebuild_overwrites_existing_index(ex1, capsys):
    fai = ex1.with_name("ex1.fa.fai")
    fai.write_text("seq1\t4\t26\t10\t11\n")
    assert main(["-f", str(ex1), "-r", "seq1"]) == 0
    assert capsys.readouterr().out == ">seq1\nACGT\n"

    assert main(["-f", str(ex1), "--rebuild", "-r", "seq1"]) == 0
    assert capsys.readouterr().out == ">seq1\nACGTACGTACACGTACGTACACGT\n"
    assert fai.read_text().splitlines()[0] == "seq1\t24\t26\t10\t11"

def test_verbose_logs_progress(ex1, caplog, fxlib_log_level):
    assert main(["-f", str(ex1), "-v"]) == 0
    assert fxlib_log_level.level == logging.INFO
    assert "building index" in caplog.text
    assert "indexed seq1" not in caplog.text

def test_very_verbose_logs_each_record(ex1, caplog, fxlib_log_level):
    assert main(["-f", str(ex1), "-vv"]) == 0
    assert fxlib_log_level.level == logging.DEBUG
    assert "indexed seq1: length=24 offset=26" in caplog.text
    assert "indexed chrM" in caplog.text

def test_line_length_zero_disables_wrapping(ex1, capsys):
    assert main(["-f", str(ex1), "-r", "seq1", "-r", "seq2:3-14", "--line-length", "0"]) == 0
    assert capsys.readouterr().out == (
        ">seq1\nACGTACGTACACGTACGTACACGT\n"
        ">seq2:3-14\nGATACGGACCAC\n"
    )

def test_negative_line_length_rejected(ex1, capsys):
    assert main(["-f", str(ex1), "--line-length", "-1"]) == 2
    assert "--line-length" in capsys.readouterr().err
