import pytest
from fxlib.errors import ParseError
from fxlib.sequences.region import Region, _RegionScanner, parse_region

def test_name_only():
    r = parse_region("chr1")
    assert r == Region("chr1", None, None)

def test_start_only_is_zero_based():
    r = parse_region("chrX:1,000")
    assert r.seq_name == "chrX"
    assert r.begin_pos == 999
    assert r.end_pos is None

def test_start_end_with_separators():
    r = parse_region("chr1:1,000-2,000")
    assert (r.seq_name, r.begin_pos, r.end_pos) == ("chr1", 999, 2000)

def test_single_base():
    r = parse_region("seq1:5-5")
    assert (r.begin_pos, r.end_pos) == (4, 5)

def test_name_may_contain_dash_and_dot():
    r = parse_region("HLA-A.1:10-20")
    assert r.seq_name == "HLA-A.1"
    assert (r.begin_pos, r.end_pos) == (9, 20)

def test_end_before_start_is_not_a_parse_error():
    # clamping to an empty range is the fetcher's job
    r = parse_region("chr1:100-10")
    assert (r.begin_pos, r.end_pos) == (99, 10)

@pytest.mark.parametrize("s,e", [(1, 1), (1, 24), (10, 20), (999, 2000), (1234567, 7654321)])
def test_roundtrip_numeric_values(s, e):
    text = f"chr1:{s}-{e}"
    r = parse_region(text)
    assert r.to_string() == text
    assert parse_region(r.to_string()) == r

def test_to_string_forms():
    assert str(Region("chr1")) == "chr1"
    assert str(Region("chr1", 9)) == "chr1:10"
    assert str(Region("chr1", None, 5)) == "chr1:1-5"

@pytest.mark.parametrize("text,field", [
    ("", "name"),
    (":1-10", "name"),
    ("chr1:", "start"),
    ("chr1:0", "start"),
    ("chr1:0-10", "start"),
    ("chr1:,", "start"),
    ("chr1:-10", "start"),
    ("chr1:1x", "start"),
    ("chr1:1:5", "start"),
    ("chr1:5-", "end"),
    ("chr1:5-0", "end"),
    ("chr1:5-10x", "end"),
    ("chr1:5-10-20", "end"),
    ("chr1:5-1 0", "end"),
])
def test_rejections(text, field):
    with pytest.raises(ParseError) as ei:
        parse_region(text)
    assert ei.value.field == field
    assert ei.value.region == text
    assert repr(text) in str(ei.value)

def test_error_carries_offending_fragment():
    with pytest.raises(ParseError) as ei:
        parse_region("chr1:12a4-20")
    assert ei.value.fragment == "12a"

def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse_region("chr1:abc")

def test_input_after_done_is_rejected():
    scanner = _RegionScanner("chr1:1-5")
    assert scanner.run() == Region("chr1", 0, 5)
    with pytest.raises(ParseError) as ei:
        scanner.step(len(scanner.text), "x")
    assert ei.value.field == "end"
    assert ei.value.reason == "trailing input"
    with pytest.raises(ParseError):
        scanner.step(len(scanner.text), None)
