import gzip

import pytest
from exbn import BIFParseError, EvidenceError, ExactBN, parse_bif, parse_evidence, read_bif
from exbn.cli import load_default_network

HEADER = """
network "tiny" { }
variable x {
  type discrete [ 2 ] { yes, no };
}
variable y {
  type discrete [ 3 ] { lo, mid, hi };
}
variable z {
  type discrete [ 2 ] { on, off };
}
probability ( x ) {
  table 0.25, 0.75;
}
probability ( y ) {
  table 0.2, 0.3, 0.5;
}
"""


def test_fixture_cpts(gradient_network):
    d = gradient_network.variable("d")
    assert d.parents == ("b", "c")
    assert d.cpt == ((0.9, 0.1), (0.7, 0.3), (0.6, 0.4), (0.1, 0.9))
    e = gradient_network.variable("e")
    assert e.cpt[5] == (0.6, 0.4)
    assert gradient_network.variable("a").cpt == ((0.5, 0.5),)


def test_tuple_rows_are_placed_by_value_not_by_position():
    ordered = parse_bif(
        HEADER
        + """
probability ( z | x, y ) {
  (yes, lo) 0.1, 0.9;  (yes, mid) 0.2, 0.8;  (yes, hi) 0.3, 0.7;
  (no, lo) 0.4, 0.6;   (no, mid) 0.5, 0.5;   (no, hi) 0.6, 0.4;
}
"""
    )
    shuffled = parse_bif(
        HEADER
        + """
probability ( z | x, y ) {
  (no, hi) 0.6, 0.4;
  (yes, mid) 0.2, 0.8;
  (no, lo) 0.4, 0.6;
  (yes, hi) 0.3, 0.7;
  (yes, lo) 0.1, 0.9;
  (no, mid) 0.5, 0.5;
}
"""
    )
    z = ordered.variable("z")
    assert z.cpt == shuffled.variable("z").cpt
    assert [row[0] for row in z.cpt] == [0.1, 0.2, 0.3, 0.4, 0.5, 0.6]


def test_conditional_table_and_default_rows():
    net = parse_bif(
        HEADER
        + """
probability ( z | x, y ) {
  table 0.1 0.9 0.2 0.8 0.3 0.7 0.4 0.6 0.5 0.5 0.6 0.4;
}
"""
    )
    assert [row[0] for row in net.variable("z").cpt] == [0.1, 0.2, 0.3, 0.4, 0.5, 0.6]

    net = parse_bif(
        HEADER
        + """
probability ( z | x, y ) {
  (no, hi) 0.9, 0.1;
  default 0.5, 0.5;
}
"""
    )
    cpt = net.variable("z").cpt
    assert cpt[5] == (0.9, 0.1)
    assert all(row == (0.5, 0.5) for row in cpt[:5])
    net.validate()


def test_comments_are_ignored():
    net = parse_bif(
        """
// leading comment
network "c" { }
/* block
   comment */
variable x { type discrete [ 2 ] { t, f }; }  // trailing
probability ( x ) { table 0.4, 0.6; }
"""
    )
    assert net.variable("x").cpt == ((0.4, 0.6),)


@pytest.mark.parametrize(
    "body, fragment",
    [
        ("probability ( z | x, y ) { (yes, lo) 0.1, 0.9; }", "missing 5 of 6 rows"),
        ("probability ( z | x, q ) { default 0.5, 0.5; }", "unknown variable 'q'"),
        ("probability ( z | x, y ) { table 0.5, 0.5; }", "has 2 entries"),
        ("probability ( z | x, y ) { (maybe, lo) 0.5, 0.5; default 0.5, 0.5; }", "not a value"),
        ("probability ( z | x, y ) { (yes, lo) 0.5; default 0.5, 0.5; }", "has 1 entries"),
        ("probability ( z | x, y ) { (yes, lo) 0.5, abc; default 0.5, 0.5; }", "invalid probability"),
        ("probability ( z | x, x ) { default 0.5, 0.5; }", "parent twice"),
    ],
)
def test_malformed_blocks_raise(body, fragment):
    with pytest.raises(BIFParseError) as info:
        parse_bif(HEADER + body)
    assert fragment in str(info.value)
    assert info.value.line is not None
    assert str(info.value).startswith(f"line {info.value.line}: ")


def test_error_reports_the_offending_line():
    text = HEADER + "probability ( z ) {\n  table 0.5, 0.5;\n  bogus 1;\n}\n"
    with pytest.raises(BIFParseError) as info:
        parse_bif(text)
    assert info.value.line == text.splitlines().index("  bogus 1;") + 1


def test_variable_declarations_are_checked():
    with pytest.raises(BIFParseError, match="declares 3 values"):
        parse_bif("variable x { type discrete [ 3 ] { a, b }; }")
    with pytest.raises(BIFParseError, match="no probability block"):
        parse_bif("variable x { type discrete [ 2 ] { a, b }; }")
    with pytest.raises(BIFParseError, match="declared twice"):
        parse_bif(
            "variable x { type discrete [ 2 ] { a, b }; }"
            "variable x { type discrete [ 2 ] { a, b }; }"
        )


def test_read_plain_and_gzip(tmp_path, gradient_network):
    text = (
        "network \"g\" { }\n"
        "variable a { type discrete [ 2 ] { true, false }; }\n"
        "probability ( a ) { table 0.5, 0.5; }\n"
    )
    plain = tmp_path / "net.bif"
    plain.write_text(text, encoding="utf-8")
    packed = tmp_path / "net.bif.gz"
    with gzip.open(packed, "wt", encoding="utf-8") as f:
        f.write(text)

    assert read_bif(plain).variable("a").cpt == read_bif(packed).variable("a").cpt
    assert load_default_network().names() == gradient_network.names()


def test_bn_from_bif_string_and_file(tmp_path):
    text = "variable a { type discrete [ 2 ] { t, f }; }\nprobability ( a ) { table 0.2, 0.8; }\n"
    path = tmp_path / "a.bif"
    path.write_text(text, encoding="utf-8")
    assert ExactBN.from_bif_string(text).marginal("a") == pytest.approx({"t": 0.2, "f": 0.8})
    assert ExactBN.from_bif(path).network.variable("a").cpt == ((0.2, 0.8),)


@pytest.mark.parametrize(
    "text, expected",
    [
        (None, {}),
        ("", {}),
        ("a=true", {"a": "true"}),
        (" a = true , c=false ", {"a": "true", "c": "false"}),
        ("a=true,,c=false,", {"a": "true", "c": "false"}),
        ("a=true,a=false", {"a": "false"}),
    ],
)
def test_parse_evidence(text, expected):
    assert parse_evidence(text) == expected


@pytest.mark.parametrize("text", ["a", "a=", "=true", "a=true,c"])
def test_parse_evidence_rejects_malformed_pairs(text):
    with pytest.raises(EvidenceError):
        parse_evidence(text)
