import pytest

from stridex import RawSpec, SpecParseError, parse_index, parse_spec


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1:3, ..., newaxis, ::-1", (slice(1, 3), Ellipsis, None, slice(None, None, -1))),
        ("", ()),
        ("[0, -1]", (0, -1)),
        ("None, 2:", (None, slice(2, None))),
        (":", (slice(None),)),
        ("-3:-1:2,", (slice(-3, -1, 2),)),
        ("  1 : 3 ", (slice(1, 3),)),
    ],
)
def test_parse_index(text, expected):
    assert parse_index(text) == expected


def test_parse_spec_builds_raw_spec():
    assert parse_spec("1:3:2") == RawSpec.from_index(slice(1, 3, 2))


def test_parse_error_reports_column():
    with pytest.raises(SpecParseError) as excinfo:
        parse_index("1:3,?")
    assert excinfo.value.line == 1
    assert excinfo.value.column == 5
    assert "^" in str(excinfo.value)
