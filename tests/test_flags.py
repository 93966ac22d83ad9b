"""Tests for directive markers in identifiers."""

from cmdwire.flags import Flag, normalize, parse_flag


def test_plain_name_has_no_flags():
    """Plain names should carry no flags."""
    assert parse_flag("send") == (Flag.NONE, "send")


def test_admin_marker():
    """The A marker should set the admin flag."""
    assert parse_flag("Aーecho") == (Flag.ADMIN_ONLY, "echo")


def test_raw_marker():
    """The R marker should set the raw flag."""
    assert parse_flag("RーGOOS") == (Flag.RAW, "GOOS")


def test_markers_combine_in_any_order():
    """Markers should combine in any order."""
    both = Flag.ADMIN_ONLY | Flag.RAW
    assert parse_flag("ARーDie") == (both, "Die")
    assert parse_flag("RAーDie") == (both, "Die")


def test_unknown_marker_leaves_identifier_untouched():
    """Unknown markers should leave the name as written."""
    assert parse_flag("Xーfoo") == (Flag.NONE, "Xーfoo")
    assert parse_flag("AXーfoo") == (Flag.NONE, "AXーfoo")


def test_separator_without_name_or_markers_is_not_a_directive():
    """A bare separator should not be read as a directive."""
    assert parse_flag("ーfoo") == (Flag.NONE, "ーfoo")
    assert parse_flag("Aー") == (Flag.NONE, "Aー")


def test_is_checks_all_bits():
    """is_ should require every requested bit."""
    flag = Flag.ADMIN_ONLY
    assert flag.is_(Flag.ADMIN_ONLY)
    assert not flag.is_(Flag.RAW)
    assert not flag.is_(Flag.NONE)


def test_normalize_respects_raw():
    """Raw names should keep their case when normalized."""
    assert normalize(Flag.NONE, "Hello") == "hello"
    assert normalize(Flag.RAW, "Hello") == "Hello"
