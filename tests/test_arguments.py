"""Tests for argument coercion and the custom argument registry."""

import math

import pytest

from cmdwire.arguments import (
    ArgumentRegistry,
    CustomSingleToken,
    Int8,
    ManualWholeLine,
    Scalar,
    Uint8,
    Uint16,
)
from cmdwire.exceptions import ConfigurationError, InvalidArgument


class Color:
    def __init__(self):
        self.value = ""

    def parse(self, token):
        if token not in ("red", "green", "blue"):
            return ValueError(f"unknown color {token}")
        self.value = token
        return None


class Everything:
    def __init__(self):
        self.tokens = []

    def parse_content(self, tokens):
        self.tokens = tokens


class Unsupported:
    pass


# -------------------------------------------------------------------
# Scalars
# -------------------------------------------------------------------

def test_str_is_identity():
    """String arguments should pass through unchanged."""
    assert Scalar(str).coerce("hello") == "hello"


def test_int_parses_base_ten():
    """Integers should parse in base ten only."""
    assert Scalar(int).coerce("42") == 42
    assert Scalar(int).coerce("-7") == -7


@pytest.mark.parametrize("token", ["abc", "0x10", "1_000", " 4", "4.0", ""])
def test_int_rejects_malformed(token):
    """Malformed integers should be invalid arguments."""
    with pytest.raises(InvalidArgument):
        Scalar(int).coerce(token)


def test_sized_int_is_narrowed_to_declared_type():
    """Sized integers should come back as their declared type."""
    value = Scalar(Int8).coerce("-128")
    assert value == -128
    assert type(value) is Int8


def test_sized_int_out_of_range_is_rejected_not_wrapped():
    """Out-of-range sized integers should be rejected, not wrapped."""
    with pytest.raises(InvalidArgument):
        Scalar(Int8).coerce("128")
    with pytest.raises(InvalidArgument):
        Scalar(Uint8).coerce("256")


def test_unsigned_rejects_sign():
    """Unsigned integers should reject a leading sign."""
    with pytest.raises(InvalidArgument):
        Scalar(Uint16).coerce("-1")
    assert Scalar(Uint16).coerce("65535") == 65535


def test_float():
    """Floats should parse from decimal and exponent forms."""
    assert Scalar(float).coerce("2.5") == 2.5
    assert Scalar(float).coerce("1e3") == 1000.0
    with pytest.raises(InvalidArgument):
        Scalar(float).coerce("two")


@pytest.mark.parametrize("token", ["true", "yes", "y", "Y", "1"])
def test_bool_true(token):
    """Accepted true spellings should parse to True."""
    assert Scalar(bool).coerce(token) is True


@pytest.mark.parametrize("token", ["false", "no", "n", "N", "0"])
def test_bool_false(token):
    """Accepted false spellings should parse to False."""
    assert Scalar(bool).coerce(token) is False


def test_bool_rejects_anything_else():
    """Unlisted bool spellings should be invalid arguments."""
    with pytest.raises(InvalidArgument, match="invalid bool"):
        Scalar(bool).coerce("TRUE")


# -------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------

def test_resolve_scalars():
    """Scalar annotations should resolve to scalar specs."""
    registry = ArgumentRegistry()
    assert registry.resolve(int) == Scalar(int)
    assert registry.resolve(Uint8) == Scalar(Uint8)


def test_resolve_manual():
    """Types with parse_content should resolve to manual specs."""
    assert ArgumentRegistry().resolve(Everything) == ManualWholeLine(Everything)


def test_resolve_unsupported_is_configuration_error():
    """Unsupported annotations should fail as configuration errors."""
    with pytest.raises(ConfigurationError, match="invalid argument type"):
        ArgumentRegistry().resolve(Unsupported)


def test_custom_template_is_reused():
    """Registered custom templates should be reused across parses."""
    registry = ArgumentRegistry()
    template = Color()
    registry.register(template)

    spec = registry.resolve(Color)
    assert isinstance(spec, CustomSingleToken)
    assert spec.coerce("red") is template
    assert template.value == "red"
    assert spec.coerce("blue") is template


def test_custom_template_failure_is_invalid_argument():
    """Custom parse failures should surface as invalid arguments."""
    registry = ArgumentRegistry()
    registry.register(Color())
    with pytest.raises(InvalidArgument, match="unknown color"):
        registry.resolve(Color).coerce("purple")


def test_register_rejects_objects_without_parse():
    """Registering an object without parse should fail."""
    with pytest.raises(ConfigurationError):
        ArgumentRegistry().register(Unsupported())


def test_lookup_falls_back_to_parent():
    """Registry lookups should fall back to the parent registry."""
    parent = ArgumentRegistry()
    parent.register(Color())
    child = ArgumentRegistry(parent=parent)
    assert Color in child
    assert isinstance(child.resolve(Color), CustomSingleToken)
    assert Color not in ArgumentRegistry()


def test_manual_builds_fresh_instance():
    """Manual types should get a fresh instance per call."""
    spec = ManualWholeLine(Everything)
    first = spec.construct(["cmd", "a"])
    second = spec.construct(["cmd", "b"])
    assert first is not second
    assert first.tokens == ["cmd", "a"]


@pytest.mark.parametrize("kind", [int, Int8, Uint8])
def test_integer_past_digit_limit_is_invalid_argument(kind):
    """Integers past the digit limit should be invalid arguments."""
    with pytest.raises(InvalidArgument, match="out of range"):
        Scalar(kind).coerce("9" * 5000)


@pytest.mark.parametrize("token", ["1e400", "-1e400"])
def test_float_overflow_is_rejected(token):
    """Float literals that overflow should be rejected."""
    with pytest.raises(InvalidArgument, match="out of range"):
        Scalar(float).coerce(token)


def test_float_accepts_explicit_infinity():
    """Spelled-out infinity should still parse."""
    assert math.isinf(Scalar(float).coerce("inf"))
    assert Scalar(float).coerce("-Infinity") < 0
