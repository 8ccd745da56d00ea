"""Tests for the default type compatibility oracle (kernel/types.py)."""

import pytest

from schemadelta.codes import TypeVerdict
from schemadelta.kernel.types import (
    TypeCompatibilityOracle,
    TypeRegistry,
    UnresolvableTypeError,
    default_oracle,
)


@pytest.mark.parametrize(
    "old_type,new_type,expected",
    [
        ("string", "string", TypeVerdict.IDENTICAL),
        ("int", "integer", TypeVerdict.IDENTICAL),
        ("varchar", "string", TypeVerdict.IDENTICAL),
        ("string", "text", TypeVerdict.WIDENING),
        ("string", "longText", TypeVerdict.WIDENING),
        ("tinyInteger", "bigInteger", TypeVerdict.WIDENING),
        ("int", "bigint", TypeVerdict.WIDENING),
        ("date", "timestamp", TypeVerdict.WIDENING),
        ("email", "text", TypeVerdict.WIDENING),
        ("bigInteger", "integer", TypeVerdict.NARROWING),
        ("text", "string", TypeVerdict.NARROWING),
        ("double", "float", TypeVerdict.NARROWING),
        ("string", "integer", TypeVerdict.INCOMPATIBLE),
        ("boolean", "date", TypeVerdict.INCOMPATIBLE),
        ("json", "string", TypeVerdict.INCOMPATIBLE),
    ],
)
def test_default_verdicts(old_type, new_type, expected):
    assert default_oracle().compare(old_type, new_type) is expected


def test_unknown_type_raises_with_type_name():
    with pytest.raises(UnresolvableTypeError) as excinfo:
        default_oracle().compare("string", "hologram")
    assert excinfo.value.type_name == "hologram"
    assert isinstance(excinfo.value, LookupError)


def test_registry_is_an_oracle():
    assert isinstance(default_oracle(), TypeCompatibilityOracle)


def test_register_custom_type_and_widening():
    registry = TypeRegistry()
    registry.register_type("money_cents")
    registry.register_alias("cents", "money_cents")
    registry.register_widening("money_cents", "bigInteger")

    assert registry.has_type("cents")
    assert registry.compare("cents", "bigint") is TypeVerdict.WIDENING
    assert registry.compare("bigInteger", "money_cents") is TypeVerdict.NARROWING


def test_alias_to_unknown_type_rejected():
    registry = TypeRegistry()
    with pytest.raises(ValueError):
        registry.register_alias("thing", "not_a_type")


def test_widening_closure_is_transitive():
    registry = default_oracle()
    assert {"smallInteger", "mediumInteger", "integer", "bigInteger"} <= registry.widens_to("tinyint")
    assert "tinyInteger" not in registry.widens_to("tinyInteger")


def test_fresh_registries_are_independent():
    first = default_oracle()
    first.register_type("custom")
    assert not default_oracle().has_type("custom")
