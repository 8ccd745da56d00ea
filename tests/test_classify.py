"""Tests for the change classifier (kernel/classify.py)."""

import logging

import pytest

from schemadelta.codes import ChangeKind, DataLossRisk, Severity, TypeVerdict
from schemadelta.kernel.classify import classify
from schemadelta.kernel.diff import diff_fields, diff_relationships
from schemadelta.kernel.schema import Field, Relationship
from schemadelta.kernel.types import UnresolvableTypeError, default_oracle


def _classify_field(old, new, oracle=None):
    old_fields = [Field.model_validate(old)] if old else []
    new_fields = [Field.model_validate(new)] if new else []
    (change,) = diff_fields(old_fields, new_fields)
    return classify(change, oracle or default_oracle())


def _classify_relationship(old, new, old_fields=()):
    old_relationships = [Relationship.model_validate(old)] if old else []
    new_relationships = [Relationship.model_validate(new)] if new else []
    fields = [Field.model_validate(f) for f in old_fields]
    (change,) = diff_relationships(old_relationships, new_relationships, old_fields=fields)
    return classify(change, default_oracle())


class _FailingOracle:
    def compare(self, old_type, new_type):
        raise UnresolvableTypeError(new_type)


def test_field_removed_is_breaking_high():
    result = _classify_field({"name": "email", "type": "string"}, None)
    assert result.kind is ChangeKind.FIELD_REMOVED
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.HIGH
    assert result.before["name"] == "email"
    assert result.after is None


def test_required_field_added_without_default_is_breaking():
    result = _classify_field(None, {"name": "age", "type": "integer", "nullable": False})
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.NONE
    assert "without a default" in result.description


@pytest.mark.parametrize(
    "field",
    [
        {"name": "age", "type": "integer", "nullable": True},
        {"name": "age", "type": "integer", "nullable": False, "default": 0},
    ],
)
def test_optional_field_added_is_non_breaking(field):
    result = _classify_field(None, field)
    assert result.severity is Severity.NON_BREAKING
    assert result.data_loss_risk is DataLossRisk.NONE


@pytest.mark.parametrize(
    "old_type,new_type,severity,risk,verdict",
    [
        ("int", "integer", Severity.NON_BREAKING, DataLossRisk.NONE, TypeVerdict.IDENTICAL),
        ("string", "text", Severity.NON_BREAKING, DataLossRisk.LOW, TypeVerdict.WIDENING),
        ("bigInteger", "integer", Severity.BREAKING, DataLossRisk.MEDIUM, TypeVerdict.NARROWING),
        ("string", "boolean", Severity.BREAKING, DataLossRisk.HIGH, TypeVerdict.INCOMPATIBLE),
    ],
)
def test_type_change_follows_oracle_verdict(old_type, new_type, severity, risk, verdict):
    result = _classify_field({"name": "x", "type": old_type}, {"name": "x", "type": new_type})
    assert result.severity is severity
    assert result.data_loss_risk is risk
    assert result.type_verdict is verdict
    assert result.unresolvable is False


def test_unresolvable_type_is_breaking_high_and_named(caplog):
    with caplog.at_level(logging.WARNING, logger="schemadelta.kernel.classify"):
        result = _classify_field({"name": "x", "type": "string"}, {"name": "x", "type": "hologram"})

    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.HIGH
    assert result.unresolvable is True
    assert result.unresolved_types == ["hologram"]
    assert "hologram" in result.description
    assert result.type_verdict is None
    assert "hologram" in caplog.text


def test_custom_oracle_failure_is_recovered():
    result = _classify_field(
        {"name": "x", "type": "a"},
        {"name": "x", "type": "b"},
        oracle=_FailingOracle(),
    )
    assert result.unresolvable is True
    assert result.data_loss_risk is DataLossRisk.HIGH


class _StringOracle:
    def compare(self, old_type, new_type):
        return "widening"


def test_custom_oracle_string_verdict_is_accepted():
    result = _classify_field(
        {"name": "x", "type": "a"},
        {"name": "x", "type": "b"},
        oracle=_StringOracle(),
    )
    assert result.type_verdict is TypeVerdict.WIDENING
    assert result.severity is Severity.NON_BREAKING
    assert result.data_loss_risk is DataLossRisk.LOW


def test_nullable_tightened_is_breaking_medium():
    result = _classify_field(
        {"name": "x", "type": "string", "nullable": True},
        {"name": "x", "type": "string", "nullable": False},
    )
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.MEDIUM


def test_nullable_loosened_is_non_breaking():
    result = _classify_field(
        {"name": "x", "type": "string", "nullable": False},
        {"name": "x", "type": "string", "nullable": True},
    )
    assert result.severity is Severity.NON_BREAKING
    assert result.data_loss_risk is DataLossRisk.NONE


@pytest.mark.parametrize("attribute", ["length", "precision", "scale"])
def test_size_decrease_is_breaking_medium(attribute):
    result = _classify_field(
        {"name": "x", "type": "decimal", attribute: 10},
        {"name": "x", "type": "decimal", attribute: 5},
    )
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.MEDIUM
    assert "truncation" in result.description


@pytest.mark.parametrize("old_size,new_size", [(5, 10), (None, 10), (10, None)])
def test_size_increase_or_constraint_change_is_non_breaking(old_size, new_size):
    result = _classify_field(
        {"name": "x", "type": "string", "length": old_size},
        {"name": "x", "type": "string", "length": new_size},
    )
    assert result.severity is Severity.NON_BREAKING
    assert result.data_loss_risk is DataLossRisk.NONE


def test_unique_added_is_breaking_low_warning():
    result = _classify_field(
        {"name": "email", "type": "string"},
        {"name": "email", "type": "string", "unique": True},
    )
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.LOW
    assert "duplicate" in result.description


@pytest.mark.parametrize(
    "old,new",
    [
        ({"unique": True}, {"unique": False}),
        ({"index": False}, {"index": True}),
        ({"default": "a"}, {"default": "b"}),
        ({"comment": "old"}, {"comment": "new"}),
        ({"rules": ["email"]}, {"rules": ["email", "max:10"]}),
        ({"extra": {"cast": "a"}}, {"extra": {"cast": "b"}}),
    ],
)
def test_metadata_attribute_changes_are_non_breaking(old, new):
    result = _classify_field({"name": "x", "type": "string", **old}, {"name": "x", "type": "string", **new})
    assert result.severity is Severity.NON_BREAKING
    assert result.data_loss_risk is DataLossRisk.NONE


def test_multiple_reasons_take_max_and_keep_every_description():
    result = _classify_field(
        {"name": "age", "type": "bigInteger", "nullable": True, "index": False},
        {"name": "age", "type": "integer", "nullable": False, "index": True},
    )

    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.MEDIUM
    assert len(result.reasons) == 3
    assert "narrowed" in result.description
    assert "no longer nullable" in result.description
    assert "Index added" in result.description


def test_widening_plus_unique_is_breaking_low():
    result = _classify_field(
        {"name": "code", "type": "string"},
        {"name": "code", "type": "text", "unique": True},
    )
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.LOW


def test_relationship_added_is_non_breaking():
    result = _classify_relationship(None, {"name": "tags", "type": "belongsToMany", "target": "Tag"})
    assert result.kind is ChangeKind.RELATIONSHIP_ADDED
    assert result.severity is Severity.NON_BREAKING
    assert result.data_loss_risk is DataLossRisk.NONE


def test_relationship_removed_is_breaking_medium():
    result = _classify_relationship({"name": "comments", "type": "hasMany", "target": "Comment"}, None)
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.MEDIUM


def test_relationship_removed_owning_required_fk_is_high():
    result = _classify_relationship(
        {"name": "user", "type": "belongsTo", "target": "User"},
        None,
        old_fields=[{"name": "user_id", "type": "foreignId"}],
    )
    assert result.data_loss_risk is DataLossRisk.HIGH
    assert "user_id" in result.description


def test_relationship_type_change_is_breaking_medium():
    result = _classify_relationship(
        {"name": "author", "type": "belongsTo", "target": "User"},
        {"name": "author", "type": "hasOne", "target": "User"},
    )
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.MEDIUM


@pytest.mark.parametrize(
    "changed",
    [{"target": "Admin"}, {"foreign_key": "writer_id"}, {"local_key": "uuid"}],
)
def test_relationship_reference_change_is_breaking_low(changed):
    old = {"name": "author", "type": "belongsTo", "target": "User"}
    result = _classify_relationship(old, {**old, **changed})
    assert result.severity is Severity.BREAKING
    assert result.data_loss_risk is DataLossRisk.LOW


def test_classification_is_independent_of_other_changes():
    old = [Field(name="a", type="string"), Field(name="b", type="string", nullable=True)]
    new = [Field(name="b", type="string", nullable=False)]
    oracle = default_oracle()

    together = {c.name: classify(c, oracle) for c in diff_fields(old, new)}
    alone = {c.name: classify(c, oracle) for c in diff_fields(old[1:], new)}

    assert together["b"] == alone["b"]
