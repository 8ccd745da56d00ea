"""Tests for the compatibility aggregator (kernel/aggregate.py)."""

from schemadelta.codes import ChangeKind, Compatibility, DataLossRisk, ImpactLevel, Severity
from schemadelta.kernel.aggregate import aggregate
from schemadelta.kernel.classify import ClassifiedChange
from schemadelta.kernel.schema import Schema


def _change(kind, name="x", severity=Severity.NON_BREAKING, risk=DataLossRisk.NONE):
    return ClassifiedChange(
        kind=kind,
        category=kind.category,
        name=name,
        severity=severity,
        data_loss_risk=risk,
        description=f"{kind.value} {name}",
    )


def test_no_changes_is_fully_compatible_low():
    summary = aggregate([], [])
    assert summary.compatibility is Compatibility.FULLY_COMPATIBLE
    assert summary.impact_level is ImpactLevel.LOW
    assert summary.total_changes == 0


def test_only_additions_are_fully_compatible():
    summary = aggregate(
        [_change(ChangeKind.FIELD_ADDED, "age")],
        [_change(ChangeKind.RELATIONSHIP_ADDED, "tags")],
    )
    assert summary.compatibility is Compatibility.FULLY_COMPATIBLE
    assert summary.fields.added == 1
    assert summary.relationships.added == 1


def test_non_breaking_modification_is_partially_compatible():
    summary = aggregate([_change(ChangeKind.FIELD_MODIFIED, "name", risk=DataLossRisk.LOW)], [])
    assert summary.compatibility is Compatibility.PARTIALLY_COMPATIBLE
    assert summary.impact_level is ImpactLevel.LOW
    assert summary.fields.modified == 1


def test_any_breaking_change_is_incompatible():
    summary = aggregate(
        [_change(ChangeKind.FIELD_ADDED, "a")],
        [_change(ChangeKind.RELATIONSHIP_MODIFIED, "author", Severity.BREAKING, DataLossRisk.LOW)],
    )
    assert summary.compatibility is Compatibility.INCOMPATIBLE
    assert summary.impact_level is ImpactLevel.MEDIUM
    assert summary.breaking_count == 1
    assert summary.non_breaking_count == 1


def test_high_risk_gives_high_impact():
    summary = aggregate([_change(ChangeKind.FIELD_REMOVED, "email", Severity.BREAKING, DataLossRisk.HIGH)], [])
    assert summary.impact_level is ImpactLevel.HIGH
    assert summary.fields.removed == 1


def test_medium_risk_breaking_is_medium_impact():
    summary = aggregate([_change(ChangeKind.FIELD_MODIFIED, "a", Severity.BREAKING, DataLossRisk.MEDIUM)], [])
    assert summary.impact_level is ImpactLevel.MEDIUM


def test_many_non_breaking_changes_raise_impact_to_medium():
    changes = [_change(ChangeKind.FIELD_ADDED, name) for name in ("a", "b")]
    assert aggregate(changes, []).impact_level is ImpactLevel.LOW

    changes.append(_change(ChangeKind.FIELD_ADDED, "c"))
    assert aggregate(changes, []).impact_level is ImpactLevel.MEDIUM


def test_schema_totals_and_table_rename():
    old = Schema.model_validate({"name": "User", "table": "users", "fields": {"id": {"type": "integer"}}})
    new = Schema.model_validate({
        "name": "User",
        "table": "members",
        "fields": {"id": {"type": "integer"}, "age": {"type": "integer", "nullable": True}},
    })

    summary = aggregate([_change(ChangeKind.FIELD_ADDED, "age")], [], old=old, new=new)

    assert summary.fields.old_total == 1
    assert summary.fields.new_total == 2
    assert summary.relationships.old_total == 0
    assert summary.table_renamed is True
    assert summary.old_table == "users"
    assert summary.table == "members"
    assert summary.schema_name == "User"
