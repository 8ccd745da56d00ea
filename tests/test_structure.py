"""Tests for structural input checks (kernel/structure.py)."""

from schemadelta.codes import StructuralCode
from schemadelta.kernel.schema import Schema
from schemadelta.kernel.structure import StructuralError, check_pair, check_schema


def _schema(fields=(), relationships=(), name="User"):
    return Schema.model_validate({
        "name": name,
        "table": "users",
        "fields": list(fields),
        "relationships": list(relationships),
    })


def test_well_formed_schema_has_no_issues():
    schema = _schema(
        fields=[{"name": "id", "type": "bigInteger"}],
        relationships=[{"name": "commentable", "type": "morphTo"}],
    )
    assert check_schema(schema) == []


def test_duplicate_field_detected():
    schema = _schema(fields=[
        {"name": "email", "type": "string"},
        {"name": "email", "type": "text"},
    ])
    issues = check_schema(schema)
    assert [issue.code for issue in issues] == [StructuralCode.DUPLICATE_FIELD.value]
    assert issues[0].element == "email"


def test_duplicate_relationship_detected():
    schema = _schema(relationships=[
        {"name": "posts", "type": "hasMany", "target": "Post"},
        {"name": "posts", "type": "hasOne", "target": "Post"},
    ])
    assert [issue.code for issue in check_schema(schema)] == [StructuralCode.DUPLICATE_RELATIONSHIP.value]


def test_missing_target_on_non_polymorphic_relationship():
    schema = _schema(relationships=[{"name": "author", "type": "belongsTo", "target": "  "}])
    issues = check_schema(schema)
    assert [issue.code for issue in issues] == [StructuralCode.MISSING_TARGET.value]


def test_pivot_only_on_many_to_many():
    schema = _schema(relationships=[
        {"name": "author", "type": "belongsTo", "target": "User", "pivot": {"table": "x"}},
    ])
    assert [issue.code for issue in check_schema(schema)] == [StructuralCode.PIVOT_NOT_ALLOWED.value]


def test_empty_names_detected():
    schema = _schema(fields=[{"name": "", "type": "string"}], name=" ")
    codes = [issue.code for issue in check_schema(schema)]
    assert codes == [StructuralCode.EMPTY_NAME.value, StructuralCode.EMPTY_NAME.value]


def test_check_pair_labels_sides():
    bad = _schema(fields=[{"name": "a", "type": "string"}, {"name": "a", "type": "string"}])
    good = _schema(fields=[{"name": "a", "type": "string"}])

    issues = check_pair(good, bad)
    assert [(issue.side, issue.code) for issue in issues] == [("new", StructuralCode.DUPLICATE_FIELD.value)]


def test_structural_error_carries_issues():
    bad = _schema(fields=[{"name": "a", "type": "string"}, {"name": "a", "type": "string"}])
    error = StructuralError(check_schema(bad))
    assert len(error.issues) == 1
    assert "DUPLICATE_FIELD" in str(error)
    assert isinstance(error, ValueError)
