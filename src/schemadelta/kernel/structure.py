"""Structural checks for schema input.

The engine assumes a few invariants its upstream loader is responsible for:
unique field names, unique relationship names, non-empty names, a target for
every non-polymorphic relationship, and pivots only on many-to-many
relationships. Violations are collected as StructuralIssue values; a
comparison is never attempted while any exist.
"""

from typing import List, Optional

from schemadelta.codes import StructuralCode
from schemadelta.contracts import StructuralIssue
from .schema import RelationshipType, Schema


class StructuralError(ValueError):
    """Raised when a comparison is requested on malformed input.

    Attributes:
        issues: Every structural issue detected (sorted)
    """

    def __init__(self, issues: List[StructuralIssue]):
        self.issues = issues
        messages = [f"[{issue.code}] {issue.message}" for issue in issues]
        super().__init__(
            f"Schema input is malformed ({len(issues)} issue(s)):\n" + "\n".join(messages)
        )


def _duplicates(names: List[str]) -> List[str]:
    seen = set()
    duplicates = set()
    for name in names:
        if name in seen:
            duplicates.add(name)
        seen.add(name)
    return sorted(duplicates)


def check_schema(schema: Schema, side: Optional[str] = None) -> List[StructuralIssue]:
    """Return every structural issue of a schema (empty when well-formed)."""
    issues: List[StructuralIssue] = []

    if not schema.name.strip():
        issues.append(StructuralIssue(
            code=StructuralCode.EMPTY_NAME.value,
            message="Schema name is empty",
            side=side,
        ))

    field_names = schema.field_names()
    for name in field_names:
        if not name.strip():
            issues.append(StructuralIssue(
                code=StructuralCode.EMPTY_NAME.value,
                message=f"Schema '{schema.name}' has a field with an empty name",
                side=side,
                element=name,
            ))
    for name in _duplicates(field_names):
        issues.append(StructuralIssue(
            code=StructuralCode.DUPLICATE_FIELD.value,
            message=f"Field '{name}' is declared more than once in schema '{schema.name}'",
            side=side,
            element=name,
        ))

    relationship_names = schema.relationship_names()
    for name in relationship_names:
        if not name.strip():
            issues.append(StructuralIssue(
                code=StructuralCode.EMPTY_NAME.value,
                message=f"Schema '{schema.name}' has a relationship with an empty name",
                side=side,
                element=name,
            ))
    for name in _duplicates(relationship_names):
        issues.append(StructuralIssue(
            code=StructuralCode.DUPLICATE_RELATIONSHIP.value,
            message=f"Relationship '{name}' is declared more than once in schema '{schema.name}'",
            side=side,
            element=name,
        ))

    for relationship in schema.relationships:
        if relationship.type is not RelationshipType.MORPH_TO and not (relationship.target or "").strip():
            issues.append(StructuralIssue(
                code=StructuralCode.MISSING_TARGET.value,
                message=(
                    f"Relationship '{relationship.name}' ({relationship.type.value}) "
                    f"has no target schema"
                ),
                side=side,
                element=relationship.name,
            ))
        if relationship.pivot is not None and not relationship.type.uses_pivot:
            issues.append(StructuralIssue(
                code=StructuralCode.PIVOT_NOT_ALLOWED.value,
                message=(
                    f"Relationship '{relationship.name}' ({relationship.type.value}) "
                    f"declares a pivot but is not many-to-many"
                ),
                side=side,
                element=relationship.name,
            ))

    return sort_issues(issues)


def sort_issues(issues: List[StructuralIssue]) -> List[StructuralIssue]:
    """Deterministic issue order: side, code, element, message."""
    return sorted(
        issues,
        key=lambda issue: (issue.side or "", issue.code, issue.element or "", issue.message),
    )


def check_pair(old: Schema, new: Schema) -> List[StructuralIssue]:
    """Structural issues of both sides of a comparison."""
    return sort_issues(check_schema(old, side="old") + check_schema(new, side="new"))
