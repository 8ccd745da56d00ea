"""Derive migration operations and complexity from classified changes.

Operation mapping:
- FIELD_ADDED -> add_column
- FIELD_REMOVED -> drop_column
- FIELD_MODIFIED with a non-identical type change, or a length / precision /
  scale change -> alter_column
- RELATIONSHIP_REMOVED -> drop_foreign_key (belongsTo) or drop_pivot_table
  (belongsToMany)
- RELATIONSHIP_MODIFIED -> the structures of the old side are dropped and
  those of the new side are created when the type, target, keys or pivot of
  a belongsTo / belongsToMany relationship change
- RELATIONSHIP_ADDED, hasOne / hasMany / morph* changes -> no operation

Every operation copies its risk from the classified change that produced it;
severity and risk are never recomputed here.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field as PydanticField

from schemadelta._internal.policy import (
    COMPLEXITY_LOW_MAX_OPERATIONS,
    COMPLEXITY_MEDIUM_MAX_OPERATIONS,
)
from schemadelta.codes import ChangeKind, Complexity, DataLossRisk, OperationType, TypeVerdict
from .classify import ClassifiedChange
from .diff import SIZE_ATTRIBUTES
from .schema import RelationshipType

# Relationship attributes whose change rebuilds the owned FK / pivot structure.
_STRUCTURAL_RELATIONSHIP_ATTRIBUTES = frozenset({"type", "target", "foreign_key", "local_key", "pivot"})


class MigrationOperation(BaseModel):
    """One abstract structural operation."""
    operation_type: OperationType
    name: str  # Field or relationship name the operation is about
    category: str  # "field" | "relationship"
    risk_level: DataLossRisk  # Copied from the originating change
    column: Optional[str] = None  # Column affected (field name or FK column)
    table: Optional[str] = None  # Pivot table, for pivot operations
    references: Optional[str] = None  # Target schema, for FK / pivot operations

    model_config = ConfigDict(frozen=True, extra="forbid")


class MigrationImpact(BaseModel):
    """Migration view of a comparison."""
    operations: List[MigrationOperation] = PydanticField(default_factory=list)
    requires_migration: bool = False
    data_loss_risk: DataLossRisk = DataLossRisk.NONE
    complexity: Complexity = Complexity.LOW
    recommended_actions: List[str] = PydanticField(default_factory=list)
    index_changes: List[Dict[str, Any]] = PydanticField(default_factory=list)  # {field, old_value, new_value}
    constraint_changes: List[Dict[str, Any]] = PydanticField(default_factory=list)  # {field, constraint, old_value, new_value}

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def operation_count(self) -> int:
        return len(self.operations)


def _field_operations(change: ClassifiedChange) -> List[MigrationOperation]:
    def op(operation_type: OperationType) -> MigrationOperation:
        return MigrationOperation(
            operation_type=operation_type,
            name=change.name,
            category="field",
            risk_level=change.data_loss_risk,
            column=change.name,
        )

    if change.kind is ChangeKind.FIELD_ADDED:
        return [op(OperationType.ADD_COLUMN)]
    if change.kind is ChangeKind.FIELD_REMOVED:
        return [op(OperationType.DROP_COLUMN)]

    changed = {attr.attribute for attr in change.attribute_changes}
    type_altered = "type" in changed and change.type_verdict is not TypeVerdict.IDENTICAL
    if type_altered or changed.intersection(SIZE_ATTRIBUTES):
        return [op(OperationType.ALTER_COLUMN)]
    return []


def _foreign_key_column(snapshot: Dict[str, Any]) -> str:
    return snapshot.get("foreign_key") or f"{snapshot['name']}_id"


def _pivot_table(snapshot: Dict[str, Any]) -> Optional[str]:
    pivot = snapshot.get("pivot") or {}
    return pivot.get("table")


def _drop_structure(change: ClassifiedChange, snapshot: Dict[str, Any]) -> List[MigrationOperation]:
    relationship_type = RelationshipType(snapshot["type"])
    if relationship_type.owns_foreign_key:
        return [MigrationOperation(
            operation_type=OperationType.DROP_FOREIGN_KEY,
            name=change.name,
            category="relationship",
            risk_level=change.data_loss_risk,
            column=_foreign_key_column(snapshot),
            references=snapshot.get("target"),
        )]
    if relationship_type.uses_pivot:
        return [MigrationOperation(
            operation_type=OperationType.DROP_PIVOT_TABLE,
            name=change.name,
            category="relationship",
            risk_level=change.data_loss_risk,
            table=_pivot_table(snapshot),
            references=snapshot.get("target"),
        )]
    return []


def _create_structure(change: ClassifiedChange, snapshot: Dict[str, Any]) -> List[MigrationOperation]:
    relationship_type = RelationshipType(snapshot["type"])
    if relationship_type.owns_foreign_key:
        return [MigrationOperation(
            operation_type=OperationType.ADD_FOREIGN_KEY,
            name=change.name,
            category="relationship",
            risk_level=change.data_loss_risk,
            column=_foreign_key_column(snapshot),
            references=snapshot.get("target"),
        )]
    if relationship_type.uses_pivot:
        return [MigrationOperation(
            operation_type=OperationType.CREATE_PIVOT_TABLE,
            name=change.name,
            category="relationship",
            risk_level=change.data_loss_risk,
            table=_pivot_table(snapshot),
            references=snapshot.get("target"),
        )]
    return []


def _relationship_operations(change: ClassifiedChange) -> List[MigrationOperation]:
    if change.kind is ChangeKind.RELATIONSHIP_ADDED:
        return []
    if change.kind is ChangeKind.RELATIONSHIP_REMOVED:
        return _drop_structure(change, change.before)

    changed = {attr.attribute for attr in change.attribute_changes}
    if not changed & _STRUCTURAL_RELATIONSHIP_ATTRIBUTES:
        return []
    return _drop_structure(change, change.before) + _create_structure(change, change.after)


def operations_for(change: ClassifiedChange) -> List[MigrationOperation]:
    """Operations implied by one classified change (possibly none)."""
    if change.category == "field":
        return _field_operations(change)
    return _relationship_operations(change)


def _complexity(operations: Sequence[MigrationOperation]) -> Complexity:
    # A lone drop_column stays low even at high risk; any other operation
    # at medium risk or above rules out low.
    risky = any(
        op.operation_type is not OperationType.DROP_COLUMN and op.risk_level >= DataLossRisk.MEDIUM
        for op in operations
    )
    if len(operations) <= COMPLEXITY_LOW_MAX_OPERATIONS and not risky:
        return Complexity.LOW
    if len(operations) <= COMPLEXITY_MEDIUM_MAX_OPERATIONS:
        return Complexity.MEDIUM
    return Complexity.HIGH


def _names(operations: Sequence[MigrationOperation], *types: OperationType) -> List[str]:
    names: List[str] = []
    for op in operations:
        if op.operation_type in types and op.name not in names:
            names.append(op.name)
    return names


def _recommended_actions(
    operations: Sequence[MigrationOperation],
    contributing: Sequence[ClassifiedChange],
    data_loss_risk: DataLossRisk,
) -> List[str]:
    actions: List[str] = []
    if data_loss_risk >= DataLossRisk.MEDIUM:
        actions.append("Back up data before migration")

    dropped = _names(operations, OperationType.DROP_COLUMN)
    if dropped:
        actions.append(f"Archive or export data from dropped columns: {', '.join(dropped)}")

    altered = _names(operations, OperationType.ALTER_COLUMN)
    if altered:
        actions.append(f"Verify existing values fit the altered column definitions: {', '.join(altered)}")

    required_added = [
        change.name for change in contributing
        if change.kind is ChangeKind.FIELD_ADDED and change.is_breaking
    ]
    if required_added:
        actions.append(f"Provide a default or backfill existing rows for required columns: {', '.join(required_added)}")

    foreign_keys = _names(operations, OperationType.DROP_FOREIGN_KEY, OperationType.ADD_FOREIGN_KEY)
    if foreign_keys:
        actions.append(f"Check referential integrity of foreign keys for relationships: {', '.join(foreign_keys)}")

    pivots = _names(operations, OperationType.DROP_PIVOT_TABLE, OperationType.CREATE_PIVOT_TABLE)
    if pivots:
        actions.append(f"Migrate pivot table rows for relationships: {', '.join(pivots)}")

    unresolved = [change.name for change in contributing if change.unresolvable]
    if unresolved:
        actions.append(f"Review column types manually; the type oracle could not resolve: {', '.join(unresolved)}")

    return actions


def _attribute_changes(changes: Sequence[ClassifiedChange], attribute: str) -> List[Dict[str, Any]]:
    found = []
    for change in changes:
        if change.kind is not ChangeKind.FIELD_MODIFIED:
            continue
        for attr in change.attribute_changes:
            if attr.attribute == attribute:
                found.append({
                    "field": change.name,
                    "old_value": attr.old_value,
                    "new_value": attr.new_value,
                })
    return found


def analyze(changes: Sequence[ClassifiedChange]) -> MigrationImpact:
    """Compute the migration impact of a list of classified changes.

    Args:
        changes: Field and relationship changes, in report order

    Returns:
        MigrationImpact. requires_migration is True iff at least one
        operation is implied; data_loss_risk is the maximum risk over the
        changes that produced an operation.
    """
    operations: List[MigrationOperation] = []
    contributing: List[ClassifiedChange] = []
    for change in changes:
        change_operations = operations_for(change)
        if change_operations:
            operations.extend(change_operations)
            contributing.append(change)

    data_loss_risk = max((change.data_loss_risk for change in contributing), default=DataLossRisk.NONE)

    constraint_changes = [
        {"constraint": "unique", **entry} for entry in _attribute_changes(changes, "unique")
    ]

    return MigrationImpact(
        operations=operations,
        requires_migration=bool(operations),
        data_loss_risk=data_loss_risk,
        complexity=_complexity(operations),
        recommended_actions=_recommended_actions(operations, contributing, data_loss_risk),
        index_changes=_attribute_changes(changes, "index"),
        constraint_changes=constraint_changes,
    )
