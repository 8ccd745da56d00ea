"""Fold classified changes into one compatibility verdict and impact level.

Compatibility:
    fully_compatible      no changes, or only NonBreaking additions
    partially_compatible  nothing Breaking, but an existing entry was modified
    incompatible          at least one Breaking change

Impact level:
    high    some change carries high data-loss risk
    medium  any Breaking change, or more than IMPACT_NON_BREAKING_THRESHOLD
            NonBreaking changes
    low     otherwise
"""

from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from schemadelta._internal.policy import IMPACT_NON_BREAKING_THRESHOLD
from schemadelta.codes import ChangeKind, Compatibility, DataLossRisk, ImpactLevel
from .classify import ClassifiedChange
from .schema import Schema

_ADDITIONS = frozenset({ChangeKind.FIELD_ADDED, ChangeKind.RELATIONSHIP_ADDED})


class CategoryCounts(BaseModel):
    """Change counts for one category (fields or relationships)."""
    added: int = 0
    removed: int = 0
    modified: int = 0
    old_total: Optional[int] = None  # Entries declared by the old schema, when known
    new_total: Optional[int] = None  # Entries declared by the new schema, when known

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def total(self) -> int:
        return self.added + self.removed + self.modified


class Summary(BaseModel):
    """Aggregate view of one comparison."""
    compatibility: Compatibility
    impact_level: ImpactLevel
    fields: CategoryCounts
    relationships: CategoryCounts
    total_changes: int
    breaking_count: int
    non_breaking_count: int
    schema_name: Optional[str] = None  # Name of the new schema
    table: Optional[str] = None  # Table of the new schema
    old_table: Optional[str] = None
    table_renamed: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


def _count(changes: Sequence[ClassifiedChange], category: str, total_old: Optional[int], total_new: Optional[int]) -> CategoryCounts:
    counts = {"added": 0, "removed": 0, "modified": 0}
    for change in changes:
        if change.category != category:
            continue
        if change.kind in _ADDITIONS:
            counts["added"] += 1
        elif change.kind in (ChangeKind.FIELD_REMOVED, ChangeKind.RELATIONSHIP_REMOVED):
            counts["removed"] += 1
        else:
            counts["modified"] += 1
    return CategoryCounts(old_total=total_old, new_total=total_new, **counts)


def compatibility_of(changes: Sequence[ClassifiedChange]) -> Compatibility:
    if any(change.is_breaking for change in changes):
        return Compatibility.INCOMPATIBLE
    if all(change.kind in _ADDITIONS for change in changes):
        return Compatibility.FULLY_COMPATIBLE
    return Compatibility.PARTIALLY_COMPATIBLE


def impact_level_of(changes: Sequence[ClassifiedChange]) -> ImpactLevel:
    if any(change.data_loss_risk is DataLossRisk.HIGH for change in changes):
        return ImpactLevel.HIGH
    breaking = sum(1 for change in changes if change.is_breaking)
    non_breaking = len(changes) - breaking
    if breaking or non_breaking > IMPACT_NON_BREAKING_THRESHOLD:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def aggregate(
    field_changes: Sequence[ClassifiedChange],
    relationship_changes: Sequence[ClassifiedChange],
    old: Optional[Schema] = None,
    new: Optional[Schema] = None,
) -> Summary:
    """Build the summary from the classified change lists.

    Counts come straight from the change lists. When the two schemas are
    passed, their declared totals and table names are recorded as well.
    """
    changes: List[ClassifiedChange] = list(field_changes) + list(relationship_changes)
    breaking_count = sum(1 for change in changes if change.is_breaking)

    return Summary(
        compatibility=compatibility_of(changes),
        impact_level=impact_level_of(changes),
        fields=_count(
            field_changes,
            "field",
            len(old.fields) if old is not None else None,
            len(new.fields) if new is not None else None,
        ),
        relationships=_count(
            relationship_changes,
            "relationship",
            len(old.relationships) if old is not None else None,
            len(new.relationships) if new is not None else None,
        ),
        total_changes=len(changes),
        breaking_count=breaking_count,
        non_breaking_count=len(changes) - breaking_count,
        schema_name=new.name if new is not None else None,
        table=new.table if new is not None else None,
        old_table=old.table if old is not None else None,
        table_renamed=old is not None and new is not None and old.table != new.table,
    )
