"""Structural diff between two schema versions.

Fields and relationships are matched by name through name-keyed lookups, so
a comparison costs O(F + R). Output order is deterministic: entries of the
new schema in declaration order (modified or added), followed by entries
only present in the old schema, in the old declaration order (removed).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from schemadelta.codes import ChangeKind
from .schema import Field, Relationship, Schema

# Attributes compared on every field, in report order.
FIELD_ATTRIBUTES = (
    "type",
    "nullable",
    "unique",
    "index",
    "default",
    "length",
    "precision",
    "scale",
    "rules",
    "validation",
    "comment",
)

SIZE_ATTRIBUTES = ("length", "precision", "scale")

RELATIONSHIP_ATTRIBUTES = (
    "type",
    "target",
    "foreign_key",
    "local_key",
    "pivot",
)

EXTRA_PREFIX = "extra."


class AttributeChange(BaseModel):
    """One differing attribute: {attribute, old_value, new_value}."""
    attribute: str
    old_value: Any = None
    new_value: Any = None

    model_config = ConfigDict(frozen=True, extra="forbid")


@dataclass(frozen=True)
class RawChange:
    """A single unclassified difference between two schema versions."""
    kind: ChangeKind
    name: str  # Field or relationship name
    old: Optional[Union[Field, Relationship]] = None  # None for additions
    new: Optional[Union[Field, Relationship]] = None  # None for removals
    attribute_changes: Tuple[AttributeChange, ...] = ()  # Only for *_MODIFIED
    details: Optional[Dict[str, Any]] = None

    def changed(self, attribute: str) -> Optional[AttributeChange]:
        """The change record for an attribute, if that attribute differs."""
        for change in self.attribute_changes:
            if change.attribute == attribute:
                return change
        return None


def _plain(value: Any) -> Any:
    """Comparable, JSON-friendly form of an attribute value."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


def compare_field(old: Field, new: Field) -> Tuple[AttributeChange, ...]:
    """Attribute-level differences between two versions of one field."""
    changes: List[AttributeChange] = []
    for attribute in FIELD_ATTRIBUTES:
        old_value = _plain(getattr(old, attribute))
        new_value = _plain(getattr(new, attribute))
        # bool/int equality (True == 1) must not hide a default change
        if old_value != new_value or type(old_value) is not type(new_value):
            changes.append(AttributeChange(attribute=attribute, old_value=old_value, new_value=new_value))

    for key in sorted(set(old.extra) | set(new.extra)):
        old_value = _plain(old.extra.get(key))
        new_value = _plain(new.extra.get(key))
        if key not in old.extra or key not in new.extra or old_value != new_value:
            changes.append(AttributeChange(
                attribute=f"{EXTRA_PREFIX}{key}",
                old_value=old_value,
                new_value=new_value,
            ))
    return tuple(changes)


def compare_relationship(old: Relationship, new: Relationship) -> Tuple[AttributeChange, ...]:
    """Attribute-level differences between two versions of one relationship.

    A type change is always recorded, even when the target is unchanged:
    cardinality changes alter generated access code downstream.
    """
    changes: List[AttributeChange] = []
    for attribute in RELATIONSHIP_ATTRIBUTES:
        old_value = _plain(getattr(old, attribute))
        new_value = _plain(getattr(new, attribute))
        if old_value != new_value:
            changes.append(AttributeChange(attribute=attribute, old_value=old_value, new_value=new_value))
    return tuple(changes)


def diff_fields(old_fields: Sequence[Field], new_fields: Sequence[Field]) -> List[RawChange]:
    """Compute field-level changes between two field collections."""
    changes: List[RawChange] = []
    old_by_name = {f.name: f for f in old_fields}
    new_names = {f.name for f in new_fields}

    for new_field in new_fields:
        old_field = old_by_name.get(new_field.name)
        if old_field is None:
            changes.append(RawChange(kind=ChangeKind.FIELD_ADDED, name=new_field.name, new=new_field))
            continue
        attribute_changes = compare_field(old_field, new_field)
        if attribute_changes:
            changes.append(RawChange(
                kind=ChangeKind.FIELD_MODIFIED,
                name=new_field.name,
                old=old_field,
                new=new_field,
                attribute_changes=attribute_changes,
            ))

    for old_field in old_fields:
        if old_field.name not in new_names:
            changes.append(RawChange(kind=ChangeKind.FIELD_REMOVED, name=old_field.name, old=old_field))

    return changes


def _required_foreign_key(relationship: Relationship, fields_by_name: Dict[str, Field]) -> Optional[str]:
    """Name of the non-nullable FK column this relationship owns, if any."""
    if not relationship.type.owns_foreign_key:
        return None
    column = fields_by_name.get(relationship.foreign_key_column)
    if column is not None and not column.nullable:
        return column.name
    return None


def diff_relationships(
    old_relationships: Sequence[Relationship],
    new_relationships: Sequence[Relationship],
    old_fields: Sequence[Field] = (),
) -> List[RawChange]:
    """Compute relationship-level changes between two relationship collections.

    old_fields is used only to tell whether a belongsTo relationship owns a
    required (non-nullable) foreign key column.
    """
    changes: List[RawChange] = []
    old_by_name = {r.name: r for r in old_relationships}
    new_names = {r.name for r in new_relationships}
    old_fields_by_name = {f.name: f for f in old_fields}

    for new_rel in new_relationships:
        old_rel = old_by_name.get(new_rel.name)
        if old_rel is None:
            changes.append(RawChange(kind=ChangeKind.RELATIONSHIP_ADDED, name=new_rel.name, new=new_rel))
            continue
        attribute_changes = compare_relationship(old_rel, new_rel)
        if attribute_changes:
            details = None
            required_fk = _required_foreign_key(old_rel, old_fields_by_name)
            if required_fk:
                details = {"required_foreign_key": required_fk}
            changes.append(RawChange(
                kind=ChangeKind.RELATIONSHIP_MODIFIED,
                name=new_rel.name,
                old=old_rel,
                new=new_rel,
                attribute_changes=attribute_changes,
                details=details,
            ))

    for old_rel in old_relationships:
        if old_rel.name not in new_names:
            details = None
            required_fk = _required_foreign_key(old_rel, old_fields_by_name)
            if required_fk:
                details = {"required_foreign_key": required_fk}
            changes.append(RawChange(
                kind=ChangeKind.RELATIONSHIP_REMOVED,
                name=old_rel.name,
                old=old_rel,
                details=details,
            ))

    return changes


def _diff_mapping(prefix: str, old: Dict[str, Any], new: Dict[str, Any]) -> List[AttributeChange]:
    changes: List[AttributeChange] = []
    for key in sorted(set(old) | set(new), key=str):
        old_value = _plain(old.get(key))
        new_value = _plain(new.get(key))
        if key not in old or key not in new or old_value != new_value:
            changes.append(AttributeChange(
                attribute=f"{prefix}.{key}",
                old_value=old_value,
                new_value=new_value,
            ))
    return changes


def diff_schema_metadata(old: Schema, new: Schema) -> List[AttributeChange]:
    """Schema-level changes: name, table, options and metadata keys.

    Informational only; identity of the two schemas is assumed by the caller.
    """
    changes: List[AttributeChange] = []
    if old.name != new.name:
        changes.append(AttributeChange(attribute="name", old_value=old.name, new_value=new.name))
    if old.table != new.table:
        changes.append(AttributeChange(attribute="table", old_value=old.table, new_value=new.table))
    changes.extend(_diff_mapping("options", old.options, new.options))
    changes.extend(_diff_mapping("metadata", old.metadata, new.metadata))
    return changes


def diff_schemas(old: Schema, new: Schema) -> Tuple[List[RawChange], List[RawChange]]:
    """Run both differs. Returns (field_changes, relationship_changes)."""
    field_changes = diff_fields(old.fields, new.fields)
    relationship_changes = diff_relationships(old.relationships, new.relationships, old_fields=old.fields)
    return field_changes, relationship_changes
