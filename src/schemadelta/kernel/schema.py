"""Pydantic models for schema definitions.

Entities are frozen: a comparison never mutates its inputs. Cross-entity
invariants (unique names, relationship targets) are checked by
``kernel.structure`` rather than here, so that malformed input can be
reported as typed issues instead of failing at construction.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field as PydanticField, ValidationInfo, field_validator


class RelationshipType(str, Enum):
    """Closed set of relationship kinds."""

    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO_MANY = "belongsToMany"
    MORPH_TO = "morphTo"
    MORPH_ONE = "morphOne"
    MORPH_MANY = "morphMany"

    @property
    def cardinality(self) -> str:
        """to-one | to-many | many-to-many | polymorphic-to | polymorphic-from"""
        return _CARDINALITY[self]

    @property
    def owns_foreign_key(self) -> bool:
        """True when the foreign key column lives on this schema's table."""
        return self is RelationshipType.BELONGS_TO

    @property
    def uses_pivot(self) -> bool:
        return self is RelationshipType.BELONGS_TO_MANY


_CARDINALITY = {
    RelationshipType.BELONGS_TO: "to-one",
    RelationshipType.HAS_ONE: "to-one",
    RelationshipType.HAS_MANY: "to-many",
    RelationshipType.BELONGS_TO_MANY: "many-to-many",
    RelationshipType.MORPH_ONE: "polymorphic-to",
    RelationshipType.MORPH_MANY: "polymorphic-to",
    RelationshipType.MORPH_TO: "polymorphic-from",
}


class Field(BaseModel):
    """A single typed attribute of a schema."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str
    type: str  # Opaque type descriptor, resolved by the type oracle
    nullable: bool = False
    unique: bool = False
    index: bool = False
    default: Any = None
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    rules: Tuple[str, ...] = ()
    validation: Tuple[str, ...] = ()
    comment: Optional[str] = None
    extra: Dict[str, Any] = PydanticField(
        default_factory=dict,
        validation_alias=AliasChoices("extra", "attributes"),
        description="Type-specific attributes, compared generically by key",
    )

    @field_validator("rules", "validation", mode="before")
    @classmethod
    def _coerce_rule_tokens(cls, v: Any) -> Any:
        """Accept the pipe-delimited form ("required|max:255") as well as lists."""
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(token for token in v.split("|") if token)
        return v

    @field_validator("default", mode="before")
    @classmethod
    def _freeze_default(cls, v: Any) -> Any:
        # Array defaults are stored as tuples.
        if isinstance(v, list):
            return tuple(v)
        return v


class PivotTable(BaseModel):
    """Pivot descriptor of a many-to-many relationship."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    table: Optional[str] = None
    fields: Tuple[str, ...] = ()
    with_timestamps: bool = False


class Relationship(BaseModel):
    """A typed reference from one schema to another."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str
    type: RelationshipType
    target: Optional[str] = PydanticField(
        default=None,
        validation_alias=AliasChoices("target", "model"),
    )
    foreign_key: Optional[str] = PydanticField(
        default=None,
        validation_alias=AliasChoices("foreign_key", "foreignKey"),
    )
    local_key: Optional[str] = PydanticField(
        default=None,
        validation_alias=AliasChoices("local_key", "localKey"),
    )
    pivot: Optional[PivotTable] = None

    @property
    def foreign_key_column(self) -> str:
        """Column holding the foreign key (conventional default: <name>_id)."""
        return self.foreign_key or f"{self.name}_id"


def _named_entries(v: Any) -> Any:
    """Turn a name-keyed mapping into a list of entries carrying their name.

    The mapping key is the entry name; an entry that declares another name
    is rejected.
    """
    if not isinstance(v, dict):
        return v
    entries = []
    for name, config in v.items():
        if config is None:
            config = {}
        if isinstance(config, BaseModel):
            declared = getattr(config, "name", name)
        elif isinstance(config, dict):
            declared = config.get("name", name)
        else:
            raise ValueError(f"entry '{name}' must be a mapping")
        if declared != name:
            raise ValueError(f"entry '{name}' declares a different name '{declared}'")
        entries.append(config if isinstance(config, BaseModel) else {**config, "name": name})
    return entries


def _lift_pivot_keys(entry: Any) -> Any:
    """Fold the flat pivot_table / pivot_fields / with_timestamps keys into a pivot."""
    if not isinstance(entry, dict) or "pivot" in entry:
        return entry
    table = entry.get("pivot_table", entry.get("pivotTable"))
    if table is None:
        return entry
    lifted = {k: v for k, v in entry.items() if k not in _FLAT_PIVOT_KEYS}
    lifted["pivot"] = {
        "table": table,
        "fields": entry.get("pivot_fields", entry.get("pivotFields")) or (),
        "with_timestamps": bool(entry.get("with_timestamps", entry.get("withTimestamps", False))),
    }
    return lifted


_FLAT_PIVOT_KEYS = frozenset(
    {"pivot_table", "pivotTable", "pivot_fields", "pivotFields", "with_timestamps", "withTimestamps"}
)


class Schema(BaseModel):
    """One version of a data-model definition."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str
    table: str
    fields: Tuple[Field, ...] = ()
    relationships: Tuple[Relationship, ...] = PydanticField(
        default=(),
        validation_alias=AliasChoices("relationships", "relations"),
    )
    options: Dict[str, Any] = PydanticField(default_factory=dict)
    metadata: Dict[str, Any] = PydanticField(default_factory=dict)

    @field_validator("fields", "relationships", mode="before")
    @classmethod
    def _accept_mappings(cls, v: Any, info: ValidationInfo) -> Any:
        entries = _named_entries(v)
        if info.field_name == "relationships" and isinstance(entries, (list, tuple)):
            entries = [_lift_pivot_keys(entry) for entry in entries]
        return entries

    def field_names(self) -> list[str]:
        """Field names in declaration order."""
        return [f.name for f in self.fields]

    def relationship_names(self) -> list[str]:
        """Relationship names in declaration order."""
        return [r.name for r in self.relationships]

    def get_field(self, name: str) -> Field | None:
        """Get field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_relationship(self, name: str) -> Relationship | None:
        """Get relationship by name."""
        for r in self.relationships:
            if r.name == name:
                return r
        return None

    def has_timestamps(self) -> bool:
        return bool(self.options.get("timestamps", True))

    def has_soft_deletes(self) -> bool:
        return bool(self.options.get("soft_deletes", False))
