"""Type compatibility oracle.

The diff engine treats field types as opaque values. Whether one type can
stand in for another is answered by an oracle:

    oracle.compare(old_type, new_type) -> TypeVerdict

An oracle raises UnresolvableTypeError when it does not know one of the two
types; the classifier records that as a conservative Breaking/High change.

TypeRegistry is the default oracle. It knows the base field types, their
aliases, and the safe (widening) transitions between base types. Widening is
transitive: tinyInteger -> smallInteger -> integer makes tinyInteger -> integer
a widening too. The reverse of a widening is a narrowing; everything else is
incompatible.
"""

from typing import Dict, Iterable, Optional, Protocol, Set, runtime_checkable

from schemadelta.codes import TypeVerdict


class UnresolvableTypeError(LookupError):
    """Raised by an oracle that cannot resolve a type name."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Unknown field type '{type_name}'")


@runtime_checkable
class TypeCompatibilityOracle(Protocol):
    def compare(self, old_type: str, new_type: str) -> TypeVerdict:
        ...


BASE_TYPES = (
    "string", "text", "mediumText", "longText",
    "tinyInteger", "smallInteger", "mediumInteger", "integer", "bigInteger", "unsignedBigInteger",
    "float", "double", "decimal",
    "boolean",
    "date", "datetime", "timestamp", "time",
    "json", "binary", "uuid", "email", "enum", "set",
    "foreignId", "morphs",
    "geometry", "point", "polygon",
)

# Aliases as registered by the field type plugins. Where two plugins claimed
# the same alias, the dedicated type keeps it (longtext -> longText).
ALIASES = {
    "varchar": "string",
    "char": "string",
    "longtext": "longText",
    "mediumtext": "mediumText",
    "tinyint": "tinyInteger",
    "smallint": "smallInteger",
    "mediumint": "mediumInteger",
    "int": "integer",
    "bigint": "bigInteger",
    "long": "bigInteger",
    "unsigned_big_integer": "unsignedBigInteger",
    "unsigned_bigint": "unsignedBigInteger",
    "real": "float",
    "double_precision": "double",
    "numeric": "decimal",
    "money": "decimal",
    "bool": "boolean",
    "dateTime": "datetime",
    "jsonb": "json",
    "blob": "binary",
    "guid": "uuid",
    "email_address": "email",
    "enumeration": "enum",
    "multi_select": "set",
    "multiple_choice": "set",
    "foreign_id": "foreignId",
    "fk": "foreignId",
    "polymorphic": "morphs",
    "geom": "geometry",
    "spatial": "geometry",
    "geo": "geometry",
    "geopoint": "point",
    "coordinates": "point",
    "latlng": "point",
    "area": "polygon",
    "boundary": "polygon",
    "region": "polygon",
}

# Direct safe transitions between base types (old -> new).
WIDENINGS = {
    "string": ("text",),
    "text": ("mediumText",),
    "mediumText": ("longText",),
    "tinyInteger": ("smallInteger",),
    "smallInteger": ("mediumInteger",),
    "mediumInteger": ("integer",),
    "integer": ("bigInteger",),
    "float": ("double",),
    "date": ("datetime",),
    "datetime": ("timestamp",),
    "email": ("string",),
    "uuid": ("string",),
    "enum": ("string",),
}


class TypeRegistry:
    """Registry-backed TypeCompatibilityOracle.

    A registry is built once and then only read by comparisons; extend it
    with register_* before handing it to the engine.
    """

    def __init__(
        self,
        base_types: Iterable[str] = BASE_TYPES,
        aliases: Optional[Dict[str, str]] = None,
        widenings: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self._base_types: Set[str] = set()
        self._aliases: Dict[str, str] = {}
        self._widenings: Dict[str, Set[str]] = {}
        for type_name in base_types:
            self.register_type(type_name)
        for alias, base in (ALIASES if aliases is None else aliases).items():
            self.register_alias(alias, base)
        for old, targets in (WIDENINGS if widenings is None else widenings).items():
            for new in targets:
                self.register_widening(old, new)

    def register_type(self, type_name: str) -> None:
        self._base_types.add(type_name)

    def register_alias(self, alias: str, base_type: str) -> None:
        if base_type not in self._base_types:
            raise ValueError(f"Cannot alias '{alias}' to unregistered type '{base_type}'")
        self._aliases[alias] = base_type

    def register_widening(self, old_type: str, new_type: str) -> None:
        old_base = self.resolve(old_type)
        new_base = self.resolve(new_type)
        self._widenings.setdefault(old_base, set()).add(new_base)

    def has_type(self, type_name: str) -> bool:
        return type_name in self._base_types or type_name in self._aliases

    def resolve(self, type_name: str) -> str:
        """Resolve a type name or alias to its base type."""
        if type_name in self._base_types:
            return type_name
        if type_name in self._aliases:
            return self._aliases[type_name]
        raise UnresolvableTypeError(type_name)

    def widens_to(self, type_name: str) -> Set[str]:
        """All base types reachable from type_name through safe transitions."""
        start = self.resolve(type_name)
        reachable: Set[str] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            for nxt in self._widenings.get(current, ()):
                if nxt not in reachable and nxt != start:
                    reachable.add(nxt)
                    stack.append(nxt)
        return reachable

    def compare(self, old_type: str, new_type: str) -> TypeVerdict:
        old_base = self.resolve(old_type)
        new_base = self.resolve(new_type)
        if old_base == new_base:
            return TypeVerdict.IDENTICAL
        if new_base in self.widens_to(old_base):
            return TypeVerdict.WIDENING
        if old_base in self.widens_to(new_base):
            return TypeVerdict.NARROWING
        return TypeVerdict.INCOMPATIBLE


def default_oracle() -> TypeRegistry:
    """A fresh registry seeded with the built-in field types."""
    return TypeRegistry()
