"""Code constants for schemadelta.

These constants prevent stringly-typed severities, verdicts and issue codes
and ensure client code uses the correct vocabulary.
"""

from enum import Enum


class ChangeKind(str, Enum):
    """Kinds of raw change emitted by the differs."""

    FIELD_ADDED = "FIELD_ADDED"
    FIELD_REMOVED = "FIELD_REMOVED"
    FIELD_MODIFIED = "FIELD_MODIFIED"
    RELATIONSHIP_ADDED = "RELATIONSHIP_ADDED"
    RELATIONSHIP_REMOVED = "RELATIONSHIP_REMOVED"
    RELATIONSHIP_MODIFIED = "RELATIONSHIP_MODIFIED"

    @property
    def category(self) -> str:
        """"field" or "relationship"."""
        return "field" if self.value.startswith("FIELD_") else "relationship"


class Severity(str, Enum):
    NON_BREAKING = "non_breaking"
    BREAKING = "breaking"


class DataLossRisk(str, Enum):
    """Graded data-loss risk. Totally ordered: none < low < medium < high."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def __ge__(self, other):
        if not isinstance(other, DataLossRisk):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other):
        if not isinstance(other, DataLossRisk):
            return NotImplemented
        return self.rank > other.rank

    def __le__(self, other):
        if not isinstance(other, DataLossRisk):
            return NotImplemented
        return self.rank <= other.rank

    def __lt__(self, other):
        if not isinstance(other, DataLossRisk):
            return NotImplemented
        return self.rank < other.rank


_RISK_RANK = {
    DataLossRisk.NONE: 0,
    DataLossRisk.LOW: 1,
    DataLossRisk.MEDIUM: 2,
    DataLossRisk.HIGH: 3,
}


class Compatibility(str, Enum):
    FULLY_COMPATIBLE = "fully_compatible"
    PARTIALLY_COMPATIBLE = "partially_compatible"
    INCOMPATIBLE = "incompatible"


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OperationType(str, Enum):
    """Abstract migration operations."""

    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    ALTER_COLUMN = "alter_column"
    ADD_FOREIGN_KEY = "add_foreign_key"
    DROP_FOREIGN_KEY = "drop_foreign_key"
    CREATE_PIVOT_TABLE = "create_pivot_table"
    DROP_PIVOT_TABLE = "drop_pivot_table"


class TypeVerdict(str, Enum):
    """Answer of a type compatibility oracle for an (old, new) type pair."""

    IDENTICAL = "identical"
    WIDENING = "widening"
    NARROWING = "narrowing"
    INCOMPATIBLE = "incompatible"


class StructuralCode(str, Enum):
    """Malformed-input issue codes (blocking: the diff is not attempted)."""

    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    EMPTY_NAME = "EMPTY_NAME"
    DUPLICATE_FIELD = "DUPLICATE_FIELD"
    DUPLICATE_RELATIONSHIP = "DUPLICATE_RELATIONSHIP"
    MISSING_TARGET = "MISSING_TARGET"
    PIVOT_NOT_ALLOWED = "PIVOT_NOT_ALLOWED"


class ValidationChange(str, Enum):
    """Validation-rule changes that reject previously accepted input."""

    FIELD_MADE_REQUIRED = "field_made_required"
    MAX_LENGTH_REDUCED = "max_length_reduced"
