"""schemadelta: deterministic schema diff, compatibility and migration impact analysis."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("schemadelta")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
# Note: diff is exported from schemadelta.api, not from root, to keep the
# root namespace free of a name that shadows the kernel.diff module.
from schemadelta.api import ComparisonResult, DiffResult, check, compare, load_schema
from schemadelta.codes import (
    ChangeKind,
    Compatibility,
    Complexity,
    DataLossRisk,
    ImpactLevel,
    OperationType,
    Severity,
    StructuralCode,
    TypeVerdict,
)
from schemadelta.contracts import CheckResult, StructuralIssue
from schemadelta.kernel.schema import Field, PivotTable, Relationship, RelationshipType, Schema
from schemadelta.kernel.structure import StructuralError
from schemadelta.kernel.types import TypeCompatibilityOracle, TypeRegistry, UnresolvableTypeError

__all__ = [
    "__version__",
    "compare",
    "check",
    "load_schema",
    "DiffResult",
    "ComparisonResult",
    "CheckResult",
    "StructuralIssue",
    "StructuralError",
    "Schema",
    "Field",
    "Relationship",
    "RelationshipType",
    "PivotTable",
    "TypeCompatibilityOracle",
    "TypeRegistry",
    "UnresolvableTypeError",
    "ChangeKind",
    "Severity",
    "DataLossRisk",
    "Compatibility",
    "ImpactLevel",
    "Complexity",
    "OperationType",
    "TypeVerdict",
    "StructuralCode",
]
