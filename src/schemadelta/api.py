"""Public API for schemadelta.

High-level functions that return complete, structured results. Client code
should use these functions instead of calling the kernel stages directly.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField

from schemadelta.codes import StructuralCode
from schemadelta.contracts import CheckResult, StructuralIssue
from schemadelta.kernel.aggregate import Summary, aggregate
from schemadelta.kernel.classify import ClassifiedChange, classify_all
from schemadelta.kernel.diff import AttributeChange, diff_schema_metadata, diff_schemas
from schemadelta.kernel.impact import MigrationImpact, analyze
from schemadelta.kernel.schema import Schema
from schemadelta.kernel.structure import StructuralError, check_schema, sort_issues
from schemadelta.kernel.types import TypeCompatibilityOracle, TypeRegistry, default_oracle
from schemadelta.kernel.validation_impact import ValidationImpact, analyze_validation

logger = logging.getLogger(__name__)

SchemaInput = Union[Schema, str, os.PathLike, Path, Dict]


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


class DiffResult(BaseModel):
    """Complete, immutable result of comparing two schema versions."""
    summary: Summary
    schema_changes: List[AttributeChange] = PydanticField(default_factory=list)  # name/table/options/metadata (informational)
    field_changes: List[ClassifiedChange] = PydanticField(default_factory=list)
    relationship_changes: List[ClassifiedChange] = PydanticField(default_factory=list)
    breaking_changes: List[ClassifiedChange] = PydanticField(default_factory=list)  # Breaking subset, report order
    migration_impact: MigrationImpact
    validation_impact: ValidationImpact = PydanticField(default_factory=ValidationImpact)
    has_breaking_changes: bool = False  # Precomputed for cheap CI gating

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def changes(self) -> List[ClassifiedChange]:
        """Field changes followed by relationship changes."""
        return self.field_changes + self.relationship_changes


class ComparisonResult(BaseModel):
    """Either a complete DiffResult or the structural issues that blocked it."""
    ok: bool
    errors: List[StructuralIssue] = PydanticField(default_factory=list)  # sorted
    result: Optional[DiffResult] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


def _load_schema_from_path(path: Path) -> Schema:
    """Load a schema from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return Schema.model_validate(data)


def _load_schema_from_dict(data: Dict) -> Schema:
    """Load a schema from dict."""
    return Schema.model_validate(data)


def load_schema(source: SchemaInput) -> Schema:
    """Load a schema from a Schema, a dict, or a path to a JSON file.

    Raises:
        OSError: The file cannot be read
        ValueError: The JSON is invalid or does not describe a schema
            (pydantic.ValidationError is a ValueError)
    """
    if isinstance(source, Schema):
        return source
    if isinstance(source, dict):
        return _load_schema_from_dict(source)
    return _load_schema_from_path(_normalize_path(source))


def _try_load(source: SchemaInput, side: Optional[str]) -> Tuple[Optional[Schema], List[StructuralIssue]]:
    try:
        return load_schema(source), []
    except (OSError, ValueError) as e:
        label = f"{side} schema" if side else "schema"
        return None, [StructuralIssue(
            code=StructuralCode.INVALID_STRUCTURE.value,
            message=f"Failed to load {label}: {e}",
            side=side,
        )]


def _registry_of(oracle: TypeCompatibilityOracle) -> Optional[TypeRegistry]:
    # Validation rules need alias resolution, which only a registry offers.
    return oracle if isinstance(oracle, TypeRegistry) else None


def _build_diff_result(old: Schema, new: Schema, oracle: TypeCompatibilityOracle) -> DiffResult:
    """Run the pipeline on two well-formed schemas."""
    raw_field_changes, raw_relationship_changes = diff_schemas(old, new)

    field_changes = classify_all(raw_field_changes, oracle)
    relationship_changes = classify_all(raw_relationship_changes, oracle)
    all_changes = field_changes + relationship_changes
    breaking_changes = [change for change in all_changes if change.is_breaking]

    return DiffResult(
        summary=aggregate(field_changes, relationship_changes, old=old, new=new),
        schema_changes=diff_schema_metadata(old, new),
        field_changes=field_changes,
        relationship_changes=relationship_changes,
        breaking_changes=breaking_changes,
        migration_impact=analyze(all_changes),
        validation_impact=analyze_validation(old, new, _registry_of(oracle)),
        has_breaking_changes=bool(breaking_changes),
    )


def compare(
    old: SchemaInput,
    new: SchemaInput,
    oracle: Optional[TypeCompatibilityOracle] = None,
) -> ComparisonResult:
    """
    Compare two schema versions without raising on malformed input.

    Args:
        old: Old schema (Schema, dict, or path to JSON)
        new: New schema (Schema, dict, or path to JSON)
        oracle: Type compatibility oracle (default: built-in TypeRegistry)

    Returns:
        ComparisonResult. ok is False (and result None) when either side
        fails to load or violates a structural invariant; the diff is not
        attempted in that case.
    """
    old_schema, issues = _try_load(old, "old")
    new_schema, new_issues = _try_load(new, "new")
    issues = issues + new_issues
    if old_schema is not None:
        issues.extend(check_schema(old_schema, side="old"))
    if new_schema is not None:
        issues.extend(check_schema(new_schema, side="new"))

    if issues:
        issues = sort_issues(issues)
        logger.info("Comparison not attempted: %d structural issue(s)", len(issues))
        return ComparisonResult(ok=False, errors=issues, result=None)

    if oracle is None:
        oracle = default_oracle()

    logger.debug(
        "Comparing schema '%s' (%d fields, %d relationships) with '%s' (%d fields, %d relationships)",
        old_schema.name, len(old_schema.fields), len(old_schema.relationships),
        new_schema.name, len(new_schema.fields), len(new_schema.relationships),
    )
    result = _build_diff_result(old_schema, new_schema, oracle)
    logger.info(
        "Compared '%s': %d change(s), %d breaking, compatibility=%s, %d migration operation(s)",
        new_schema.name,
        result.summary.total_changes,
        result.summary.breaking_count,
        result.summary.compatibility.value,
        len(result.migration_impact.operations),
    )
    return ComparisonResult(ok=True, errors=[], result=result)


def diff(
    old: SchemaInput,
    new: SchemaInput,
    oracle: Optional[TypeCompatibilityOracle] = None,
) -> DiffResult:
    """
    High-level diff analysis between two schema versions.

    Raises:
        StructuralError: Either input is malformed; no partial result is returned
    """
    comparison = compare(old, new, oracle=oracle)
    if not comparison.ok:
        raise StructuralError(comparison.errors)
    return comparison.result


def check(schema: SchemaInput) -> CheckResult:
    """
    Structural preflight of a single schema.

    Does NOT raise for malformed input; every problem is returned as an issue.
    """
    schema_obj, issues = _try_load(schema, None)
    if schema_obj is not None:
        issues = check_schema(schema_obj)
    return CheckResult(ok=not issues, errors=issues)


def has_breaking_changes(result: DiffResult) -> bool:
    """Whether a computed diff contains any Breaking change."""
    return result.has_breaking_changes
