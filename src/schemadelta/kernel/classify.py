"""Classify raw changes into severity, data-loss risk and a description.

Rule table (first matching change kind wins):

1. FIELD_REMOVED                  -> breaking / high
   RELATIONSHIP_REMOVED           -> breaking / medium
                                     (high when it owned a required foreign key)
2. FIELD_ADDED, required without
   a default                      -> breaking / none
   FIELD_ADDED otherwise          -> non-breaking / none
3. RELATIONSHIP_ADDED             -> non-breaking / none
4-7. FIELD_MODIFIED, per attribute:
   type (oracle verdict)          identical -> non-breaking / none
                                  widening -> non-breaking / low
                                  narrowing -> breaking / medium
                                  incompatible -> breaking / high
                                  unresolvable -> breaking / high
   nullable true -> false         -> breaking / medium
   nullable false -> true         -> non-breaking / none
   length/precision/scale down    -> breaking / medium
   length/precision/scale up      -> non-breaking / none
   unique added                   -> breaking / low (static warning)
   anything else                  -> non-breaking / none
8. RELATIONSHIP_MODIFIED:
   type                           -> breaking / medium
   target/foreign_key/local_key/pivot -> breaking / low

When several attribute rules apply to one modified entry, the result takes
the highest severity and the highest risk of all of them, and every
applicable description is kept.

Classification is a pure function of the raw change and the oracle verdict.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField

from schemadelta.codes import ChangeKind, DataLossRisk, Severity, TypeVerdict
from .diff import EXTRA_PREFIX, SIZE_ATTRIBUTES, AttributeChange, RawChange
from .types import TypeCompatibilityOracle, UnresolvableTypeError

logger = logging.getLogger(__name__)


class ClassifiedChange(BaseModel):
    """A raw change annotated with severity, data-loss risk and description."""
    kind: ChangeKind
    category: Literal["field", "relationship"]
    name: str
    severity: Severity
    data_loss_risk: DataLossRisk
    description: str  # All applicable reasons, joined
    reasons: List[str] = PydanticField(default_factory=list)  # One entry per applicable rule
    attribute_changes: List[AttributeChange] = PydanticField(default_factory=list)
    before: Optional[Dict[str, Any]] = None  # Old definition (None for additions)
    after: Optional[Dict[str, Any]] = None  # New definition (None for removals)
    type_verdict: Optional[TypeVerdict] = None  # Only when the type attribute changed and resolved
    unresolvable: bool = False  # True when the oracle could not resolve a type
    unresolved_types: List[str] = PydanticField(default_factory=list)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_breaking(self) -> bool:
        return self.severity is Severity.BREAKING


@dataclass(frozen=True)
class _Verdict:
    severity: Severity
    risk: DataLossRisk
    description: str


def _breaking(risk: DataLossRisk, description: str) -> _Verdict:
    return _Verdict(Severity.BREAKING, risk, description)


def _safe(risk: DataLossRisk, description: str) -> _Verdict:
    return _Verdict(Severity.NON_BREAKING, risk, description)


def _fmt(value: Any) -> str:
    if value is None:
        return "none"
    return str(value)


def _type_verdict(
    name: str,
    change: AttributeChange,
    oracle: TypeCompatibilityOracle,
) -> tuple[_Verdict, Optional[TypeVerdict], Optional[str]]:
    """Classify a type change. Returns (verdict, oracle verdict, unresolved type)."""
    old_type, new_type = change.old_value, change.new_value
    try:
        verdict = TypeVerdict(oracle.compare(old_type, new_type))
    except UnresolvableTypeError as e:
        logger.warning(
            "Type oracle could not resolve '%s' while comparing field '%s' (%s -> %s)",
            e.type_name, name, old_type, new_type,
        )
        return (
            _breaking(
                DataLossRisk.HIGH,
                f"Type of '{name}' cannot be verified: unresolved type '{e.type_name}' "
                f"({old_type} -> {new_type})",
            ),
            None,
            e.type_name,
        )

    if verdict is TypeVerdict.IDENTICAL:
        result = _safe(DataLossRisk.NONE, f"Type of '{name}' renamed from {old_type} to {new_type} (same underlying type)")
    elif verdict is TypeVerdict.WIDENING:
        result = _safe(DataLossRisk.LOW, f"Type of '{name}' widened from {old_type} to {new_type}")
    elif verdict is TypeVerdict.NARROWING:
        result = _breaking(DataLossRisk.MEDIUM, f"Type of '{name}' narrowed from {old_type} to {new_type}")
    else:
        result = _breaking(DataLossRisk.HIGH, f"Type of '{name}' changed incompatibly from {old_type} to {new_type}")
    return result, verdict, None


def _size_verdict(name: str, change: AttributeChange) -> _Verdict:
    old_value, new_value = change.old_value, change.new_value
    attribute = change.attribute
    if old_value is None:
        return _safe(DataLossRisk.NONE, f"{attribute.capitalize()} constraint of '{name}' set to {new_value}")
    if new_value is None:
        return _safe(DataLossRisk.NONE, f"{attribute.capitalize()} constraint of '{name}' removed (was {old_value})")
    if new_value < old_value:
        return _breaking(
            DataLossRisk.MEDIUM,
            f"{attribute.capitalize()} of '{name}' reduced from {old_value} to {new_value} (possible truncation)",
        )
    return _safe(DataLossRisk.NONE, f"{attribute.capitalize()} of '{name}' increased from {old_value} to {new_value}")


def _field_modified_verdicts(
    change: RawChange,
    oracle: TypeCompatibilityOracle,
) -> tuple[List[_Verdict], Optional[TypeVerdict], List[str]]:
    name = change.name
    verdicts: List[_Verdict] = []
    type_verdict: Optional[TypeVerdict] = None
    unresolved: List[str] = []

    for attr_change in change.attribute_changes:
        attribute = attr_change.attribute
        old_value, new_value = attr_change.old_value, attr_change.new_value

        if attribute == "type":
            verdict, type_verdict, unresolved_type = _type_verdict(name, attr_change, oracle)
            if unresolved_type:
                unresolved.append(unresolved_type)
            verdicts.append(verdict)
        elif attribute == "nullable":
            if old_value and not new_value:
                verdicts.append(_breaking(
                    DataLossRisk.MEDIUM,
                    f"'{name}' is no longer nullable; existing null values become invalid",
                ))
            else:
                verdicts.append(_safe(DataLossRisk.NONE, f"'{name}' is now nullable"))
        elif attribute in SIZE_ATTRIBUTES:
            verdicts.append(_size_verdict(name, attr_change))
        elif attribute == "unique":
            if new_value and not old_value:
                verdicts.append(_breaking(
                    DataLossRisk.LOW,
                    f"Unique constraint added to '{name}'; existing duplicate values would violate it",
                ))
            else:
                verdicts.append(_safe(DataLossRisk.NONE, f"Unique constraint removed from '{name}'"))
        elif attribute == "index":
            verdicts.append(_safe(
                DataLossRisk.NONE,
                f"Index {'added to' if new_value else 'removed from'} '{name}'",
            ))
        elif attribute.startswith(EXTRA_PREFIX):
            key = attribute[len(EXTRA_PREFIX):]
            verdicts.append(_safe(
                DataLossRisk.NONE,
                f"Attribute '{key}' of '{name}' changed from {_fmt(old_value)} to {_fmt(new_value)}",
            ))
        else:
            # default, comment, rules, validation
            verdicts.append(_safe(
                DataLossRisk.NONE,
                f"{attribute.capitalize()} of '{name}' changed from {_fmt(old_value)} to {_fmt(new_value)}",
            ))

    return verdicts, type_verdict, unresolved


def _relationship_modified_verdicts(change: RawChange) -> List[_Verdict]:
    name = change.name
    verdicts: List[_Verdict] = []
    for attr_change in change.attribute_changes:
        old_value, new_value = attr_change.old_value, attr_change.new_value
        if attr_change.attribute == "type":
            verdicts.append(_breaking(
                DataLossRisk.MEDIUM,
                f"Relationship '{name}' changed from {old_value} to {new_value}",
            ))
        elif attr_change.attribute == "pivot":
            verdicts.append(_breaking(DataLossRisk.LOW, f"Pivot of relationship '{name}' changed"))
        else:
            label = attr_change.attribute.replace("_", " ")
            verdicts.append(_breaking(
                DataLossRisk.LOW,
                f"Relationship '{name}' {label} changed from {_fmt(old_value)} to {_fmt(new_value)}",
            ))
    return verdicts


def _relationship_label(change: RawChange) -> str:
    relationship = change.old if change.old is not None else change.new
    target = f" to '{relationship.target}'" if relationship.target else ""
    return f"Relationship '{change.name}' ({relationship.type.value}){target}"


def classify(change: RawChange, oracle: TypeCompatibilityOracle) -> ClassifiedChange:
    """Classify one raw change."""
    type_verdict: Optional[TypeVerdict] = None
    unresolved: List[str] = []

    if change.kind is ChangeKind.FIELD_REMOVED:
        verdicts = [_breaking(DataLossRisk.HIGH, f"Field '{change.name}' ({change.old.type}) was removed")]

    elif change.kind is ChangeKind.RELATIONSHIP_REMOVED:
        required_fk = (change.details or {}).get("required_foreign_key")
        if required_fk:
            verdicts = [_breaking(
                DataLossRisk.HIGH,
                f"{_relationship_label(change)} was removed; it owns required foreign key '{required_fk}'",
            )]
        else:
            verdicts = [_breaking(DataLossRisk.MEDIUM, f"{_relationship_label(change)} was removed")]

    elif change.kind is ChangeKind.FIELD_ADDED:
        field = change.new
        if not field.nullable and field.default is None:
            verdicts = [_breaking(
                DataLossRisk.NONE,
                f"Required field '{change.name}' ({field.type}) was added without a default; "
                f"existing rows cannot be backfilled",
            )]
        else:
            qualifier = "nullable" if field.nullable else "with default"
            verdicts = [_safe(DataLossRisk.NONE, f"Field '{change.name}' ({field.type}, {qualifier}) was added")]

    elif change.kind is ChangeKind.RELATIONSHIP_ADDED:
        verdicts = [_safe(DataLossRisk.NONE, f"{_relationship_label(change)} was added")]

    elif change.kind is ChangeKind.FIELD_MODIFIED:
        verdicts, type_verdict, unresolved = _field_modified_verdicts(change, oracle)

    elif change.kind is ChangeKind.RELATIONSHIP_MODIFIED:
        verdicts = _relationship_modified_verdicts(change)

    else:
        raise ValueError(f"Unknown change kind: {change.kind}")

    severity = (
        Severity.BREAKING
        if any(v.severity is Severity.BREAKING for v in verdicts)
        else Severity.NON_BREAKING
    )
    risk = max((v.risk for v in verdicts), default=DataLossRisk.NONE)
    reasons = [v.description for v in verdicts]

    return ClassifiedChange(
        kind=change.kind,
        category=change.kind.category,
        name=change.name,
        severity=severity,
        data_loss_risk=risk,
        description="; ".join(reasons),
        reasons=reasons,
        attribute_changes=list(change.attribute_changes),
        before=change.old.model_dump(mode="json") if change.old is not None else None,
        after=change.new.model_dump(mode="json") if change.new is not None else None,
        type_verdict=type_verdict,
        unresolvable=bool(unresolved),
        unresolved_types=unresolved,
        details=dict(change.details) if change.details else None,
    )


def classify_all(changes: List[RawChange], oracle: TypeCompatibilityOracle) -> List[ClassifiedChange]:
    """Classify every raw change, preserving order."""
    return [classify(change, oracle) for change in changes]
