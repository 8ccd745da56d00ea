"""Validation-rule impact of a schema change.

Each field gets an effective rule list: required/nullable, the base rules of
its type, size and uniqueness rules derived from its attributes, then its
declared ``rules`` and ``validation`` tokens. The rule lists of the two
schema versions are compared per field.
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField

from schemadelta.codes import ValidationChange
from .schema import Field, Schema
from .types import TypeRegistry, UnresolvableTypeError

BASE_RULES_BY_TYPE = {
    "string": ["string"],
    "text": ["string"],
    "mediumText": ["string"],
    "longText": ["string"],
    "tinyInteger": ["integer"],
    "smallInteger": ["integer"],
    "mediumInteger": ["integer"],
    "integer": ["integer"],
    "bigInteger": ["integer"],
    "unsignedBigInteger": ["integer", "min:0"],
    "float": ["numeric"],
    "double": ["numeric"],
    "decimal": ["numeric"],
    "boolean": ["boolean"],
    "date": ["date"],
    "datetime": ["date"],
    "timestamp": ["date"],
    "time": ["date_format:H:i:s"],
    "json": ["json"],
    "uuid": ["uuid"],
    "email": ["email"],
    "binary": ["string"],
    "foreignId": ["integer"],
    "enum": ["string"],
    "set": ["array"],
    "point": ["string"],
    "geometry": ["string"],
    "polygon": ["string"],
}

_MAX_RULE = re.compile(r"^max:(\d+)$")


class RuleSetChange(BaseModel):
    """Effective rules of one field before and after."""
    field: str
    old: List[str]
    new: List[str]
    added_rules: List[str]
    removed_rules: List[str]

    model_config = ConfigDict(frozen=True, extra="forbid")


class BreakingValidationChange(BaseModel):
    field: str
    change: ValidationChange
    description: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class ValidationImpact(BaseModel):
    rules_changed: bool = False
    added_validation: Dict[str, List[str]] = PydanticField(default_factory=dict)  # field -> rules (new fields)
    removed_validation: Dict[str, List[str]] = PydanticField(default_factory=dict)  # field -> rules (removed fields)
    modified_validation: List[RuleSetChange] = PydanticField(default_factory=list)
    breaking_validation_changes: List[BreakingValidationChange] = PydanticField(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")


def _base_type(type_name: str, registry: Optional[TypeRegistry]) -> str:
    if registry is None:
        return type_name
    try:
        return registry.resolve(type_name)
    except UnresolvableTypeError:
        return type_name


def _foreign_table(field: Field) -> str:
    for key in ("references_table", "on", "table"):
        if field.extra.get(key):
            return str(field.extra[key])
    name = field.name[:-3] if field.name.endswith("_id") else field.name
    return f"{name}s"


def field_rules(field: Field, table: str, registry: Optional[TypeRegistry] = None) -> List[str]:
    """Effective validation rules of one field, without duplicates."""
    base_type = _base_type(field.type, registry)
    rules: List[str] = ["nullable" if field.nullable else "required"]
    rules.extend(BASE_RULES_BY_TYPE.get(base_type, ["string"]))

    if base_type == "foreignId":
        rules.append(f"exists:{_foreign_table(field)},id")
    if base_type == "enum":
        values = field.extra.get("values") or ()
        rules.append("in:" + ",".join(str(v) for v in values))
    if field.length is not None:
        rules.append(f"max:{field.length}")
    if base_type == "decimal" and field.precision is not None and field.scale is not None:
        rules.append(f"decimal:0,{field.scale}")
    if field.unique:
        rules.append(f"unique:{table},{field.name}")
    rules.extend(field.rules)
    rules.extend(field.validation)

    unique_rules: List[str] = []
    for rule in rules:
        if rule not in unique_rules:
            unique_rules.append(rule)
    return unique_rules


def schema_rules(schema: Schema, registry: Optional[TypeRegistry] = None) -> Dict[str, List[str]]:
    """field name -> effective rules, in declaration order."""
    return {field.name: field_rules(field, schema.table, registry) for field in schema.fields}


def _breaking_changes(modified: List[RuleSetChange]) -> List[BreakingValidationChange]:
    breaking: List[BreakingValidationChange] = []
    for change in modified:
        if "required" in change.added_rules and (
            "nullable" in change.removed_rules or "required" not in change.old
        ):
            breaking.append(BreakingValidationChange(
                field=change.field,
                change=ValidationChange.FIELD_MADE_REQUIRED,
                description=f"Field '{change.field}' was made required",
            ))

        for rule in change.added_rules:
            new_match = _MAX_RULE.match(rule)
            if not new_match:
                continue
            new_max = int(new_match.group(1))
            for old_rule in change.removed_rules:
                old_match = _MAX_RULE.match(old_rule)
                if old_match and new_max < int(old_match.group(1)):
                    breaking.append(BreakingValidationChange(
                        field=change.field,
                        change=ValidationChange.MAX_LENGTH_REDUCED,
                        description=(
                            f"Maximum length for '{change.field}' reduced from "
                            f"{old_match.group(1)} to {new_max}"
                        ),
                    ))
    return breaking


def analyze_validation(old: Schema, new: Schema, registry: Optional[TypeRegistry] = None) -> ValidationImpact:
    """Compare the effective validation rules of two schema versions."""
    old_rules = schema_rules(old, registry)
    new_rules = schema_rules(new, registry)

    added = {name: rules for name, rules in new_rules.items() if name not in old_rules}
    removed = {name: rules for name, rules in old_rules.items() if name not in new_rules}
    modified: List[RuleSetChange] = []
    for name, rules in new_rules.items():
        previous = old_rules.get(name)
        if previous is None or previous == rules:
            continue
        modified.append(RuleSetChange(
            field=name,
            old=previous,
            new=rules,
            added_rules=[rule for rule in rules if rule not in previous],
            removed_rules=[rule for rule in previous if rule not in rules],
        ))

    return ValidationImpact(
        rules_changed=bool(added or removed or modified),
        added_validation=added,
        removed_validation=removed,
        modified_validation=modified,
        breaking_validation_changes=_breaking_changes(modified),
    )
