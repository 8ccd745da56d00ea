"""Performance sentinel benchmarks.

Sentinels compare generated wide schema pairs; the differs match by name, so
runtime must grow linearly with the number of fields and relationships.
"""

from __future__ import annotations

import os
from typing import Tuple

from schemadelta.kernel.schema import Schema


def _budget_from_env(var_name: str, default_ms: float) -> float:
    raw = os.getenv(var_name)
    if not raw:
        return default_ms
    try:
        return float(raw)
    except ValueError:
        return default_ms


MAX_WIDE_SCHEMA_MS = _budget_from_env("SCHEMADELTA_MAX_WIDE_SCHEMA_MS", 2000.0)
MAX_MANY_RELATIONSHIPS_MS = _budget_from_env("SCHEMADELTA_MAX_MANY_RELATIONSHIPS_MS", 1000.0)


def build_wide_schema_pair(field_count: int, relationship_count: int = 0) -> Tuple[Schema, Schema]:
    """Old/new schemas where every third field changes and every tenth is removed."""
    old_fields = []
    new_fields = []
    for i in range(field_count):
        old_fields.append({"name": f"col_{i}", "type": "string", "length": 255, "nullable": True})
        if i % 10 == 9:
            continue
        if i % 3 == 0:
            new_fields.append({"name": f"col_{i}", "type": "text", "nullable": True})
        else:
            new_fields.append({"name": f"col_{i}", "type": "string", "length": 255, "nullable": True})
    for i in range(field_count // 20):
        new_fields.append({"name": f"added_{i}", "type": "integer", "nullable": True})

    old_relationships = []
    new_relationships = []
    for i in range(relationship_count):
        old_relationships.append({"name": f"rel_{i}", "type": "belongsTo", "target": f"Model{i}"})
        relationship_type = "hasOne" if i % 4 == 0 else "belongsTo"
        new_relationships.append({"name": f"rel_{i}", "type": relationship_type, "target": f"Model{i}"})

    old = Schema.model_validate({
        "name": "Wide", "table": "wide", "fields": old_fields, "relationships": old_relationships,
    })
    new = Schema.model_validate({
        "name": "Wide", "table": "wide", "fields": new_fields, "relationships": new_relationships,
    })
    return old, new
