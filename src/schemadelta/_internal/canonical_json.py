"""Centralized canonical JSON serialization.

A single function for byte-stable JSON used by the JSON report, the CLI
output files and test snapshots. Two runs over the same schema pair must
produce identical bytes.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization.

    Rules:
    - UTF-8 (non-ASCII characters are written as-is)
    - Sorted keys
    - Stable separators (",", ":")
    - List order is preserved; callers order lists before serializing

    Args:
        obj: JSON-compatible Python object

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )
