"""Public issue models for schemadelta."""

from typing import List, Optional
from pydantic import BaseModel


class StructuralIssue(BaseModel):
    """A malformed-input issue found before a comparison is attempted."""
    code: str  # StructuralCode value
    message: str
    side: Optional[str] = None  # "old" | "new" | None (single-schema check)
    element: Optional[str] = None  # field/relationship name the issue is about


class CheckResult(BaseModel):
    """Result of a structural check of one schema."""
    ok: bool
    errors: List[StructuralIssue]  # sorted
