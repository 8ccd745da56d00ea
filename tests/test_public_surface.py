"""Test public API surface - ensure imports work correctly and no side effects.

This test verifies:
- schemadelta.api exposes compare, diff, check
- Functions work on tiny fixtures
- Importing the kernel diff module does not shadow the api diff function
"""

import types
from pathlib import Path

HERE = Path(__file__).resolve().parent
FIXTURES = HERE.parent / "fixtures"


def test_api_exports_core_functions():
    from schemadelta.api import check, compare, diff, has_breaking_changes, load_schema

    for func in (check, compare, diff, has_breaking_changes, load_schema):
        assert isinstance(func, types.FunctionType)


def test_api_functions_work_on_fixtures():
    from schemadelta.api import CheckResult, ComparisonResult, DiffResult, check, compare, diff

    old = FIXTURES / "scenario1_field_added" / "old.json"
    new = FIXTURES / "scenario1_field_added" / "new.json"

    assert isinstance(check(old), CheckResult)
    assert isinstance(diff(old, new), DiffResult)
    comparison = compare(old, new)
    assert isinstance(comparison, ComparisonResult)
    assert comparison.ok is True


def test_no_module_shadowing():
    """Importing schemadelta.kernel.diff must not replace schemadelta.api.diff."""
    from schemadelta.api import diff as diff_func
    import schemadelta.kernel.diff as diff_module

    from schemadelta.api import diff as diff_func_after
    assert diff_func is diff_func_after
    assert isinstance(diff_module, types.ModuleType)


def test_root_imports_dont_export_diff():
    """diff is NOT in __all__; compare is the root-level entry point."""
    import schemadelta
    from schemadelta.api import diff as api_diff_func

    assert "diff" not in schemadelta.__all__
    assert getattr(schemadelta, "diff", None) is not api_diff_func

    assert "compare" in schemadelta.__all__
    assert "check" in schemadelta.__all__
    assert hasattr(schemadelta, "DiffResult")
    assert hasattr(schemadelta, "TypeRegistry")


def test_all_names_resolve():
    import schemadelta

    missing = [name for name in schemadelta.__all__ if not hasattr(schemadelta, name)]
    assert missing == []
