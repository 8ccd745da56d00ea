"""Packaging regression tests.

Tests that verify the source layout and the installed package version.
"""

from pathlib import Path


def test_source_layout():
    here = Path(__file__).resolve().parent
    repo_root = here.parent
    src_pkg = repo_root / "src" / "schemadelta"

    assert src_pkg.exists(), "schemadelta package should exist in src/"
    assert (src_pkg / "kernel").exists(), "schemadelta.kernel should exist"
    assert (src_pkg / "_internal").exists(), "schemadelta._internal should exist"
    assert (src_pkg / "cli.py").exists()


def test_import_boundary():
    import schemadelta
    import schemadelta.kernel.classify  # noqa: F401
    import schemadelta.cli  # noqa: F401

    # In dev mode it's "dev", in installed mode it's "1.0.0"
    assert schemadelta.__version__ in ("1.0.0", "dev")
