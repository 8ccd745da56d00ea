"""schemadelta CLI: compare schema versions and check schema structure."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional


def main():
    """Main CLI entry point for schemadelta commands."""
    try:
        schemadelta_version = get_version("schemadelta")
    except PackageNotFoundError:
        schemadelta_version = "dev"

    parser = argparse.ArgumentParser(
        prog="schemadelta",
        description="schemadelta: Deterministic schema compatibility and migration impact analysis"
    )
    parser.add_argument("--version", action="version", version=f"schemadelta {schemadelta_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log analysis progress to stderr."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # diff command
    diff_parser = subparsers.add_parser(
        "diff",
        help="Compare two schema versions",
        parents=[parent_parser]
    )
    diff_parser.add_argument(
        "--from",
        dest="old_schema",
        type=Path,
        required=True,
        help="Path to the old schema (JSON)"
    )
    diff_parser.add_argument(
        "--to",
        dest="new_schema",
        type=Path,
        required=True,
        help="Path to the new schema (JSON)"
    )
    diff_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for reports (default: print to stdout)"
    )
    diff_parser.add_argument(
        "--report-mode",
        choices=["full", "core", "off"],
        default="full",
        help="Report mode: full (markdown+json), core (summary json only), off (no report output)"
    )
    diff_parser.add_argument(
        "--fail-on-breaking",
        action="store_true",
        help="Exit with code 1 when the diff contains a breaking change."
    )

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check one schema for structural problems",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "schema",
        type=Path,
        help="Path to the schema (JSON)"
    )
    check_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for check.json"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "diff":
        # Lazy import: only import the kernel when diff is invoked
        from .kernel.structure import StructuralError
        from .report import run_diff

        try:
            old_path = Path(args.old_schema).resolve()
            new_path = Path(args.new_schema).resolve()

            output_dir: Optional[Path] = None
            if args.output_dir:
                output_dir = Path(args.output_dir).resolve()

            # Without an output dir the content is returned and printed to stdout.
            return_content = output_dir is None

            exit_code, report_md, report_json = run_diff(
                old_path,
                new_path,
                output_dir=output_dir,
                return_content=return_content,
                report_mode=args.report_mode,
            )

            if return_content and not args.quiet:
                if args.report_mode == "full":
                    print(report_md)
                elif args.report_mode == "core":
                    print(report_json)

            if not args.quiet:
                if output_dir and args.report_mode != "off":
                    print("[OK] Diff analysis complete")
                    if args.report_mode == "full":
                        print(f"  Markdown: {report_md}")
                    print(f"  JSON: {report_json}")
                else:
                    print(f"[OK] Diff analysis complete (report_mode={args.report_mode})")
                if exit_code:
                    print("  Status: BREAKING CHANGES")
                else:
                    print("  Status: COMPATIBLE")

            sys.exit(exit_code if args.fail_on_breaking else 0)
        except StructuralError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
    elif args.command == "check":
        from .api import check
        from ._internal.canonical_json import canonical_dumps

        result = check(Path(args.schema).resolve())
        if args.output_dir:
            output_dir = Path(args.output_dir).resolve()
            output_dir.mkdir(parents=True, exist_ok=True)
            report_out = output_dir / "check.json"
            report_out.write_text(canonical_dumps(result.model_dump(mode="json")) + "\n", encoding="utf-8")
            if not args.quiet:
                print(f"  Report: {report_out}")
        if not args.quiet:
            print(f"[{'OK' if result.ok else 'FAILED'}] Check complete")
            print(f"  Status: {'OK' if result.ok else 'FAILED'}")
            print(f"  Errors: {len(result.errors)}")
        for issue in result.errors:
            print(f"  [{issue.code}] {issue.message}", file=sys.stderr)
        if not result.ok:
            sys.exit(2)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
