"""Report generation for DiffResult: markdown and JSON.

Every section is derived from the DiffResult alone; no report re-runs the
comparison.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from schemadelta._internal.canonical_json import canonical_dumps
from schemadelta._internal.policy import REPORT_VERSION
from schemadelta.codes import ChangeKind
from schemadelta.kernel.classify import ClassifiedChange

ReportMode = Literal["full", "core", "off"]

_SECTION_ORDER = (
    ("Added", (ChangeKind.FIELD_ADDED, ChangeKind.RELATIONSHIP_ADDED)),
    ("Removed", (ChangeKind.FIELD_REMOVED, ChangeKind.RELATIONSHIP_REMOVED)),
    ("Modified", (ChangeKind.FIELD_MODIFIED, ChangeKind.RELATIONSHIP_MODIFIED)),
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _render(value: Any) -> str:
    if value is None:
        return "none"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, ensure_ascii=False)
    return str(value)


def _change_lines(changes: List[ClassifiedChange]) -> List[str]:
    lines = []
    for title, kinds in _SECTION_ORDER:
        section = [change for change in changes if change.kind in kinds]
        if not section:
            continue
        lines.append(f"### {title}")
        lines.append("")
        for change in section:
            marker = "[BREAKING]" if change.is_breaking else "[ok]"
            lines.append(f"- `{change.name}` {marker} (risk: {change.data_loss_risk.value}): {change.description}")
            for attr in change.attribute_changes:
                lines.append(f"  - {attr.attribute}: `{_render(attr.old_value)}` -> `{_render(attr.new_value)}`")
        lines.append("")
    if not lines:
        lines = ["No changes.", ""]
    return lines


def generate_markdown_report(result: "DiffResult", generated_at: Optional[str] = None) -> str:
    """Generate the human-readable markdown report."""
    summary = result.summary
    migration = result.migration_impact
    lines = []

    lines.append(f"# Schema Diff Report: {summary.schema_name}")
    lines.append("")
    lines.append(f"- Table: `{summary.table}`")
    if summary.table_renamed:
        lines.append(f"- Previous table: `{summary.old_table}`")
    lines.append(f"- Generated: {generated_at or _now()}")
    lines.append("")

    if result.has_breaking_changes:
        lines.append("## [!] Breaking Changes Detected")
    else:
        lines.append("## [OK] No Breaking Changes")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Compatibility**: {summary.compatibility.value}")
    lines.append(f"- **Impact level**: {summary.impact_level.value}")
    lines.append(f"- **Requires migration**: {'yes' if migration.requires_migration else 'no'}")
    lines.append(f"- **Data loss risk**: {migration.data_loss_risk.value}")
    lines.append(f"- **Total changes**: {summary.total_changes} ({summary.breaking_count} breaking)")
    lines.append(
        f"- **Fields**: {summary.fields.total} changed ({summary.fields.added} added, "
        f"{summary.fields.removed} removed, {summary.fields.modified} modified)"
    )
    lines.append(
        f"- **Relationships**: {summary.relationships.total} changed ({summary.relationships.added} added, "
        f"{summary.relationships.removed} removed, {summary.relationships.modified} modified)"
    )
    lines.append("")

    if result.schema_changes:
        lines.append("## Schema Changes")
        lines.append("")
        for change in result.schema_changes:
            lines.append(f"- {change.attribute}: `{_render(change.old_value)}` -> `{_render(change.new_value)}`")
        lines.append("")

    lines.append("## Field Changes")
    lines.append("")
    lines.extend(_change_lines(result.field_changes))

    lines.append("## Relationship Changes")
    lines.append("")
    lines.extend(_change_lines(result.relationship_changes))

    lines.append("## Breaking Changes")
    lines.append("")
    if result.breaking_changes:
        for change in result.breaking_changes:
            lines.append(f"- **{change.kind.value}** `{change.name}`: {change.description} (risk: {change.data_loss_risk.value})")
    else:
        lines.append("None.")
    lines.append("")

    lines.append("## Migration Impact")
    lines.append("")
    lines.append(f"- Operations: {migration.operation_count}")
    lines.append(f"- Complexity: {migration.complexity.value}")
    lines.append(f"- Data loss risk: {migration.data_loss_risk.value}")
    lines.append("")
    if migration.operations:
        lines.append("### Operations")
        lines.append("")
        for op in migration.operations:
            target = op.column or op.table or op.name
            lines.append(f"- `{op.operation_type.value}` {target} (risk: {op.risk_level.value})")
        lines.append("")
    if migration.recommended_actions:
        lines.append("### Recommended Actions")
        lines.append("")
        for action in migration.recommended_actions:
            lines.append(f"- {action}")
        lines.append("")

    validation = result.validation_impact
    if validation.breaking_validation_changes:
        lines.append("## Validation Impact")
        lines.append("")
        for change in validation.breaking_validation_changes:
            lines.append(f"- **{change.change.value}**: {change.description}")
        lines.append("")

    return "\n".join(lines)


def _summary_dict(result: "DiffResult") -> Dict[str, Any]:
    summary = result.summary.model_dump(mode="json")
    summary["requires_migration"] = result.migration_impact.requires_migration
    summary["data_loss_risk"] = result.migration_impact.data_loss_risk.value
    summary["has_breaking_changes"] = result.has_breaking_changes
    return summary


def _breaking_dicts(result: "DiffResult") -> List[Dict[str, Any]]:
    return [
        {
            "kind": change.kind.value,
            "name": change.name,
            "description": change.description,
            "data_loss_risk": change.data_loss_risk.value,
        }
        for change in result.breaking_changes
    ]


def generate_json_report(result: "DiffResult", generated_at: Optional[str] = None) -> Dict[str, Any]:
    """Machine-first report: every section of the DiffResult."""
    return {
        "report_version": REPORT_VERSION,
        "generated_at": generated_at or _now(),
        "schema": {"name": result.summary.schema_name, "table": result.summary.table},
        "summary": _summary_dict(result),
        "schema_changes": [change.model_dump(mode="json") for change in result.schema_changes],
        "field_changes": [change.model_dump(mode="json") for change in result.field_changes],
        "relationship_changes": [change.model_dump(mode="json") for change in result.relationship_changes],
        "breaking_changes": _breaking_dicts(result),
        "migration_impact": result.migration_impact.model_dump(mode="json"),
        "validation_impact": result.validation_impact.model_dump(mode="json"),
    }


def generate_core_json_report(result: "DiffResult") -> Dict[str, Any]:
    """Summary-only report: verdicts, breaking changes and operations.

    Carries no timestamp, so identical inputs give identical bytes.
    """
    migration = result.migration_impact
    return {
        "report_version": REPORT_VERSION,
        "schema": {"name": result.summary.schema_name, "table": result.summary.table},
        "summary": _summary_dict(result),
        "breaking_changes": _breaking_dicts(result),
        "migration_impact": {
            "operations": [op.model_dump(mode="json") for op in migration.operations],
            "requires_migration": migration.requires_migration,
            "data_loss_risk": migration.data_loss_risk.value,
            "complexity": migration.complexity.value,
            "recommended_actions": list(migration.recommended_actions),
        },
    }


def run_diff(
    old_path: Path,
    new_path: Path,
    output_dir: Optional[Path] = None,
    return_content: bool = False,
    report_mode: ReportMode = "full",
) -> Tuple[int, str, str]:
    """
    Run a comparison and generate reports.

    This is a thin wrapper over schemadelta.api.diff() that generates file outputs.

    Returns:
        Tuple of (exit_code, md, json): paths of the written files, or their
        content when return_content is True.
        Exit codes: 0 = no breaking changes, 1 = breaking changes

    Raises:
        StructuralError: Either schema is malformed
    """
    from .api import diff

    if report_mode not in ("full", "core", "off"):
        raise ValueError("report_mode must be 'full', 'core', or 'off'")

    result = diff(old_path, new_path)
    exit_code = 1 if result.has_breaking_changes else 0

    if report_mode == "off":
        return exit_code, "", ""

    md_content = ""
    if report_mode == "core":
        json_content_str = canonical_dumps(generate_core_json_report(result))
    else:
        generated_at = _now()
        md_content = generate_markdown_report(result, generated_at=generated_at)
        json_content_str = json.dumps(
            generate_json_report(result, generated_at=generated_at),
            indent=2,
            ensure_ascii=False,
        )

    if return_content:
        return exit_code, md_content, json_content_str

    if output_dir is None:
        raise ValueError("output_dir must be specified when return_content is False")

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / "schema_diff.json"
    json_path.write_text(json_content_str + "\n", encoding="utf-8")

    md_path_str = ""
    if report_mode == "full":
        md_path = output_dir / "schema_diff.md"
        md_path.write_text(md_content, encoding="utf-8")
        md_path_str = str(md_path)

    return exit_code, md_path_str, str(json_path)
