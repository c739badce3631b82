"""Sync report formatting functions.

- ``format_sync_report`` -- human-readable post-sync summary.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult


def _describe(r: SyncResult) -> str:
    parts = [r.file_path]
    if r.database_id:
        parts.append(f"id={r.database_id}")
    if r.discussion_url:
        parts.append(r.discussion_url)
    return "  " + " ".join(parts)


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.
    Unchanged entries are summarised by count only.
    """
    lines: list[str] = []

    header = "Troubleshooting sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append(f"Discussions listed: {report.discussions_listed}")
    lines.append("")

    lines.append(
        f"Processed {len(report.results)} entries: "
        f"{len(report.created)} created, {len(report.linked)} linked, "
        f"{len(report.updated)} updated, {len(report.unchanged)} unchanged, "
        f"{len(report.errors)} errors"
    )
    lines.append("")

    verb = "Would be" if report.dry_run else ""
    sections = [
        ("created", report.created),
        ("linked to existing discussions", report.linked),
        ("updated", report.updated),
    ]
    for label, results in sections:
        if not results:
            continue
        title = f"{verb} {label}" if verb else label
        lines.append(title[0].upper() + title[1:] + ":")
        lines.extend(_describe(r) for r in results)
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.file_path}: [{r.error_kind}] {r.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation."""
    results_list = []
    for r in report.results:
        entry: dict = {
            "file_path": r.file_path,
            "action": r.action.value if r.action else None,
            "success": r.success,
            "changed": r.changed,
        }
        if r.database_id:
            entry["database_id"] = r.database_id
        if r.discussion_url:
            entry["discussion_url"] = r.discussion_url
        if r.error:
            entry["error"] = r.error
            entry["error_kind"] = r.error_kind
        results_list.append(entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "discussions_listed": report.discussions_listed,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "linked": len(report.linked),
            "updated": len(report.updated),
            "unchanged": len(report.unchanged),
            "errors": len(report.errors),
        },
        "results": results_list,
    }
