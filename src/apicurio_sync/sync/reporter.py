"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync runs:

- ``format_sync_report`` -- full post-sync summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult

from .models import SyncAction

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _describe(result: SyncResult) -> str:
    if result.action == SyncAction.PULL:
        return (
            f"  {result.coordinate}@{result.version} -> {result.path}"
            f" ({result.size} bytes)"
        )
    return f"  {result.path} -> {result.coordinate} ({result.size} bytes)"


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Sync report for {report.registry_url}"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {len(report.results)} artifacts: "
        f"{len(report.pulled)} pulled, {len(report.pushed)} pushed"
    )
    lines.append("")

    if report.pulled:
        lines.append("Pulled from registry:")
        for r in report.pulled:
            lines.append(_describe(r))
        lines.append("")

    if report.pushed:
        lines.append("Pushed to registry:")
        for r in report.pushed:
            lines.append(_describe(r))
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each proposed action is shown as ``path <-> group/artifact``.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"Registry: {report.registry_url}")
    lines.append("")

    groups: dict[SyncAction, list[SyncResult]] = defaultdict(list)
    for r in report.results:
        groups[r.action].append(r)

    for action in (SyncAction.PULL, SyncAction.PUSH):
        if action not in groups:
            continue
        lines.append(f"[{action.value.upper()}]")
        for r in groups[action]:
            suffix = f"@{r.version}" if r.version else ""
            lines.append(f"  {r.path} <-> {r.coordinate}{suffix}")
        lines.append("")

    if not groups:
        lines.append("Nothing to sync.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation."""
    results_list = []
    for r in report.results:
        entry: dict = {
            "path": r.path,
            "group": r.group,
            "artifact": r.artifact_id,
            "action": r.action.value,
            "size": r.size,
        }
        if r.version is not None:
            entry["version"] = r.version
        results_list.append(entry)

    return {
        "registry_url": report.registry_url,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "pulled": len(report.pulled),
            "pushed": len(report.pushed),
        },
        "results": results_list,
    }
