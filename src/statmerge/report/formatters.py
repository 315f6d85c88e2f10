"""
Report formatting and export utilities.

This module renders merge results for the terminal and exports run
summaries as JSON.
"""

import json
import os
from typing import Any

from statmerge.models import MatchedMetric

ID_WIDTH = 8
RECALCULATE_WIDTH = 14


def format_alignment_table(matches: list[MatchedMetric]) -> str:
    """
    Format the metadata alignment table

    One row per old-store metric: old id, new id ("NONE" when unmatched),
    statistic_id, and whether its running sum is recalculated.

    Args:
        matches: Matched metrics, in old-store order

    Returns:
        Right-aligned table with a header and separator line
    """
    id_width = max([len(match.statistic_id) for match in matches] + [10]) + 2

    header = (
        f"{'old id':>{ID_WIDTH}}"
        f"{'new id':>{ID_WIDTH}}"
        f"{'statistic_id':>{id_width}}"
        f"{'recalculate?':>{RECALCULATE_WIDTH}}"
    )
    lines = [header, "-" * len(header)]

    for match in matches:
        new_id = "NONE" if match.new_id is None else str(match.new_id)
        recalculate = "YES" if match.recalculates else "NO"
        lines.append(
            f"{match.old_id:>{ID_WIDTH}}"
            f"{new_id:>{ID_WIDTH}}"
            f"{match.statistic_id:>{id_width}}"
            f"{recalculate:>{RECALCULATE_WIDTH}}"
        )

    return "\n".join(lines)


def export_summary_json(summary: dict[str, Any], output_path: str) -> None:
    """
    Export run summary to JSON file

    Args:
        summary: Run summary dictionary
        output_path: Path to output file
    """
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(summary, f, indent=2)


def format_summary_console(summary: dict[str, Any]) -> str:
    """
    Format run summary for console output

    Args:
        summary: Run summary dictionary (as produced by RunSummary.to_dict)

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("STATISTICS MERGE REPORT" + (" (DRY RUN)" if summary.get("dry_run") else ""))
    lines.append("=" * 80)

    matches = summary.get("matches", [])
    matched = [match for match in matches if match.get("new_id") is not None]
    lines.append(f"Metrics in old database: {len(matches)}")
    lines.append(f"Metrics matched: {len(matched)}")
    lines.append(f"Elapsed: {summary.get('elapsed_seconds', 0):.2f}s")
    lines.append("")

    tables = summary.get("tables", {})
    if tables:
        lines.append("SERIES TABLES")
        lines.append("-" * 80)

        for name, table in tables.items():
            state = "committed" if table.get("committed") else "staged only"
            lines.append(f"Table: {name} ({state})")
            lines.append(f"  Imported: {table.get('imported', 0):,}")
            lines.append(f"  Duplicates: {table.get('duplicates', 0):,}")
            lines.append(f"  Dropped: {table.get('dropped', 0):,}")
            lines.append(f"  Skipped metrics: {table.get('skipped_metrics', 0)}")

            for metric in table.get("metrics", []):
                if metric.get("status") != "merged":
                    lines.append(f"    {metric['statistic_id']}: {metric['status']}")
            lines.append("")

    lines.append(f"Run markers copied: {summary.get('runs_copied', 0)}")

    sync = summary.get("sync")
    if sync:
        lines.append("")
        lines.append("NEW DATABASE SYNC" + (" (DRY RUN)" if sync.get("dry_run") else ""))
        lines.append("-" * 80)
        for name, count in sync.get("inserted", {}).items():
            deleted = sync.get("deleted", {}).get(name, 0)
            lines.append(f"  {name}: {deleted:,} deleted, {count:,} inserted")

    lines.append("=" * 80)

    return "\n".join(lines)
