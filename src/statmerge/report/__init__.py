"""
Merge report formatting and export.

Renders the metadata alignment table and the run summary for the console,
and exports the summary as JSON for later inspection.
"""

from .formatters import export_summary_json, format_alignment_table, format_summary_console

__all__ = [
    'format_alignment_table',
    'format_summary_console',
    'export_summary_json',
]
