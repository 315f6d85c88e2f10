"""
Command-line argument parser configuration.

This module sets up the argument parser for the statmerge CLI tool,
defining all commands and their options. Database and merge options fall
back to STATMERGE_* environment variables.
"""

import argparse
import os

from statmerge.options import DEFAULT_SYNC_TIMEOUT, env_flag
from statmerge.store import DIALECTS, SQLITE


def _add_database_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--db-type',
        choices=list(DIALECTS),
        default=os.getenv('STATMERGE_DB_TYPE', SQLITE),
        help='Database type of the old and new stores (default: sqlite)'
    )
    parser.add_argument(
        '--old-db',
        default=os.getenv('STATMERGE_OLD_DB', 'data/old.db'),
        help='Old (authoritative) database: file path, DSN, URL or ODBC string (default: data/old.db)'
    )
    parser.add_argument(
        '--new-db',
        default=os.getenv('STATMERGE_NEW_DB', 'data/new.db'),
        help='New database: file path, DSN, URL or ODBC string (default: data/new.db)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='statmerge',
        description="Merge a new statistics database into an old one, keeping running sums continuous",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Preview which metrics would be merged
  statmerge match --old-db data/old.db --new-db data/new.db

  # Dry run: compute and stage everything, write nothing to old/new
  statmerge run --dry-run --output summary.json

  # Merge and copy the result back into the new database
  statmerge run --copy-to-new-db --sync-timeout 300

  # PostgreSQL stores
  statmerge run --db-type postgresql --old-db "dbname=ha_old" --new-db "dbname=ha_new"

  # MySQL stores
  statmerge run --db-type mysql --old-db "mysql://ha:secret@db/ha_old" --new-db "mysql://ha:secret@db/ha_new"

  # Render a saved summary
  statmerge report --input summary.json
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv('LOG_LEVEL', 'INFO').upper(),
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        default=os.getenv('LOG_FILE'),
        help='Also write logs to this file (rotated)'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        default=env_flag('LOG_JSON'),
        help='Emit logs as JSON'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Run the merge')
    _add_database_options(run_parser)
    run_parser.add_argument(
        '--staging-db',
        default=os.getenv('STATMERGE_STAGING_DB', 'data/temp.db'),
        help='SQLite staging database, always written (default: data/temp.db)'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        default=env_flag('STATMERGE_DRY_RUN'),
        help='Compute and stage the merge without writing to the old or new database'
    )
    run_parser.add_argument(
        '--skip-duplicate-check',
        action='store_true',
        default=env_flag('STATMERGE_SKIP_DUPLICATE_CHECK'),
        help='Skip duplicate detection (faster, only safe on a clean boundary)'
    )
    run_parser.add_argument(
        '--copy-to-new-db',
        action='store_true',
        default=env_flag('STATMERGE_COPY_TO_NEW_DB'),
        help='Replace the new database statistics with the merged result'
    )
    run_parser.add_argument(
        '--sync-timeout',
        type=float,
        default=float(os.getenv('STATMERGE_SYNC_TIMEOUT', DEFAULT_SYNC_TIMEOUT)),
        help=f'Timeout in seconds for the copy to the new database (default: {DEFAULT_SYNC_TIMEOUT:.0f})'
    )
    run_parser.add_argument(
        '--batch-size',
        type=int,
        default=1000,
        help='Rows per insert batch (default: 1000)'
    )
    run_parser.add_argument(
        '--output',
        help='Output file path for the JSON run summary'
    )
    run_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )
    run_parser.add_argument(
        '--otlp-endpoint',
        default=os.getenv('OTLP_ENDPOINT'),
        help='Export traces to this OTLP collector (e.g. http://localhost:4317)'
    )

    # ========== Match command ==========
    match_parser = subparsers.add_parser(
        'match', help='Show the metadata alignment without merging'
    )
    _add_database_options(match_parser)

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Render a saved run summary')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON summary file'
    )

    return parser
