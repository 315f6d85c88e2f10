"""
CLI command implementations.

This module contains the implementation of the three CLI commands:
- run: Merge the new database into the old one
- match: Preview the metadata alignment
- report: Render a saved run summary
"""

import argparse
import json
import logging
import sys

from prometheus_client import CollectorRegistry

from statmerge.engine import MergeRunner, load_definitions, match_metadata
from statmerge.errors import StatMergeError
from statmerge.options import MergeOptions
from statmerge.report import export_summary_json, format_alignment_table, format_summary_console
from statmerge.store import SQLITE, open_store
from utils.metrics import MergeMetrics, MetricsPublisher
from utils.tracing import initialize_tracing, shutdown_tracing

logger = logging.getLogger(__name__)


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run the merge

    Args:
        args: Parsed command-line arguments
    """
    try:
        options = MergeOptions(
            dry_run=args.dry_run,
            skip_duplicate_check=args.skip_duplicate_check,
            copy_to_new_db=args.copy_to_new_db,
            sync_timeout=args.sync_timeout,
        )
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        sys.exit(1)

    registry = CollectorRegistry()
    metrics = MergeMetrics(registry=registry)
    if args.metrics_port:
        try:
            MetricsPublisher(port=args.metrics_port, registry=registry).start()
        except RuntimeError as e:
            logger.error(str(e))
            sys.exit(1)

    if args.otlp_endpoint:
        initialize_tracing(otlp_endpoint=args.otlp_endpoint)

    stores = []
    try:
        old_store = open_store(args.db_type, args.old_db, "old", args.batch_size)
        stores.append(old_store)
        new_store = open_store(args.db_type, args.new_db, "new", args.batch_size)
        stores.append(new_store)
        staging_store = open_store(SQLITE, args.staging_db, "staging", args.batch_size)
        stores.append(staging_store)

        runner = MergeRunner(old_store, new_store, staging_store, options, metrics)
        summary = runner.run().to_dict()

        if args.output:
            export_summary_json(summary, args.output)
            logger.info(f"Summary saved to {args.output}")

        print(format_summary_console(summary))
        logger.info("Merge completed successfully")

    except StatMergeError as e:
        logger.error(f"Merge failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Merge aborted by store error: {e}")
        sys.exit(1)
    finally:
        for store in stores:
            store.close()
        if args.otlp_endpoint:
            shutdown_tracing()


def cmd_match(args: argparse.Namespace) -> None:
    """
    Print the metadata alignment table (read-only)

    Args:
        args: Parsed command-line arguments
    """
    stores = []
    try:
        old_store = open_store(args.db_type, args.old_db, "old")
        stores.append(old_store)
        new_store = open_store(args.db_type, args.new_db, "new")
        stores.append(new_store)

        matches = match_metadata(load_definitions(old_store), load_definitions(new_store))
        print(format_alignment_table(matches))

    except StatMergeError as e:
        logger.error(f"Matching failed: {e}")
        sys.exit(1)
    finally:
        for store in stores:
            store.close()


def cmd_report(args: argparse.Namespace) -> None:
    """
    Render a run summary saved with ``run --output``

    Args:
        args: Parsed command-line arguments
    """
    logger.info(f"Loading run summary from {args.input}")

    try:
        with open(args.input) as f:
            summary = json.load(f)

        print(format_summary_console(summary))

    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to process summary: {e}")
        sys.exit(1)
