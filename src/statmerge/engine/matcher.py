"""
Statistic metadata matching between the old and new stores.

Metrics are paired by their external ``statistic_id``. Numeric ids are
per-store and never compared.
"""

import logging

from statmerge.errors import NoMetadataError
from statmerge.models import MatchedMetric, MetricDefinition
from statmerge.store import STATISTICS_META, StatisticsStore

logger = logging.getLogger(__name__)


def load_definitions(store: StatisticsStore) -> list[MetricDefinition]:
    """Read every statistic definition from a store."""
    return [MetricDefinition.from_row(row) for row in store.read_all(STATISTICS_META.name)]


def match_metadata(
    old_definitions: list[MetricDefinition],
    new_definitions: list[MetricDefinition],
) -> list[MatchedMetric]:
    """
    Pair each old-store definition with its new-store counterpart

    Matching is a case-sensitive exact comparison of ``statistic_id``. If the
    new store holds the same identifier more than once, the first one wins.

    Args:
        old_definitions: Definitions from the old store
        new_definitions: Definitions from the new store

    Returns:
        One MatchedMetric per old definition, in old-store order

    Raises:
        NoMetadataError: If the old store has no definitions
    """
    if not old_definitions:
        raise NoMetadataError("No statistic metadata in the old database")

    new_by_statistic_id: dict[str, MetricDefinition] = {}
    for definition in new_definitions:
        new_by_statistic_id.setdefault(definition.statistic_id, definition)

    matches = []
    for old in old_definitions:
        new = new_by_statistic_id.get(old.statistic_id)
        matches.append(
            MatchedMetric(
                old_id=old.id,
                new_id=new.id if new is not None else None,
                statistic_id=old.statistic_id,
                has_sum=old.has_sum,
            )
        )

    matched = sum(1 for match in matches if match.is_matched)
    logger.info(
        f"Matched {matched} of {len(matches)} old statistics "
        f"against {len(new_definitions)} new statistics"
    )
    return matches
