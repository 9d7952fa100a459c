"""
Stats Aggregator — pending / in-progress / resolved / total counters.

Reads the status of every complaint (no filters, no pagination) and reduces
locally. Unknown statuses only count toward the total.
"""

import logging
from typing import Iterable, Optional

from nagar_rakshak.models.stats import ComplaintStats
from nagar_rakshak.record_store.store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({"registered"})
IN_PROGRESS_STATUSES = frozenset({"assigned", "in-progress"})
RESOLVED_STATUSES = frozenset({"resolved"})


def reduce_statuses(statuses: Iterable[Optional[str]]) -> ComplaintStats:
    """Fold raw status values into counters, case-insensitively."""
    stats = ComplaintStats()
    for status in statuses:
        key = status.lower() if status else None
        if key in PENDING_STATUSES:
            stats.pending += 1
        elif key in IN_PROGRESS_STATUSES:
            stats.in_progress += 1
        elif key in RESOLVED_STATUSES:
            stats.resolved += 1
        stats.total += 1
    return stats


class StatsAggregator:
    def __init__(self, store: RecordStore):
        self.store = store
        self.stats = ComplaintStats()

    def refresh(self) -> ComplaintStats:
        """Recompute from the store. On failure the previous counters stay."""
        try:
            statuses = self.store.select_statuses()
        except RecordStoreError as e:
            logger.error("Error fetching stats: %s", e)
            return self.stats
        self.stats = reduce_statuses(statuses)
        return self.stats
