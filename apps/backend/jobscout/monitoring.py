"""
Extraction metrics.

In-memory counters describing what the pipeline kept and what it dropped.
"""

import logging
from collections import defaultdict
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects extraction metrics."""

    def __init__(self):
        self.counters = defaultdict(int)

    def record_tables(self, parsed: int, skipped: int = 0):
        self.counters['tables_parsed'] += parsed
        self.counters['tables_skipped'] += skipped

    def record_row_dropped(self, reason: str):
        """Record a table row that produced no posting."""
        self.counters[f'row_dropped:{reason}'] += 1

    def record_jobs_extracted(self, count: int):
        self.counters['jobs_extracted'] += count

    def record_classifier_call(self, success: bool = True):
        status = 'success' if success else 'failure'
        self.counters[f'classifier_call:{status}'] += 1

    def record_classifier_fallback(self):
        self.counters['classifier_fallback'] += 1

    def get_stats(self) -> Dict:
        """Get current statistics."""
        return {'counters': dict(self.counters)}

    def reset(self):
        self.counters.clear()


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
