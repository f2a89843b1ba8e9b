"""
Fetch services for the freeze history feature.

RunContext owns the per-run resources; HistoryFetcher retries a single
member lookup; BatchScheduler paces many of them against the upstream.
"""

from .batch_scheduler import BatchScheduler
from .history_fetcher import HistoryFetcher
from .run_context import RunContext, create_momence_client

__all__ = ["BatchScheduler", "HistoryFetcher", "RunContext", "create_momence_client"]
