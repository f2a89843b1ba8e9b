"""
Freeze history reconstruction package.

Rebuilds attendance, location and freeze intervals per purchased membership.
"""

from .service import HistoryReconstructor, history_reconstructor, pair_freeze_events

__all__ = ["HistoryReconstructor", "history_reconstructor", "pair_freeze_events"]
