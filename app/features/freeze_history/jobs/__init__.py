from .freeze_history_job import (
    FreezeHistoryJob,
    FreezeHistoryJobError,
    FreezeHistoryMetrics,
    run_cancellations_job,
    run_freeze_history_job,
)

__all__ = [
    "FreezeHistoryJob",
    "FreezeHistoryJobError",
    "FreezeHistoryMetrics",
    "run_cancellations_job",
    "run_freeze_history_job",
]
