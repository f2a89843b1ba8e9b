"""
Freeze history feature package.

Everything behind the freeze report lives here: the history domain
model, the fetch services that pace requests against the upstream, the
reconstruction and compliance pipeline, the work item sources, the output
sinks, the batch job, and the dashboard routes.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as freeze_history_router  # noqa: F401
from .domain.models import CancellationRecord, MembershipRecord, WorkItem  # noqa: F401
from .jobs.freeze_history_job import (  # noqa: F401
    FreezeHistoryJob,
    run_cancellations_job,
    run_freeze_history_job,
)
from .pipeline.reconstruction import history_reconstructor  # noqa: F401
