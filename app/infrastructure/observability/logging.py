"""
Structured logging setup for the freeze history pipeline.
Provides JSON-formatted logs with consistent fields for batch run monitoring.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_run_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _add_run_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Merge context variables bound for the current run (e.g. run_id)."""
    return structlog.contextvars.merge_contextvars(logger, method_name, event_dict)


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Convenience functions for common log patterns
def log_batch_progress(pass_name: str, batch_index: int, succeeded: int, failed: int):
    """Log the outcome of one fetched batch with consistent fields."""
    logger = get_logger("pipeline")

    log_data = {
        "pass_name": pass_name,
        "batch_index": batch_index,
        "succeeded": succeeded,
        "failed": failed,
        "event_type": "batch_completed",
    }

    if failed:
        logger.warning("Batch completed with failures", **log_data)
    else:
        logger.info("Batch completed", **log_data)


def log_run_summary(records: int, cancellations: int, elapsed_seconds: float, **extra: Any):
    """Log the end-of-run summary: volume, elapsed time and throughput."""
    logger = get_logger("pipeline")

    throughput = records / elapsed_seconds if elapsed_seconds > 0 else 0.0
    logger.info(
        "Processing complete",
        membership_records=records,
        cancellation_records=cancellations,
        elapsed_seconds=round(elapsed_seconds, 2),
        records_per_second=round(throughput, 2),
        event_type="run_summary",
        **extra,
    )
