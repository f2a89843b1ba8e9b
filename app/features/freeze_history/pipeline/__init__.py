"""
Pipeline components for the freeze history feature.

Pure, synchronous stages that run after a batch of fetches has joined:
work item normalization, reconstruction, compliance and cancellations.
"""

__all__ = ["cancellations", "compliance", "reconstruction", "work_items"]
