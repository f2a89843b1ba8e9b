"""
Session cancellation extraction package.
"""

from .service import CancellationExtractor, cancellation_extractor

__all__ = ["CancellationExtractor", "cancellation_extractor"]
