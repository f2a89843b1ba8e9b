"""
Freeze compliance package.
"""

from .service import (
    DEFAULT_POLICY,
    STUDIO_FREEZE_POLICIES,
    ComplianceClassifier,
    compliance_classifier,
)

__all__ = [
    "DEFAULT_POLICY",
    "STUDIO_FREEZE_POLICIES",
    "ComplianceClassifier",
    "compliance_classifier",
]
