import pytest

from app.features.freeze_history.domain.models import ComplianceStatus, MembershipRecord, PolicyRule
from app.features.freeze_history.pipeline.compliance import (
    DEFAULT_POLICY,
    STUDIO_FREEZE_POLICIES,
    ComplianceClassifier,
)

PLAN = "Studio 8 Class Package"


def _record(attempts: int, days: int, membership_name: str | None = PLAN) -> MembershipRecord:
    return MembershipRecord(
        member_id=1,
        host_id="13752",
        bought_membership_id=10,
        membership_name=membership_name,
        freeze_attempts=attempts,
        frozen_days=days,
    )


@pytest.mark.parametrize(
    ("attempts", "days", "expected"),
    [
        (1, 30, ComplianceStatus.WITHIN_LIMITS),
        (1, 31, ComplianceStatus.EXCEEDED),
        (2, 0, ComplianceStatus.EXCEEDED),
        (2, 30, ComplianceStatus.EXCEEDED),
        (0, 0, ComplianceStatus.WITHIN_LIMITS),
    ],
)
def test_classification_boundary(attempts, days, expected):
    classifier = ComplianceClassifier({PLAN: PolicyRule(max_attempts=1, max_days=30)})

    assert classifier.classify(_record(attempts, days)) is expected


def test_unknown_plan_gets_zero_tolerance():
    classifier = ComplianceClassifier()

    assert classifier.rule_for("Drop-in Class") == DEFAULT_POLICY
    assert classifier.classify(_record(0, 0, "Drop-in Class")) is ComplianceStatus.WITHIN_LIMITS
    assert classifier.classify(_record(1, 1, "Drop-in Class")) is ComplianceStatus.EXCEEDED


def test_missing_plan_name_uses_default_policy():
    classifier = ComplianceClassifier()

    assert classifier.rule_for(None) == DEFAULT_POLICY
    assert classifier.rule_for("") == DEFAULT_POLICY


def test_studio_table_is_the_default():
    classifier = ComplianceClassifier()

    assert classifier.rule_for("Studio Annual Unlimited Membership") == PolicyRule(12, 360)
    assert len(STUDIO_FREEZE_POLICIES) == 16


def test_apply_stamps_permitted_limits_and_status():
    classifier = ComplianceClassifier()
    within = _record(1, 20)
    exceeded = _record(1, 45)

    result = classifier.apply([within, exceeded])

    assert result == [within, exceeded]
    assert within.permitted_freeze_attempts == 1
    assert within.permitted_freeze_days == 30
    assert within.status is ComplianceStatus.WITHIN_LIMITS
    assert exceeded.status is ComplianceStatus.EXCEEDED
    assert exceeded.status.value == "Exceeded"
