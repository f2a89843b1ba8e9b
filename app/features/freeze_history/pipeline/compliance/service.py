"""
Freeze compliance classification.

Compares each membership's freeze totals against the permitted attempts
and days for its plan. Plans missing from the table get zero tolerance.
"""

from collections.abc import Iterable, Mapping

from app.features.freeze_history.domain.models import (
    ComplianceStatus,
    MembershipRecord,
    PolicyRule,
)

DEFAULT_POLICY = PolicyRule(max_attempts=0, max_days=0)

STUDIO_FREEZE_POLICIES: dict[str, PolicyRule] = {
    "Studio 8 Class Package": PolicyRule(1, 30),
    "Studio 12 Class Package": PolicyRule(1, 30),
    "Studio 1 Month Unlimited Membership": PolicyRule(1, 30),
    "Studio 3 Month Unlimited Membership": PolicyRule(3, 90),
    "Studio 6 Month Unlimited Membership": PolicyRule(6, 180),
    "Studio Annual Unlimited Membership": PolicyRule(12, 360),
    "Studio 3 Month U/L Monthly Installment": PolicyRule(1, 30),
    "Studio 20 Single Class Pack": PolicyRule(3, 90),
    "Studio 10 Single Class Pack": PolicyRule(2, 60),
    "Studio 30 Single Class Pack": PolicyRule(3, 90),
    "Limited Edition : 57 Class Pack": PolicyRule(6, 180),
    "VIP ALL ACCESS - Studio 1 Month Unlimited Membership": PolicyRule(1, 30),
    "Studio Private Class X 10": PolicyRule(1, 30),
    "V'Day Special: Shared Studio 20 Single Class": PolicyRule(3, 90),
    "V'Day Special: Shared Studio 8 Class Package": PolicyRule(1, 30),
    "Studio 30 Private Class Package": PolicyRule(3, 90),
}


class ComplianceClassifier:
    def __init__(self, policies: Mapping[str, PolicyRule] | None = None):
        self._policies = dict(STUDIO_FREEZE_POLICIES if policies is None else policies)

    def rule_for(self, membership_name: str | None) -> PolicyRule:
        if not membership_name:
            return DEFAULT_POLICY
        return self._policies.get(membership_name, DEFAULT_POLICY)

    def classify(self, record: MembershipRecord) -> ComplianceStatus:
        rule = self.rule_for(record.membership_name)
        if record.freeze_attempts > rule.max_attempts or record.frozen_days > rule.max_days:
            return ComplianceStatus.EXCEEDED
        return ComplianceStatus.WITHIN_LIMITS

    def apply(self, records: Iterable[MembershipRecord]) -> list[MembershipRecord]:
        """Stamp permitted limits and status onto each record in place."""
        classified = []
        for record in records:
            rule = self.rule_for(record.membership_name)
            record.permitted_freeze_attempts = rule.max_attempts
            record.permitted_freeze_days = rule.max_days
            record.status = self.classify(record)
            classified.append(record)
        return classified


compliance_classifier = ComplianceClassifier()
