"""Unit tests for SecurityReportGenerator."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from payment_guard.audit.logger import AuditEventType, AuditLogger, AuditTrail
from payment_guard.audit.report import (
    RECOMMEND_ENCRYPTION,
    RECOMMEND_FRAUD_RULES,
    RECOMMEND_PCI,
    RECOMMEND_REVIEW_ACCOUNTS,
    SecurityReport,
    SecurityReportGenerator,
)
from payment_guard.config import ComplianceSettings, FraudSettings

NOW = datetime(2025, 6, 15, 14, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self) -> None:
        self.now = NOW

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def trail():
    return AuditTrail()


@pytest.fixture
def audit(trail, clock):
    return AuditLogger(trail, clock=clock)


def generator(trail, clock, **compliance) -> SecurityReportGenerator:
    return SecurityReportGenerator(
        trail,
        compliance=ComplianceSettings(**compliance),
        fraud_config=FraudSettings(max_failed_attempts=3),
        clock=clock,
    )


def completed(audit, user_id="user-1", amount="10.00", risk_level="low"):
    audit.log_payment_event(
        AuditEventType.ATTEMPT, user_id, {"amount": amount, "risk_level": risk_level}
    )
    audit.log_payment_event(
        AuditEventType.SUCCESS,
        user_id,
        {"amount": amount, "risk_level": risk_level, "fraud_reasons": []},
    )


def blocked(audit, user_id="user-2", reasons=("Daily spending limit exceeded",)):
    audit.log_payment_event(
        AuditEventType.FAILED,
        user_id,
        {
            "amount": "100.00",
            "code": "FRAUD_DETECTED",
            "risk_level": "high",
            "fraud_reasons": list(reasons),
        },
    )


@pytest.mark.asyncio
class TestSecurityReport:
    async def test_empty_trail(self, trail, clock) -> None:
        report = await generator(trail, clock).generate_security_report()

        assert isinstance(report, SecurityReport)
        assert report.timeframe == "30 days"
        assert report.report_date == NOW
        assert report.summary.total_transactions == 0
        assert report.summary.total_amount == Decimal("0")
        assert report.summary.average_transaction_amount == Decimal("0")
        assert report.fraud_detection.high_risk_transactions == 0
        assert report.fraud_detection.top_fraud_reasons == []
        assert report.compliance.pci_compliant
        assert report.compliance.data_encrypted
        assert report.compliance.audit_logs_enabled
        assert report.recommendations == []

    async def test_summary_counts(self, trail, clock, audit) -> None:
        completed(audit, amount="10.00")
        completed(audit, amount="25.00", risk_level="medium")
        blocked(audit)

        report = await generator(trail, clock).generate_security_report()

        assert report.summary.total_transactions == 3
        assert report.summary.fraudulent_transactions == 2
        assert report.summary.blocked_transactions == 1
        assert report.summary.total_amount == Decimal("35.00")
        assert report.summary.average_transaction_amount == Decimal("17.50")
        assert report.fraud_detection.low_risk_transactions == 1
        assert report.fraud_detection.medium_risk_transactions == 1
        assert report.fraud_detection.high_risk_transactions == 1

    async def test_top_fraud_reasons(self, trail, clock, audit) -> None:
        blocked(audit, reasons=("Daily spending limit exceeded", "Transaction at unusual hour"))
        blocked(audit, reasons=("Daily spending limit exceeded",))

        report = await generator(trail, clock).generate_security_report()

        top = report.fraud_detection.top_fraud_reasons
        assert top[0].reason == "Daily spending limit exceeded"
        assert top[0].count == 2
        assert top[1].reason == "Transaction at unusual hour"

    async def test_timeframe_filters_old_events(self, trail, clock, audit) -> None:
        clock.now = NOW - timedelta(days=10)
        completed(audit)
        clock.now = NOW

        assert (await generator(trail, clock).generate_security_report(7)).summary.total_transactions == 0
        assert (await generator(trail, clock).generate_security_report(30)).summary.total_transactions == 1

    async def test_many_high_risk_recommends_more_rules(self, trail, clock, audit) -> None:
        for _ in range(11):
            blocked(audit, user_id=None)

        report = await generator(trail, clock).generate_security_report()

        assert report.fraud_detection.high_risk_transactions == 11
        assert RECOMMEND_FRAUD_RULES in report.recommendations

    async def test_ten_high_risk_is_not_enough(self, trail, clock, audit) -> None:
        for _ in range(10):
            blocked(audit, user_id=None)

        report = await generator(trail, clock).generate_security_report()

        assert RECOMMEND_FRAUD_RULES not in report.recommendations

    async def test_encryption_disabled(self, trail, clock) -> None:
        report = await generator(trail, clock, encrypt_card_data=False).generate_security_report()

        assert not report.compliance.pci_compliant
        assert not report.compliance.data_encrypted
        assert report.recommendations == [RECOMMEND_PCI, RECOMMEND_ENCRYPTION]

    async def test_repeated_failures(self, trail, clock, audit) -> None:
        for _ in range(3):
            audit.log_payment_event(AuditEventType.FAILED, "user-9", {"code": "DECLINED"})
        audit.log_payment_event(AuditEventType.FAILED, "user-3", {"code": "DECLINED"})

        report = await generator(trail, clock).generate_security_report()

        assert report.fraud_detection.accounts_with_repeated_failures == ["user-9"]
        assert RECOMMEND_REVIEW_ACCOUNTS in report.recommendations

    async def test_rejects_non_positive_timeframe(self, trail, clock) -> None:
        with pytest.raises(ValueError):
            await generator(trail, clock).generate_security_report(0)
