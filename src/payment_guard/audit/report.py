"""Payment security report built from the audit trail."""

from collections import Counter
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable

import structlog
from pydantic import BaseModel, Field

from payment_guard.audit.logger import AuditEvent, AuditEventType, AuditTrail
from payment_guard.config import ComplianceSettings, FraudSettings
from payment_guard.models.outcome import OutcomeCode

logger = structlog.get_logger(__name__)

TOP_REASON_LIMIT = 5

RECOMMEND_FRAUD_RULES = "Consider implementing additional fraud detection rules"
RECOMMEND_PCI = "Ensure PCI DSS compliance for all payment processing"
RECOMMEND_ENCRYPTION = "Enable encryption for stored card data"
RECOMMEND_REVIEW_ACCOUNTS = "Review accounts with repeated failed payment attempts"


class ReportSummary(BaseModel):
    total_transactions: int = 0
    fraudulent_transactions: int = 0
    blocked_transactions: int = 0
    total_amount: Decimal = Decimal("0")
    average_transaction_amount: Decimal = Decimal("0")


class FraudReasonCount(BaseModel):
    reason: str
    count: int


class FraudDetectionSummary(BaseModel):
    high_risk_transactions: int = 0
    medium_risk_transactions: int = 0
    low_risk_transactions: int = 0
    top_fraud_reasons: list[FraudReasonCount] = Field(default_factory=list)
    accounts_with_repeated_failures: list[str] = Field(default_factory=list)


class ComplianceStatus(BaseModel):
    pci_compliant: bool
    data_encrypted: bool
    audit_logs_enabled: bool


class SecurityReport(BaseModel):
    """Aggregate view of payment security over a timeframe."""

    report_date: datetime
    timeframe: str
    summary: ReportSummary
    fraud_detection: FraudDetectionSummary
    compliance: ComplianceStatus
    recommendations: list[str] = Field(default_factory=list)


def _event_amount(event: AuditEvent) -> Decimal | None:
    raw = event.masked_details.get("amount")
    if raw is None:
        return None
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


class SecurityReportGenerator:
    """
    Aggregates audit events into a SecurityReport.

    Terminal events (SUCCESS, FAILED, ERROR) count as transactions; ATTEMPT
    events only mark that a payment reached the gateway. Amounts are
    summed over completed payments.
    """

    def __init__(
        self,
        trail: AuditTrail,
        compliance: ComplianceSettings | None = None,
        fraud_config: FraudSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.trail = trail
        self.compliance = compliance or ComplianceSettings()
        self.fraud_config = fraud_config or FraudSettings()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def generate_security_report(self, timeframe_days: int = 30) -> SecurityReport:
        if timeframe_days <= 0:
            raise ValueError("timeframe_days must be positive")

        now = self.clock()
        events = self.trail.events_since(now - timedelta(days=timeframe_days))
        terminal = [event for event in events if event.event_type != AuditEventType.ATTEMPT]

        summary = ReportSummary(total_transactions=len(terminal))
        risk_counts: Counter[str] = Counter()
        reasons: Counter[str] = Counter()
        failures: Counter[str] = Counter()
        completed_amounts: list[Decimal] = []

        for event in terminal:
            details = event.masked_details
            risk_level = details.get("risk_level")
            if risk_level:
                risk_counts[risk_level] += 1
                if risk_level != "low":
                    summary.fraudulent_transactions += 1

            if details.get("code") == OutcomeCode.FRAUD_DETECTED.value:
                summary.blocked_transactions += 1

            reasons.update(details.get("fraud_reasons") or ())

            if event.event_type == AuditEventType.SUCCESS:
                amount = _event_amount(event)
                if amount is not None:
                    completed_amounts.append(amount)
            elif event.event_type == AuditEventType.FAILED and event.user_id:
                failures[event.user_id] += 1

        if completed_amounts:
            summary.total_amount = sum(completed_amounts, Decimal("0"))
            summary.average_transaction_amount = (
                summary.total_amount / len(completed_amounts)
            ).quantize(Decimal("0.01"))

        repeated = sorted(
            user_id
            for user_id, count in failures.items()
            if count >= self.fraud_config.max_failed_attempts
        )

        fraud_detection = FraudDetectionSummary(
            high_risk_transactions=risk_counts["high"],
            medium_risk_transactions=risk_counts["medium"],
            low_risk_transactions=risk_counts["low"],
            top_fraud_reasons=[
                FraudReasonCount(reason=reason, count=count)
                for reason, count in reasons.most_common(TOP_REASON_LIMIT)
            ],
            accounts_with_repeated_failures=repeated,
        )

        compliance = ComplianceStatus(
            pci_compliant=self.compliance.encrypt_card_data,
            data_encrypted=self.compliance.encrypt_card_data,
            audit_logs_enabled=self.compliance.log_payment_events,
        )

        recommendations: list[str] = []
        if fraud_detection.high_risk_transactions > self.compliance.report_high_risk_threshold:
            recommendations.append(RECOMMEND_FRAUD_RULES)
        if not compliance.pci_compliant:
            recommendations.append(RECOMMEND_PCI)
        if not compliance.data_encrypted:
            recommendations.append(RECOMMEND_ENCRYPTION)
        if repeated:
            recommendations.append(RECOMMEND_REVIEW_ACCOUNTS)

        report = SecurityReport(
            report_date=now,
            timeframe=f"{timeframe_days} days",
            summary=summary,
            fraud_detection=fraud_detection,
            compliance=compliance,
            recommendations=recommendations,
        )

        logger.info(
            "security_report_generated",
            timeframe_days=timeframe_days,
            total_transactions=summary.total_transactions,
            high_risk_transactions=fraud_detection.high_risk_transactions,
            recommendations=len(recommendations),
        )
        return report
