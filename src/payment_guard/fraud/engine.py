"""Heuristic fraud scoring.

Five independent checks each add points to a fraud score; no check
short-circuits another:

    velocity        +30  more than N transactions in the rolling window
    daily spend     +40  today's spend plus this amount exceeds the limit
    unusual amount  +10  round thousands, or more than 4 decimal digits
    geolocation     +25  provider reports an unusual origin
    time of day     +15  local hour inside the unusual-hours band

The engine fails safe: any internal error produces a blocking assessment.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Callable

import structlog

from payment_guard.config import FraudSettings
from payment_guard.domain.validation import decimal_places, parse_amount
from payment_guard.fraud.geolocation import GeoIPLookup, NullGeoIPLookup
from payment_guard.fraud.velocity import VelocityTracker
from payment_guard.models.fraud import FraudAssessment, RiskLevel
from payment_guard.models.payment import PaymentRequest

logger = structlog.get_logger(__name__)

VELOCITY_POINTS = 30
DAILY_LIMIT_POINTS = 40
UNUSUAL_AMOUNT_POINTS = 10
GEOLOCATION_POINTS = 25
UNUSUAL_HOUR_POINTS = 15
FAIL_SAFE_SCORE = 100

REASON_VELOCITY = "High transaction velocity detected"
REASON_DAILY_LIMIT = "Daily spending limit exceeded"
REASON_UNUSUAL_AMOUNT = "Unusual transaction amount pattern"
REASON_GEOLOCATION = "Transaction from unusual location"
REASON_UNUSUAL_HOUR = "Transaction at unusual hour"
REASON_SYSTEM_ERROR = "Fraud detection system error"

ANONYMOUS_USER = "anonymous"


def is_unusual_amount(amount: Decimal) -> bool:
    """Round thousands (multiple of 100, at least 1000) or over-precise amounts."""
    if amount >= 1000 and amount % 100 == 0:
        return True
    return decimal_places(amount) > 4


def is_unusual_hour(hour: int, start: int = 2, end: int = 6) -> bool:
    return start <= hour <= end


def fail_safe_assessment() -> FraudAssessment:
    return FraudAssessment(
        fraud_score=FAIL_SAFE_SCORE,
        risk_level=RiskLevel.HIGH,
        reasons=(REASON_SYSTEM_ERROR,),
        requires_review=True,
        should_block=True,
    )


class FraudEngine:
    """
    Scores transactions against the heuristics above.

    Args:
        tracker: Per-user velocity state, shared across calls
        geo_lookup: Geolocation provider (defaults to always-clear)
        config: Thresholds
        clock: Returns the local time of the check
        geolocation_timeout_seconds: Upper bound on the geolocation lookup
    """

    def __init__(
        self,
        tracker: VelocityTracker,
        geo_lookup: GeoIPLookup | None = None,
        config: FraudSettings | None = None,
        clock: Callable[[], datetime] = datetime.now,
        geolocation_timeout_seconds: float = 2.0,
    ) -> None:
        self.tracker = tracker
        self.geo_lookup = geo_lookup or NullGeoIPLookup()
        self.config = config or FraudSettings()
        self.clock = clock
        self.geolocation_timeout_seconds = geolocation_timeout_seconds

    def classify(self, score: int) -> RiskLevel:
        if score >= self.config.block_score:
            return RiskLevel.HIGH
        if score >= self.config.review_score:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    async def detect_fraud(self, txn: PaymentRequest) -> FraudAssessment:
        """
        Score a transaction.

        Records the transaction into the user's velocity window and daily
        ledger as a side effect, whether or not it ends up blocked.
        Non-numeric or negative amounts are never recorded.

        Args:
            txn: Payment request (user_id, amount and ip are used)

        Returns:
            FraudAssessment; a blocking fail-safe assessment on internal error
        """
        user_id = txn.user_id or ANONYMOUS_USER

        try:
            amount = Decimal(0) if txn.amount is None else parse_amount(txn.amount)
            if amount is None:
                raise ValueError("transaction amount is not numeric")
            if amount < 0:
                raise ValueError("transaction amount is negative")

            now = self.clock()
            score = 0
            reasons: list[str] = []

            snapshot = await self.tracker.record(user_id, amount, now)

            if snapshot.transaction_count > self.config.velocity_max_transactions:
                score += VELOCITY_POINTS
                reasons.append(REASON_VELOCITY)

            if snapshot.prior_daily_spend + amount > Decimal(str(self.config.max_daily_amount)):
                score += DAILY_LIMIT_POINTS
                reasons.append(REASON_DAILY_LIMIT)

            if is_unusual_amount(amount):
                score += UNUSUAL_AMOUNT_POINTS
                reasons.append(REASON_UNUSUAL_AMOUNT)

            geo_check = await asyncio.wait_for(
                self.geo_lookup.check(txn.ip, txn.user_id),
                timeout=self.geolocation_timeout_seconds,
            )
            if geo_check.is_suspicious:
                score += GEOLOCATION_POINTS
                reasons.append(REASON_GEOLOCATION)

            if is_unusual_hour(now.hour, self.config.unusual_hour_start, self.config.unusual_hour_end):
                score += UNUSUAL_HOUR_POINTS
                reasons.append(REASON_UNUSUAL_HOUR)

            risk_level = self.classify(score)
            should_block = score >= self.config.block_score
            assessment = FraudAssessment(
                fraud_score=score,
                risk_level=risk_level,
                reasons=tuple(reasons),
                requires_review=should_block or score >= self.config.review_score,
                should_block=should_block,
            )

            logger.info(
                "fraud_check_completed",
                user_id=user_id,
                fraud_score=score,
                risk_level=risk_level.value,
                reasons=reasons,
                window_transactions=snapshot.transaction_count,
            )
            return assessment

        except Exception as e:
            logger.error(
                "fraud_check_failed",
                user_id=user_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return fail_safe_assessment()
