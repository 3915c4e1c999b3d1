"""
Payment orchestration.

Ties the components together for a single payment attempt:
1. Parse and validate the request (all errors collected)
2. Fraud screening; blocked payments never reach the gateway
3. ATTEMPT audit event
4. Gateway charge, bounded by the gateway timeout
5. Terminal audit event (SUCCESS, FAILED or ERROR)

Error Handling:
    - Validation errors → VALIDATION_FAILED
    - Fraud block → FRAUD_DETECTED
    - Card decline → DECLINED
    - Gateway failure or timeout → GATEWAY_ERROR
    - Anything else → PROCESSING_ERROR

process_payment never raises. Callers only ever see the opaque outcome;
full (masked) context goes to the server-side log.
"""

import asyncio
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable

import structlog
from pydantic import ValidationError

from payment_guard.audit.logger import AuditEventType, AuditLogger, AuditTrail
from payment_guard.audit.report import SecurityReportGenerator
from payment_guard.config import FraudSettings, Settings, settings
from payment_guard.domain.keys import KeyManager
from payment_guard.domain.tokenization import PaymentCrypto
from payment_guard.domain.validation import parse_amount, validate_payment_request
from payment_guard.fraud.engine import FraudEngine
from payment_guard.fraud.geolocation import get_geoip_lookup
from payment_guard.fraud.velocity import VelocityTracker
from payment_guard.gateways.base import PaymentGateway
from payment_guard.gateways.factory import get_gateway
from payment_guard.models.exceptions import GatewayError
from payment_guard.models.fraud import FraudAssessment
from payment_guard.models.outcome import OutcomeCode, PaymentOutcome, PaymentStatus
from payment_guard.models.payment import PaymentRequest

logger = structlog.get_logger(__name__)

ERROR_FRAUD_BLOCKED = "Transaction blocked due to fraud detection"
ERROR_GATEWAY = "Gateway communication failed"
ERROR_PROCESSING = "Payment processing failed"
ERROR_DECLINED = "Payment declined by bank"


def _request_field_errors(error: ValidationError) -> list[str]:
    return [
        f"Invalid {'.'.join(str(part) for part in err['loc']) or 'payment data'}"
        for err in error.errors()
    ]


def _fraud_details(assessment: FraudAssessment) -> dict[str, Any]:
    return {
        "fraud_score": assessment.fraud_score,
        "risk_level": assessment.risk_level.value,
        "fraud_reasons": list(assessment.reasons),
    }


class PaymentOrchestrator:
    """
    Runs payments through validation, fraud screening and the gateway.

    Args:
        fraud_engine: Scores transactions (owns the velocity state)
        gateway: Charges cleared payments
        audit_logger: Receives every audit event
        fraud_config: Thresholds, including the single-transaction limit
        today_provider: Returns today's date for expiry checks
    """

    def __init__(
        self,
        fraud_engine: FraudEngine,
        gateway: PaymentGateway,
        audit_logger: AuditLogger,
        fraud_config: FraudSettings | None = None,
        today_provider: Callable[[], date] | None = None,
        gateway_timeout_seconds: float = 10.0,
    ) -> None:
        self.fraud_engine = fraud_engine
        self.gateway = gateway
        self.audit_logger = audit_logger
        self.fraud_config = fraud_config or FraudSettings()
        self.today_provider = today_provider or date.today
        self.gateway_timeout_seconds = gateway_timeout_seconds

    def _audit(self, event_type: AuditEventType, user_id: str | None, details: dict[str, Any]) -> None:
        try:
            self.audit_logger.log_payment_event(event_type, user_id, details)
        except Exception as e:
            # Audit failures must not change the payment outcome
            logger.error(
                "audit_write_failed",
                audit_event_type=event_type.value,
                user_id=user_id,
                error_type=type(e).__name__,
            )

    def _reject(
        self,
        user_id: str | None,
        errors: list[str] | tuple[str, ...],
        amount: Any = None,
    ) -> PaymentOutcome:
        message = ", ".join(errors)
        logger.info("payment_validation_failed", user_id=user_id, errors=list(errors))
        self._audit(
            AuditEventType.FAILED,
            user_id,
            {
                "amount": None if amount is None else str(amount),
                "code": OutcomeCode.VALIDATION_FAILED.value,
                "error": message,
            },
        )
        return PaymentOutcome(
            success=False,
            status=PaymentStatus.REJECTED,
            error=message,
            code=OutcomeCode.VALIDATION_FAILED,
        )

    async def process_payment(self, payment_data: PaymentRequest | Mapping[str, Any]) -> PaymentOutcome:
        """
        Process a single payment attempt.

        Args:
            payment_data: PaymentRequest, or a mapping with snake_case or
                camelCase keys

        Returns:
            PaymentOutcome (never raises)
        """
        user_id: str | None = None
        amount_detail: str | None = None

        try:
            if isinstance(payment_data, PaymentRequest):
                request = payment_data
            else:
                try:
                    request = PaymentRequest.model_validate(payment_data)
                except ValidationError as e:
                    raw_user = (
                        payment_data.get("user_id") or payment_data.get("userId")
                        if isinstance(payment_data, Mapping)
                        else None
                    )
                    user_id = raw_user if isinstance(raw_user, str) else None
                    return self._reject(user_id, _request_field_errors(e))

            user_id = request.user_id
            amount_detail = None if request.amount is None else str(request.amount)

            # Step 1: validate
            validation = validate_payment_request(
                request,
                max_transaction_amount=self.fraud_config.max_transaction_amount,
                today=self.today_provider(),
            )
            if not validation.is_valid:
                return self._reject(user_id, validation.errors, amount_detail)

            # Step 2: fraud screening
            assessment = await self.fraud_engine.detect_fraud(request)
            if assessment.should_block:
                logger.warning(
                    "payment_blocked",
                    user_id=user_id,
                    risk_level=assessment.risk_level.value,
                    reasons=list(assessment.reasons),
                )
                self._audit(
                    AuditEventType.FAILED,
                    user_id,
                    {
                        "amount": amount_detail,
                        "currency": request.currency,
                        "code": OutcomeCode.FRAUD_DETECTED.value,
                        **_fraud_details(assessment),
                    },
                )
                return PaymentOutcome(
                    success=False,
                    status=PaymentStatus.BLOCKED,
                    error=ERROR_FRAUD_BLOCKED,
                    code=OutcomeCode.FRAUD_DETECTED,
                    fraud_reasons=assessment.reasons,
                )

            # Step 3: attempt
            transaction_id = str(uuid.uuid4())
            amount = parse_amount(request.amount) if request.amount is not None else None
            fraud_details = _fraud_details(assessment)
            self._audit(
                AuditEventType.ATTEMPT,
                user_id,
                {
                    "transaction_id": transaction_id,
                    "amount": amount_detail,
                    "currency": request.currency,
                    "fraud_score": assessment.fraud_score,
                    "risk_level": assessment.risk_level.value,
                },
            )

            # Step 4: gateway
            try:
                result = await asyncio.wait_for(
                    self.gateway.charge(
                        request,
                        amount if amount is not None else Decimal("0"),
                        request.currency,
                        transaction_id,
                    ),
                    timeout=self.gateway_timeout_seconds,
                )
            except (GatewayError, asyncio.TimeoutError) as e:
                logger.error(
                    "gateway_call_failed",
                    transaction_id=transaction_id,
                    user_id=user_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                self._audit(
                    AuditEventType.ERROR,
                    user_id,
                    {
                        "transaction_id": transaction_id,
                        "amount": amount_detail,
                        "code": OutcomeCode.GATEWAY_ERROR.value,
                        "error": ERROR_GATEWAY,
                        **fraud_details,
                    },
                )
                return PaymentOutcome(
                    success=False,
                    status=PaymentStatus.FAILED,
                    error=ERROR_GATEWAY,
                    code=OutcomeCode.GATEWAY_ERROR,
                )

            # Step 5: terminal event
            if result.approved:
                processed_at = result.processed_at or datetime.now(timezone.utc)
                logger.info(
                    "payment_completed",
                    transaction_id=transaction_id,
                    user_id=user_id,
                    gateway=result.gateway_name,
                )
                self._audit(
                    AuditEventType.SUCCESS,
                    user_id,
                    {
                        "transaction_id": transaction_id,
                        "amount": amount_detail,
                        "currency": request.currency,
                        **fraud_details,
                    },
                )
                return PaymentOutcome(
                    success=True,
                    status=PaymentStatus.COMPLETED,
                    transaction_id=transaction_id,
                    amount=amount,
                    currency=request.currency,
                    timestamp=processed_at.isoformat(),
                )

            error = result.decline_reason or ERROR_DECLINED
            logger.info(
                "payment_declined",
                transaction_id=transaction_id,
                user_id=user_id,
                decline_code=result.decline_code,
            )
            self._audit(
                AuditEventType.FAILED,
                user_id,
                {
                    "transaction_id": transaction_id,
                    "amount": amount_detail,
                    "code": OutcomeCode.DECLINED.value,
                    "decline_code": result.decline_code,
                    "error": error,
                    **fraud_details,
                },
            )
            return PaymentOutcome(
                success=False,
                status=PaymentStatus.DECLINED,
                transaction_id=transaction_id,
                error=error,
                code=OutcomeCode.DECLINED,
            )

        except Exception as e:
            logger.error(
                "payment_processing_failed",
                user_id=user_id,
                error_type=type(e).__name__,
            )
            self._audit(
                AuditEventType.ERROR,
                user_id,
                {
                    "amount": amount_detail,
                    "code": OutcomeCode.PROCESSING_ERROR.value,
                    "error_type": type(e).__name__,
                },
            )
            return PaymentOutcome(
                success=False,
                status=PaymentStatus.FAILED,
                error=ERROR_PROCESSING,
                code=OutcomeCode.PROCESSING_ERROR,
            )


@dataclass
class PaymentService:
    """
    Fully wired payment components sharing one audit trail and tracker.

    start() launches the idle-user eviction task and stop() ends it; the
    service can also be used as an async context manager.
    """

    orchestrator: PaymentOrchestrator
    crypto: PaymentCrypto
    report_generator: SecurityReportGenerator
    velocity_tracker: VelocityTracker
    audit_trail: AuditTrail
    eviction_interval_seconds: int = 300
    _stop_event: asyncio.Event | None = field(default=None, init=False, repr=False)
    _eviction_task: asyncio.Task | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._eviction_task is not None and not self._eviction_task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._eviction_task = asyncio.create_task(
            self.velocity_tracker.run_eviction_task(
                interval_seconds=self.eviction_interval_seconds,
                stop_event=self._stop_event,
            )
        )
        logger.info("payment_service_started", eviction_interval_seconds=self.eviction_interval_seconds)

    async def stop(self) -> None:
        if self._eviction_task is None:
            return
        self._stop_event.set()
        await self._eviction_task
        self._eviction_task = None
        self._stop_event = None
        logger.info("payment_service_stopped")

    async def __aenter__(self) -> "PaymentService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()


def build_payment_service(config: Settings | None = None) -> PaymentService:
    """
    Wire the default components from settings.

    Raises:
        KeyConfigurationError: If no valid encryption key is configured
    """
    config = config or settings

    key_manager = KeyManager.from_settings(config)
    tracker = VelocityTracker(
        window_seconds=config.fraud.velocity_window_seconds,
        idle_ttl_seconds=config.fraud.idle_user_ttl_seconds,
    )
    fraud_engine = FraudEngine(
        tracker,
        geo_lookup=get_geoip_lookup(config.geolocation),
        config=config.fraud,
        geolocation_timeout_seconds=config.geolocation.timeout_seconds,
    )
    trail = AuditTrail()
    audit_logger = AuditLogger(trail, config.compliance)

    orchestrator = PaymentOrchestrator(
        fraud_engine,
        get_gateway(config.gateway),
        audit_logger,
        fraud_config=config.fraud,
        gateway_timeout_seconds=config.gateway.timeout_seconds,
    )

    logger.info(
        "payment_service_built",
        environment=config.environment,
        gateway=config.gateway.name,
        geolocation_provider=config.geolocation.provider,
        key_version=key_manager.key_version,
    )

    return PaymentService(
        orchestrator=orchestrator,
        crypto=PaymentCrypto(key_manager),
        report_generator=SecurityReportGenerator(trail, config.compliance, config.fraud),
        velocity_tracker=tracker,
        audit_trail=trail,
        eviction_interval_seconds=config.fraud.eviction_interval_seconds,
    )
