"""
Mock payment gateway.

Simulates an external gateway without network calls. Card numbers in
TEST_CARD_BEHAVIORS follow the well-known gateway test cards; any other
card gets the configured default response, optionally declined at random
with ``decline_rate``.
"""

import asyncio
import random
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog

from payment_guard.domain.validation import card_info, clean_card_number
from payment_guard.gateways.base import GatewayResult, GatewayStatus, PaymentGateway
from payment_guard.models.exceptions import GatewayError, GatewayTimeout
from payment_guard.models.payment import PaymentRequest

logger = structlog.get_logger(__name__)

TEST_CARD_BEHAVIORS: dict[str, dict[str, Any]] = {
    # Success scenarios
    "4242424242424242": {
        "type": "success",
        "auth_code": "123456",
        "description": "Generic success - always approves",
    },
    "5555555555554444": {
        "type": "success",
        "auth_code": "789012",
        "description": "Mastercard success",
    },
    "378282246310005": {
        "type": "success",
        "auth_code": "345678",
        "description": "American Express success",
    },
    # Decline scenarios
    "4000000000000002": {
        "type": "decline",
        "decline_code": "generic_decline",
        "reason": "Payment declined by bank",
        "description": "Generic decline",
    },
    "4000000000009995": {
        "type": "decline",
        "decline_code": "insufficient_funds",
        "reason": "Your card has insufficient funds",
        "description": "Insufficient funds",
    },
    "4000000000000069": {
        "type": "decline",
        "decline_code": "expired_card",
        "reason": "Your card has expired",
        "description": "Expired card",
    },
    "4000000000000127": {
        "type": "decline",
        "decline_code": "incorrect_cvc",
        "reason": "Your card's security code is incorrect",
        "description": "Incorrect CVC",
    },
    # Infrastructure failures
    "4000000000000119": {
        "type": "timeout",
        "description": "Processing timeout - simulates 5xx error or network timeout",
    },
    "4000000000009987": {
        "type": "rate_limit",
        "description": "Rate limit - simulates 429 response",
    },
}


class MockGateway(PaymentGateway):
    """
    Mock gateway for development and tests.

    Args:
        config: Optional dict with default_response, latency_ms,
            decline_rate and card_behaviors overrides
        default_response: "approved" or "declined" for unknown cards
        latency_ms: Simulated latency in milliseconds
        decline_rate: Probability (0-1) that an unknown card is declined
        rng: Random source, injectable for deterministic tests
    """

    name = "mock"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        default_response: str = "approved",
        latency_ms: int = 0,
        decline_rate: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or {}
        self.default_response = self.config.get("default_response", default_response)
        self.latency_ms = self.config.get("latency_ms", latency_ms)
        self.decline_rate = self.config.get("decline_rate", decline_rate)
        self.card_behaviors = self.config.get("card_behaviors", TEST_CARD_BEHAVIORS)
        self.rng = rng or random.Random()

        if not 0.0 <= self.decline_rate <= 1.0:
            raise ValueError("decline_rate must be between 0 and 1")

        logger.info(
            "mock_gateway_initialized",
            default_response=self.default_response,
            latency_ms=self.latency_ms,
            decline_rate=self.decline_rate,
        )

    async def charge(
        self,
        request: PaymentRequest,
        amount: Decimal,
        currency: str,
        transaction_id: str,
    ) -> GatewayResult:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)

        card_number = clean_card_number(request.card_number or "")
        card = card_info(card_number)

        logger.info(
            "mock_charge_starting",
            transaction_id=transaction_id,
            amount=str(amount),
            currency=currency,
            card_last_four=card.last_four,
        )

        behavior = self.card_behaviors.get(card_number)
        if behavior is None:
            declined = self.default_response == "declined" or (
                self.decline_rate > 0 and self.rng.random() < self.decline_rate
            )
            behavior = (
                {"type": "decline", "decline_code": "generic_decline", "reason": "Payment declined by bank"}
                if declined
                else {"type": "success"}
            )

        behavior_type = behavior["type"]

        if behavior_type == "timeout":
            logger.warning("mock_gateway_timeout", transaction_id=transaction_id)
            raise GatewayTimeout(f"Mock gateway timeout: {behavior.get('description', 'Simulated timeout')}")

        if behavior_type == "rate_limit":
            logger.warning("mock_gateway_rate_limited", transaction_id=transaction_id)
            raise GatewayTimeout("Mock gateway rate limit exceeded")

        if behavior_type == "decline":
            logger.info(
                "mock_charge_declined",
                transaction_id=transaction_id,
                card_last_four=card.last_four,
                decline_code=behavior.get("decline_code"),
            )
            return GatewayResult(
                status=GatewayStatus.DECLINED,
                gateway_name=self.name,
                transaction_id=transaction_id,
                decline_code=behavior.get("decline_code", "generic_decline"),
                decline_reason=behavior.get("reason", "Payment declined by bank"),
                metadata={"description": behavior.get("description")},
            )

        if behavior_type == "success":
            auth_code = behavior.get("auth_code", f"{uuid.uuid4().int % 1000000:06d}")
            logger.info(
                "mock_charge_approved",
                transaction_id=transaction_id,
                card_last_four=card.last_four,
            )
            return GatewayResult(
                status=GatewayStatus.APPROVED,
                gateway_name=self.name,
                transaction_id=transaction_id,
                authorization_code=auth_code,
                processed_at=datetime.now(timezone.utc),
                metadata={
                    "card_brand": card.card_type.value,
                    "card_last4": card.last_four,
                },
            )

        logger.error("mock_unknown_behavior", behavior_type=behavior_type)
        raise GatewayError(f"Unknown mock behavior type: {behavior_type}")
