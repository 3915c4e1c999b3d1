"""Base interface for payment gateways."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from payment_guard.models.payment import PaymentRequest


class GatewayStatus(str, Enum):
    """Gateway decision."""

    APPROVED = "APPROVED"
    DECLINED = "DECLINED"


@dataclass
class GatewayResult:
    """
    Result from a gateway charge attempt.

    Contains either an approval or a decline, but NOT a failure
    (failures raise GatewayError).
    """

    status: GatewayStatus
    gateway_name: str
    transaction_id: str

    # Populated on APPROVED
    authorization_code: str | None = None
    processed_at: datetime | None = None

    # Populated on DECLINED
    decline_code: str | None = None
    decline_reason: str | None = None

    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        """Validate that required fields are present based on status."""
        if not self.transaction_id:
            raise ValueError("transaction_id required")
        if self.status == GatewayStatus.DECLINED and not self.decline_code:
            raise ValueError("decline_code required for DECLINED status")

    @property
    def approved(self) -> bool:
        return self.status == GatewayStatus.APPROVED


class PaymentGateway(ABC):
    """
    Abstract base class for payment gateway integrations.

    The orchestrator only ever talks to this interface, so a real gateway
    can replace the mock without touching it.
    """

    name: str = "abstract"

    @abstractmethod
    async def charge(
        self,
        request: PaymentRequest,
        amount: Decimal,
        currency: str,
        transaction_id: str,
    ) -> GatewayResult:
        """
        Charge a validated, fraud-cleared payment.

        Args:
            request: The payment request (card details included)
            amount: Validated amount
            currency: ISO 4217 currency code
            transaction_id: Id assigned by the orchestrator

        Returns:
            GatewayResult with APPROVED or DECLINED status

        Raises:
            GatewayTimeout: For transient errors (timeouts, rate limits)
            GatewayError: For other infrastructure failures

        Note:
            Card declines are NOT exceptions.
        """
        pass
