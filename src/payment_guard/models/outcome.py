"""Terminal result of an orchestrated payment attempt."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class OutcomeCode(str, Enum):
    """Failure taxonomy surfaced to callers."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    FRAUD_DETECTED = "FRAUD_DETECTED"
    DECLINED = "DECLINED"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    DECLINED = "declined"
    BLOCKED = "blocked"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentOutcome:
    """
    One per orchestrated payment attempt.

    Successful outcomes carry transaction_id, amount, currency and timestamp.
    Failed outcomes carry a code and an error message that is safe to show
    to the caller; internal details never end up here.
    """

    success: bool
    status: PaymentStatus
    transaction_id: str | None = None
    error: str | None = None
    code: OutcomeCode | None = None
    amount: Decimal | None = None
    currency: str | None = None
    timestamp: str | None = None
    fraud_reasons: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.success and self.code is not None:
            raise ValueError("successful outcomes cannot carry a failure code")
        if not self.success and self.code is None:
            raise ValueError("failed outcomes require a code")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict, dropping unset fields."""
        result: dict[str, Any] = {"success": self.success, "status": self.status.value}
        if self.transaction_id:
            result["transaction_id"] = self.transaction_id
        if self.amount is not None:
            result["amount"] = str(self.amount)
        if self.currency:
            result["currency"] = self.currency
        if self.timestamp:
            result["timestamp"] = self.timestamp
        if self.code is not None:
            result["code"] = self.code.value
        if self.error:
            result["error"] = self.error
        if self.fraud_reasons:
            result["fraud_reasons"] = list(self.fraud_reasons)
        return result
