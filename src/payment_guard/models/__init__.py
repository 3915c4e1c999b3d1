"""Domain models for payment-guard."""

from payment_guard.models.exceptions import (
    DecryptionError,
    EncryptionError,
    GatewayError,
    GatewayTimeout,
    GeolocationError,
    KeyConfigurationError,
    PaymentGuardError,
)
from payment_guard.models.fraud import FraudAssessment, RiskLevel, TransactionRecord
from payment_guard.models.outcome import OutcomeCode, PaymentOutcome, PaymentStatus
from payment_guard.models.payment import (
    CardInfo,
    CardType,
    FieldCheck,
    PaymentRequest,
    ValidationResult,
)

__all__ = [
    "CardInfo",
    "CardType",
    "DecryptionError",
    "EncryptionError",
    "FieldCheck",
    "FraudAssessment",
    "GatewayError",
    "GatewayTimeout",
    "GeolocationError",
    "KeyConfigurationError",
    "OutcomeCode",
    "PaymentGuardError",
    "PaymentOutcome",
    "PaymentRequest",
    "PaymentStatus",
    "RiskLevel",
    "TransactionRecord",
    "ValidationResult",
]
