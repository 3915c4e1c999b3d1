"""
payment-guard: payment security service.

Card and amount validation, heuristic fraud scoring, card data encryption
and tokenization, payment orchestration and PCI-style audit reporting.
"""

from payment_guard.audit import AuditLogger, AuditTrail, SecurityReportGenerator
from payment_guard.domain import (
    KeyManager,
    PaymentCrypto,
    decrypt_payment_data,
    encrypt_payment_data,
    tokenize_card,
    validate_card_number,
    validate_cvv,
    validate_expiry_date,
    validate_payment_amount,
)
from payment_guard.fraud import FraudEngine, VelocityTracker
from payment_guard.handlers import PaymentOrchestrator, build_payment_service
from payment_guard.models import PaymentOutcome, PaymentRequest

__version__ = "0.1.0"

__all__ = [
    "AuditLogger",
    "AuditTrail",
    "FraudEngine",
    "KeyManager",
    "PaymentCrypto",
    "PaymentOrchestrator",
    "PaymentOutcome",
    "PaymentRequest",
    "SecurityReportGenerator",
    "VelocityTracker",
    "build_payment_service",
    "decrypt_payment_data",
    "encrypt_payment_data",
    "tokenize_card",
    "validate_card_number",
    "validate_cvv",
    "validate_expiry_date",
    "validate_payment_amount",
]
