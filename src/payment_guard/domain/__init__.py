"""Validation, encryption and tokenization of payment data."""

from payment_guard.domain.encryption import (
    EncryptedPayload,
    decrypt_payment_data,
    encrypt_payment_data,
    generate_master_key,
)
from payment_guard.domain.keys import KeyManager
from payment_guard.domain.tokenization import PaymentCrypto, PaymentToken, tokenize_card
from payment_guard.domain.validation import (
    detect_card_type,
    mask_card_number,
    validate_card_number,
    validate_cvv,
    validate_expiry_date,
    validate_payment_amount,
    validate_payment_request,
)

__all__ = [
    "EncryptedPayload",
    "KeyManager",
    "PaymentCrypto",
    "PaymentToken",
    "decrypt_payment_data",
    "detect_card_type",
    "encrypt_payment_data",
    "generate_master_key",
    "mask_card_number",
    "tokenize_card",
    "validate_card_number",
    "validate_cvv",
    "validate_expiry_date",
    "validate_payment_amount",
    "validate_payment_request",
]
