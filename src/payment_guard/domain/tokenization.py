"""Card tokenization.

A PaymentToken replaces the card number everywhere outside this module.
The sensitive subset of the card data lives only inside the encrypted
payload; the token itself is an opaque random handle.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

import structlog

from payment_guard.domain.encryption import (
    EncryptedPayload,
    decrypt_payment_data,
    encrypt_payment_data,
)
from payment_guard.domain.keys import KeyManager
from payment_guard.domain.validation import clean_card_number, validate_card_number
from payment_guard.models.payment import CardType, PaymentRequest

logger = structlog.get_logger(__name__)

TOKEN_PREFIX = "pt_"


@dataclass(frozen=True)
class PaymentToken:
    """Tokenized card: opaque handle, encrypted card data, display metadata.

    Attributes:
        token: Opaque identifier in format pt_{32 hex chars}
        encrypted_payload: Card number, expiry and cardholder name, encrypted
        masked_number: Card number with all but the last 4 digits masked
        card_type: Detected card network
        expiry_month: Expiry month as supplied
        expiry_year: Expiry year as supplied
        key_version: Version of the master key used
        created_at: When the token was issued (UTC)
    """

    token: str
    encrypted_payload: EncryptedPayload
    masked_number: str
    card_type: CardType
    expiry_month: int | str | None
    expiry_year: int | str | None
    key_version: str
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.token.startswith(TOKEN_PREFIX):
            raise ValueError(f"token must start with '{TOKEN_PREFIX}'")

    @staticmethod
    def generate_token_id() -> str:
        return f"{TOKEN_PREFIX}{secrets.token_hex(16)}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "encrypted_payload": self.encrypted_payload.to_dict(),
            "masked_number": self.masked_number,
            "card_type": self.card_type.value,
            "expiry_month": self.expiry_month,
            "expiry_year": self.expiry_year,
            "key_version": self.key_version,
            "created_at": self.created_at.isoformat(),
        }


def tokenize_card(
    card_data: PaymentRequest | Mapping[str, Any],
    key: bytes,
    key_version: str = "v1",
) -> PaymentToken:
    """Tokenize card data.

    Only card_number, expiry_month, expiry_year and cardholder_name are
    encrypted. The CVV is never stored.

    Args:
        card_data: PaymentRequest or mapping with at least card_number
        key: 32-byte payment data key
        key_version: Label recorded on the token

    Returns:
        PaymentToken

    Raises:
        ValueError: If the card number is missing or invalid
        EncryptionError: If encryption fails
    """
    if not isinstance(card_data, PaymentRequest):
        card_data = PaymentRequest.model_validate(card_data)

    card_check = validate_card_number(card_data.card_number)
    if not card_check.is_valid:
        raise ValueError(f"Cannot tokenize card: {card_check.error}")

    encrypted_payload = encrypt_payment_data(
        {
            "card_number": clean_card_number(card_data.card_number),
            "expiry_month": card_data.expiry_month,
            "expiry_year": card_data.expiry_year,
            "cardholder_name": card_data.cardholder_name,
        },
        key,
    )

    token = PaymentToken(
        token=PaymentToken.generate_token_id(),
        encrypted_payload=encrypted_payload,
        masked_number=card_check.masked_number,
        card_type=card_check.card_type,
        expiry_month=card_data.expiry_month,
        expiry_year=card_data.expiry_year,
        key_version=key_version,
        created_at=datetime.now(timezone.utc),
    )

    logger.info(
        "card_tokenized",
        token=token.token,
        card_type=token.card_type.value,
        masked_number=token.masked_number,
    )
    return token


class PaymentCrypto:
    """Encryption and tokenization bound to a KeyManager."""

    def __init__(self, key_manager: KeyManager) -> None:
        self.key_manager = key_manager

    def encrypt_payment_data(self, data: Any) -> EncryptedPayload:
        return encrypt_payment_data(data, self.key_manager.data_key)

    def decrypt_payment_data(self, payload: EncryptedPayload | Mapping[str, Any]) -> Any:
        if not isinstance(payload, EncryptedPayload):
            payload = EncryptedPayload.from_dict(dict(payload))
        return decrypt_payment_data(payload, self.key_manager.data_key)

    def tokenize_card(self, card_data: PaymentRequest | Mapping[str, Any]) -> PaymentToken:
        return tokenize_card(card_data, self.key_manager.data_key, self.key_manager.key_version)

    def reveal_card(self, payment_token: PaymentToken) -> dict[str, Any]:
        """Decrypt the card data held by a token.

        Raises:
            DecryptionError: If the token was issued under another key or tampered with
        """
        if payment_token.key_version != self.key_manager.key_version:
            logger.warning(
                "token_key_version_mismatch",
                token=payment_token.token,
                token_key_version=payment_token.key_version,
                current_key_version=self.key_manager.key_version,
            )
        return self.decrypt_payment_data(payment_token.encrypted_payload)
