"""Encryption and key derivation functions for payment data.

This module implements HKDF-based key derivation and AES-256-GCM
authenticated encryption. Payloads are JSON-serialized, encrypted under a
random 96-bit IV with the fixed associated data ``b"payment-data"``, and
returned as hex-encoded ciphertext, IV and authentication tag.
"""

import json
import os
from typing import Any, NamedTuple

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from payment_guard.models.exceptions import DecryptionError, EncryptionError

logger = structlog.get_logger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16
ASSOCIATED_DATA = b"payment-data"


class EncryptedPayload(NamedTuple):
    """Hex-encoded AES-GCM output: the only persisted form of card data."""

    encrypted: str
    iv: str
    tag: str

    def to_dict(self) -> dict[str, str]:
        return {"encrypted": self.encrypted, "iv": self.iv, "tag": self.tag}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncryptedPayload":
        """
        Build a payload from a dict with encrypted/iv/tag keys.

        Raises:
            DecryptionError: If any of the three fields is missing
        """
        try:
            return cls(encrypted=data["encrypted"], iv=data["iv"], tag=data["tag"])
        except (KeyError, TypeError) as e:
            raise DecryptionError("Encrypted payload must contain encrypted, iv and tag") from e


def derive_data_key(master_key: bytes, context: str) -> bytes:
    """Derive the payment data key from the master key using HKDF.

    Args:
        master_key: 32-byte master key from configuration
        context: Key context string, includes the key version

    Returns:
        32-byte AES-256 key

    Raises:
        ValueError: If master_key is not 32 bytes or context is empty
        EncryptionError: If key derivation fails
    """
    if len(master_key) != KEY_LENGTH:
        raise ValueError(f"Master key must be {KEY_LENGTH} bytes, got {len(master_key)}")

    if not context:
        raise ValueError("context cannot be empty")

    try:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=None,
            info=b"payment-guard-v1:" + context.encode("utf-8"),
        )
        return hkdf.derive(master_key)
    except Exception as e:
        logger.error("key_derivation_failed", error_type=type(e).__name__)
        raise EncryptionError("Failed to derive payment data key") from e


def encrypt_payment_data(data: Any, key: bytes) -> EncryptedPayload:
    """Encrypt a JSON-serializable object with AES-256-GCM.

    Args:
        data: Any JSON-serializable object
        key: 32-byte AES-256 key

    Returns:
        EncryptedPayload with hex ciphertext, IV and tag

    Raises:
        ValueError: If key is not 32 bytes
        EncryptionError: If serialization or encryption fails
    """
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Encryption key must be {KEY_LENGTH} bytes, got {len(key)}")

    try:
        plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        iv = os.urandom(IV_LENGTH)

        # cryptography appends the 16-byte tag to the ciphertext
        sealed = AESGCM(key).encrypt(iv, plaintext, ASSOCIATED_DATA)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

        logger.debug("payment_data_encrypted", plaintext_bytes=len(plaintext))
        return EncryptedPayload(encrypted=ciphertext.hex(), iv=iv.hex(), tag=tag.hex())

    except (TypeError, ValueError) as e:
        logger.error("payment_data_encryption_failed", error_type=type(e).__name__)
        raise EncryptionError("Failed to encrypt payment data") from e


def decrypt_payment_data(payload: EncryptedPayload, key: bytes) -> Any:
    """Decrypt and authenticate a payload produced by encrypt_payment_data.

    Args:
        payload: EncryptedPayload (or anything with encrypted/iv/tag)
        key: 32-byte AES-256 key (same as encryption key)

    Returns:
        The original object

    Raises:
        ValueError: If key is not 32 bytes
        DecryptionError: On tag mismatch, malformed input or wrong key
    """
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Decryption key must be {KEY_LENGTH} bytes, got {len(key)}")

    try:
        ciphertext = bytes.fromhex(payload.encrypted)
        iv = bytes.fromhex(payload.iv)
        tag = bytes.fromhex(payload.tag)
    except (AttributeError, TypeError, ValueError) as e:
        logger.error("payment_data_decryption_failed", reason="malformed_payload")
        raise DecryptionError("Failed to decrypt payment data - malformed payload") from e

    if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
        logger.error("payment_data_decryption_failed", reason="bad_iv_or_tag_length")
        raise DecryptionError("Failed to decrypt payment data - malformed payload")

    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, ASSOCIATED_DATA)
    except InvalidTag as e:
        # Don't expose detailed error messages for security
        logger.error("payment_data_decryption_failed", reason="authentication_failed")
        raise DecryptionError(
            "Failed to decrypt payment data - invalid key or corrupted data"
        ) from e

    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("payment_data_decryption_failed", reason="invalid_plaintext")
        raise DecryptionError("Failed to decrypt payment data - invalid plaintext") from e


def generate_master_key() -> bytes:
    """Generate a new 32-byte master key.

    Use this once when provisioning an environment and store the hex form
    as PAYMENT_ENCRYPTION_KEY. The service never generates keys on its own.
    """
    return os.urandom(KEY_LENGTH)
