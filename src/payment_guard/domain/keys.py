"""Master key management for payment data encryption.

The master key comes from configuration (PAYMENT_ENCRYPTION_KEY) and is
required: there is no fallback key. A key that is not persisted across
restarts would leave every stored payload permanently undecryptable.
"""

import structlog

from payment_guard.config import Settings, settings
from payment_guard.domain.encryption import KEY_LENGTH, derive_data_key
from payment_guard.models.exceptions import KeyConfigurationError

logger = structlog.get_logger(__name__)


class KeyManager:
    """Supplies the payment data key derived from the configured master key.

    Pass one instance by reference to everything that encrypts or decrypts;
    nothing reads the key from module state.
    """

    def __init__(self, master_key: bytes, key_version: str = "v1") -> None:
        """
        Args:
            master_key: 32-byte master key
            key_version: Version label, mixed into the derived key

        Raises:
            KeyConfigurationError: If the key is not 32 bytes or the version is empty
        """
        if len(master_key) != KEY_LENGTH:
            raise KeyConfigurationError(
                f"Master key must be {KEY_LENGTH} bytes, got {len(master_key)}"
            )
        if not key_version:
            raise KeyConfigurationError("key_version cannot be empty")

        self.key_version = key_version
        self._data_key = derive_data_key(master_key, f"payment-data:{key_version}")

        logger.info("key_manager_initialized", key_version=key_version)

    @classmethod
    def from_hex(cls, master_key_hex: str, key_version: str = "v1") -> "KeyManager":
        """
        Raises:
            KeyConfigurationError: If the hex string is empty or malformed
        """
        if not master_key_hex:
            raise KeyConfigurationError(
                "PAYMENT_ENCRYPTION_KEY is not set. Generate one with "
                "generate_master_key().hex() and configure it before startup."
            )
        try:
            master_key = bytes.fromhex(master_key_hex.strip())
        except ValueError as e:
            raise KeyConfigurationError("PAYMENT_ENCRYPTION_KEY must be hex encoded") from e
        return cls(master_key, key_version)

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "KeyManager":
        config = config or settings
        return cls.from_hex(config.payment_encryption_key, config.encryption_key_version)

    @property
    def data_key(self) -> bytes:
        return self._data_key

    def __repr__(self) -> str:
        return f"KeyManager(key_version={self.key_version!r})"
