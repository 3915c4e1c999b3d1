"""Custom exceptions for payment-guard."""


class PaymentGuardError(Exception):
    """Base exception for payment-guard errors."""

    pass


class EncryptionError(PaymentGuardError):
    """Raised when payment data cannot be encrypted."""

    pass


class DecryptionError(PaymentGuardError):
    """
    Raised when payment data cannot be decrypted.

    Covers authentication tag mismatch, malformed hex, wrong IV/tag lengths
    and plaintext that is not valid JSON. Decryption never returns partial
    or unauthenticated data.
    """

    pass


class KeyConfigurationError(PaymentGuardError):
    """
    Raised when the master encryption key is missing or malformed.

    This is a startup error: the service must not run without an explicitly
    configured key.
    """

    pass


class GatewayError(PaymentGuardError):
    """
    Raised when the payment gateway fails for infrastructure reasons.

    Card declines are NOT exceptions - they come back as a GatewayResult
    with status DECLINED.
    """

    pass


class GatewayTimeout(GatewayError):
    """Raised when the payment gateway times out or is rate limited."""

    pass


class GeolocationError(PaymentGuardError):
    """Raised when the IP geolocation lookup fails or returns garbage."""

    pass
