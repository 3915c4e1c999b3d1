"""Unit tests for configuration management."""

from unittest.mock import patch

from payment_guard.config import Settings


def test_settings_default_values():
    """Test that Settings loads with default values."""
    with patch.dict("os.environ", {}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.log_level == "INFO"
    assert settings.payment_encryption_key == ""
    assert settings.encryption_key_version == "v1"
    assert settings.fraud.max_daily_amount == 10000
    assert settings.fraud.max_transaction_amount == 5000
    assert settings.fraud.velocity_max_transactions == 5
    assert settings.fraud.velocity_window_seconds == 600
    assert settings.fraud.block_score == 70
    assert settings.fraud.review_score == 40
    assert settings.gateway.name == "mock"
    assert settings.geolocation.provider == "none"
    assert settings.compliance.encrypt_card_data is True
    assert settings.compliance.log_payment_events is True


def test_settings_from_environment():
    """Test nested groups load with the __ delimiter."""
    env = {
        "PAYMENT_ENCRYPTION_KEY": "ab" * 32,
        "FRAUD__MAX_DAILY_AMOUNT": "2500",
        "FRAUD__VELOCITY_MAX_TRANSACTIONS": "3",
        "GATEWAY__DEFAULT_RESPONSE": "declined",
        "COMPLIANCE__ENCRYPT_CARD_DATA": "false",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict("os.environ", env, clear=True):
        settings = Settings(_env_file=None)

    assert settings.payment_encryption_key == "ab" * 32
    assert settings.fraud.max_daily_amount == 2500
    assert settings.fraud.velocity_max_transactions == 3
    assert settings.fraud.block_score == 70
    assert settings.gateway.default_response == "declined"
    assert settings.compliance.encrypt_card_data is False
    assert settings.log_level == "DEBUG"
