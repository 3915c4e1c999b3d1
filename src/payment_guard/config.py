"""Configuration management for payment-guard."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FraudSettings(BaseModel):
    """Fraud heuristic thresholds."""

    max_daily_amount: float = Field(default=10000, description="Daily spend limit per user")
    max_transaction_amount: float = Field(
        default=5000, description="Single transaction limit before manual approval"
    )
    max_failed_attempts: int = Field(
        default=3, description="Failed payments per account before it is flagged"
    )
    velocity_max_transactions: int = Field(
        default=5, description="Transactions allowed inside the velocity window"
    )
    velocity_window_seconds: int = Field(default=600, description="Velocity window length")
    block_score: int = Field(default=70, description="Score at which a transaction is blocked")
    review_score: int = Field(default=40, description="Score at which review is required")
    unusual_hour_start: int = Field(default=2, description="First unusual local hour")
    unusual_hour_end: int = Field(default=6, description="Last unusual local hour (inclusive)")
    idle_user_ttl_seconds: int = Field(
        default=86400, description="Evict velocity state for users idle this long"
    )
    eviction_interval_seconds: int = Field(
        default=300, description="How often the eviction task runs"
    )


class GeolocationSettings(BaseModel):
    """IP geolocation provider settings."""

    provider: str = Field(default="none", description="'none' or 'http'")
    base_url: str = Field(default="http://localhost:8080", description="Provider base URL")
    api_key: str = Field(default="", description="Provider API key")
    timeout_seconds: float = Field(default=2.0, description="Lookup timeout")


class GatewaySettings(BaseModel):
    """Payment gateway settings."""

    name: str = Field(default="mock", description="Registered gateway name")
    timeout_seconds: float = Field(default=10.0, description="Charge timeout")
    default_response: str = Field(
        default="approved", description="Mock response for unknown cards"
    )
    decline_rate: float = Field(default=0.0, description="Mock random decline rate (0-1)")
    latency_ms: int = Field(default=0, description="Mock simulated latency")


class ComplianceSettings(BaseModel):
    """PCI DSS related switches."""

    encrypt_card_data: bool = True
    log_payment_events: bool = True
    report_high_risk_threshold: int = Field(
        default=10, description="High-risk count above which the report recommends hardening"
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Render logs as JSON")

    # Encryption
    payment_encryption_key: str = Field(
        default="", description="Hex-encoded 32-byte master key (required)"
    )
    encryption_key_version: str = Field(default="v1", description="Master key version")

    fraud: FraudSettings = Field(default_factory=FraudSettings)
    geolocation: GeolocationSettings = Field(default_factory=GeolocationSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    compliance: ComplianceSettings = Field(default_factory=ComplianceSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


# Global settings instance
settings = Settings()
