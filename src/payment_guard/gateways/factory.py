"""
Gateway factory.

Configuration-based gateway selection. Real integrations register
themselves under a name and are picked by ``settings.gateway.name``.
"""

from typing import Any

import structlog

from payment_guard.config import GatewaySettings
from payment_guard.gateways.base import PaymentGateway
from payment_guard.gateways.mock_gateway import MockGateway

logger = structlog.get_logger(__name__)


class GatewayFactory:
    """Registry of available gateway implementations."""

    _GATEWAYS: dict[str, type[PaymentGateway]] = {
        "mock": MockGateway,
    }

    @classmethod
    def create_gateway(
        cls,
        gateway_name: str,
        gateway_config: dict[str, Any] | None = None,
    ) -> PaymentGateway:
        """
        Create a gateway instance by name.

        Args:
            gateway_name: Registered name (e.g. "mock")
            gateway_config: Gateway-specific configuration, passed as the
                ``config`` keyword

        Raises:
            ValueError: If gateway_name is not registered
        """
        name = gateway_name.lower()

        if name not in cls._GATEWAYS:
            available = ", ".join(cls.list_gateways())
            raise ValueError(f"Unknown gateway: {gateway_name}. Available gateways: {available}")

        gateway_class = cls._GATEWAYS[name]
        logger.info("gateway_created", gateway_name=name, gateway_class=gateway_class.__name__)
        return gateway_class(config=gateway_config or {})

    @classmethod
    def register_gateway(cls, name: str, gateway_class: type[PaymentGateway]) -> None:
        """
        Register a new gateway type.

        The class must accept a ``config`` keyword argument.
        """
        if not issubclass(gateway_class, PaymentGateway):
            raise TypeError(f"{gateway_class.__name__} must inherit from PaymentGateway")

        cls._GATEWAYS[name.lower()] = gateway_class
        logger.info("gateway_registered", gateway_name=name.lower(), gateway_class=gateway_class.__name__)

    @classmethod
    def list_gateways(cls) -> list[str]:
        return sorted(cls._GATEWAYS.keys())


def get_gateway(config: GatewaySettings) -> PaymentGateway:
    """Build the gateway named in settings."""
    return GatewayFactory.create_gateway(
        config.name,
        gateway_config={
            "default_response": config.default_response,
            "latency_ms": config.latency_ms,
            "decline_rate": config.decline_rate,
        },
    )
