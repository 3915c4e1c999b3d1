"""
Payment gateway integrations.

- base.PaymentGateway: abstract interface the orchestrator depends on
- mock_gateway.MockGateway: simulated gateway with test-card behaviors
- factory: name-based gateway selection
"""

from payment_guard.gateways.base import GatewayResult, GatewayStatus, PaymentGateway
from payment_guard.gateways.factory import GatewayFactory, get_gateway
from payment_guard.gateways.mock_gateway import MockGateway

__all__ = [
    "GatewayFactory",
    "GatewayResult",
    "GatewayStatus",
    "MockGateway",
    "PaymentGateway",
    "get_gateway",
]
