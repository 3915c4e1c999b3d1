"""Unit tests for GatewayFactory."""

from decimal import Decimal

import pytest

from payment_guard.config import GatewaySettings
from payment_guard.gateways.base import GatewayResult, GatewayStatus, PaymentGateway
from payment_guard.gateways.factory import GatewayFactory, get_gateway
from payment_guard.gateways.mock_gateway import MockGateway
from payment_guard.models.payment import PaymentRequest


class AlwaysApproveGateway(PaymentGateway):
    name = "always"

    def __init__(self, config=None):
        self.config = config or {}

    async def charge(
        self, request: PaymentRequest, amount: Decimal, currency: str, transaction_id: str
    ) -> GatewayResult:
        return GatewayResult(
            status=GatewayStatus.APPROVED, gateway_name=self.name, transaction_id=transaction_id
        )


@pytest.fixture
def restore_registry():
    saved = dict(GatewayFactory._GATEWAYS)
    yield
    GatewayFactory._GATEWAYS = saved


class TestGatewayFactory:
    def test_create_mock(self) -> None:
        gateway = GatewayFactory.create_gateway("mock")

        assert isinstance(gateway, MockGateway)

    def test_name_is_case_insensitive(self) -> None:
        assert isinstance(GatewayFactory.create_gateway("MOCK"), MockGateway)

    def test_passes_config(self) -> None:
        gateway = GatewayFactory.create_gateway("mock", {"latency_ms": 25})

        assert gateway.latency_ms == 25

    def test_unknown_gateway(self) -> None:
        with pytest.raises(ValueError, match="Unknown gateway: stripe. Available gateways: mock"):
            GatewayFactory.create_gateway("stripe")

    def test_register_gateway(self, restore_registry) -> None:
        GatewayFactory.register_gateway("Always", AlwaysApproveGateway)

        assert "always" in GatewayFactory.list_gateways()
        assert isinstance(GatewayFactory.create_gateway("always"), AlwaysApproveGateway)

    def test_register_rejects_non_gateway(self, restore_registry) -> None:
        with pytest.raises(TypeError):
            GatewayFactory.register_gateway("bogus", dict)


class TestGetGateway:
    def test_builds_from_settings(self) -> None:
        gateway = get_gateway(
            GatewaySettings(default_response="declined", decline_rate=0.25, latency_ms=3)
        )

        assert isinstance(gateway, MockGateway)
        assert gateway.default_response == "declined"
        assert gateway.decline_rate == 0.25
        assert gateway.latency_ms == 3
