"""Unit tests for MockGateway."""

import random
from datetime import datetime
from decimal import Decimal

import pytest

from payment_guard.gateways.base import GatewayResult, GatewayStatus
from payment_guard.gateways.mock_gateway import MockGateway
from payment_guard.models.exceptions import GatewayError, GatewayTimeout
from payment_guard.models.payment import PaymentRequest


@pytest.fixture
def mock_gateway():
    """Create a basic mock gateway instance."""
    return MockGateway()


def card(number: str) -> PaymentRequest:
    return PaymentRequest(
        card_number=number,
        cvv="123",
        expiry_month=12,
        expiry_year=2027,
        cardholder_name="Test User",
    )


async def charge(gateway: MockGateway, number: str) -> GatewayResult:
    return await gateway.charge(card(number), Decimal("10.00"), "USD", "txn-1")


@pytest.mark.asyncio
class TestMockGatewaySuccess:
    """Test approved charge scenarios."""

    async def test_charge_success_visa(self, mock_gateway) -> None:
        result = await charge(mock_gateway, "4242424242424242")

        assert result.status == GatewayStatus.APPROVED
        assert result.approved
        assert result.gateway_name == "mock"
        assert result.transaction_id == "txn-1"
        assert result.authorization_code == "123456"
        assert isinstance(result.processed_at, datetime)
        assert result.metadata["card_brand"] == "visa"
        assert result.metadata["card_last4"] == "4242"

    async def test_charge_success_amex(self, mock_gateway) -> None:
        result = await charge(mock_gateway, "378282246310005")

        assert result.approved
        assert result.metadata["card_brand"] == "amex"

    async def test_unknown_card_uses_default_response(self, mock_gateway) -> None:
        result = await charge(mock_gateway, "4111111111111111")

        assert result.approved
        assert len(result.authorization_code) == 6


@pytest.mark.asyncio
class TestMockGatewayDeclines:
    """Test card decline scenarios."""

    @pytest.mark.parametrize(
        "number,decline_code",
        [
            ("4000000000000002", "generic_decline"),
            ("4000000000009995", "insufficient_funds"),
            ("4000000000000069", "expired_card"),
            ("4000000000000127", "incorrect_cvc"),
        ],
    )
    async def test_decline_cards(self, mock_gateway, number: str, decline_code: str) -> None:
        result = await charge(mock_gateway, number)

        assert result.status == GatewayStatus.DECLINED
        assert not result.approved
        assert result.decline_code == decline_code
        assert result.decline_reason

    async def test_default_declined(self) -> None:
        gateway = MockGateway(config={"default_response": "declined"})

        result = await charge(gateway, "4111111111111111")

        assert result.decline_code == "generic_decline"
        assert result.decline_reason == "Payment declined by bank"

    async def test_decline_rate_uses_random_source(self) -> None:
        gateway = MockGateway(decline_rate=0.5, rng=random.Random(7))
        outcomes = [(await charge(gateway, "4111111111111111")).approved for _ in range(50)]

        assert True in outcomes
        assert False in outcomes

    async def test_decline_rate_does_not_affect_test_cards(self) -> None:
        gateway = MockGateway(decline_rate=1.0)

        assert (await charge(gateway, "4242424242424242")).approved


@pytest.mark.asyncio
class TestMockGatewayFailures:
    """Test infrastructure failure scenarios."""

    async def test_timeout_card(self, mock_gateway) -> None:
        with pytest.raises(GatewayTimeout, match="timeout"):
            await charge(mock_gateway, "4000000000000119")

    async def test_rate_limit_card(self, mock_gateway) -> None:
        with pytest.raises(GatewayTimeout, match="rate limit"):
            await charge(mock_gateway, "4000000000009987")

    async def test_timeout_is_gateway_error(self, mock_gateway) -> None:
        with pytest.raises(GatewayError):
            await charge(mock_gateway, "4000000000000119")

    async def test_custom_behavior_table(self) -> None:
        gateway = MockGateway(config={"card_behaviors": {"4242424242424242": {"type": "explode"}}})

        with pytest.raises(GatewayError, match="Unknown mock behavior"):
            await charge(gateway, "4242424242424242")


class TestMockGatewayConfig:
    def test_rejects_bad_decline_rate(self) -> None:
        with pytest.raises(ValueError):
            MockGateway(decline_rate=1.5)

    def test_config_dict_overrides_keywords(self) -> None:
        gateway = MockGateway(config={"latency_ms": 5}, latency_ms=100)

        assert gateway.latency_ms == 5

    def test_declined_result_requires_code(self) -> None:
        with pytest.raises(ValueError, match="decline_code"):
            GatewayResult(status=GatewayStatus.DECLINED, gateway_name="mock", transaction_id="t")
