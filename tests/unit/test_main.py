"""Unit tests for the service entry point."""

import asyncio
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from payment_guard.config import FraudSettings, Settings
from payment_guard.domain.encryption import generate_master_key
from payment_guard.main import main
from payment_guard.models.exceptions import KeyConfigurationError


def make_settings(**overrides) -> Settings:
    return Settings(
        _env_file=None,
        payment_encryption_key=generate_master_key().hex(),
        fraud=FraudSettings(eviction_interval_seconds=60),
        **overrides,
    )


async def run_until_stopped(config: Settings) -> list[dict]:
    stop_event = asyncio.Event()
    with capture_logs() as logs:
        task = asyncio.create_task(main(config, stop_event))
        await asyncio.sleep(0.01)
        stop_event.set()
        await asyncio.wait_for(task, timeout=1)
    return logs


@pytest.mark.asyncio
class TestMain:
    @pytest.mark.parametrize(
        "overrides,expected_level",
        [
            ({"debug": True, "log_level": "WARNING"}, "DEBUG"),
            ({"debug": False, "log_level": "WARNING"}, "WARNING"),
        ],
    )
    async def test_configures_logging_from_settings(self, overrides, expected_level) -> None:
        config = make_settings(log_json=False, **overrides)

        with patch("payment_guard.main.configure_logging") as configure:
            await run_until_stopped(config)

        configure.assert_called_once_with(log_level=expected_level, format_as_json=False)

    async def test_runs_eviction_task_until_stopped(self) -> None:
        with patch("payment_guard.main.configure_logging"):
            logs = await run_until_stopped(make_settings())

        events = [log["event"] for log in logs]
        started = next(log for log in logs if log["event"] == "velocity_eviction_task_started")
        assert started["interval_seconds"] == 60
        assert "velocity_eviction_task_stopped" in events
        assert events[-1] == "payment_guard_shutdown_complete"

    async def test_missing_key_fails_before_running(self) -> None:
        config = Settings(_env_file=None, payment_encryption_key="")

        with patch("payment_guard.main.configure_logging"), pytest.raises(KeyConfigurationError):
            await main(config, asyncio.Event())
