"""Main entry point for the payment-guard service."""

import asyncio
import signal
from typing import Any

from payment_guard.config import Settings, settings
from payment_guard.handlers.payment import build_payment_service
from payment_guard.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


async def main(config: Settings | None = None, stop_event: asyncio.Event | None = None) -> None:
    """
    Run the payment service until stopped.

    Configures logging, builds the service, starts its background eviction
    task and waits for SIGTERM/SIGINT (or ``stop_event``) before shutting
    it down.

    Args:
        config: Settings to use (defaults to the global settings)
        stop_event: Externally controlled shutdown signal; when omitted,
            signal handlers set one
    """
    config = config or settings

    configure_logging(
        log_level="DEBUG" if config.debug else config.log_level,
        format_as_json=config.log_json,
    )

    service = build_payment_service(config)

    installed_signals: list[signal.Signals] = []
    if stop_event is None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        def signal_handler(sig: Any) -> None:
            logger.info("received_signal", signal=signal.Signals(sig).name)
            stop_event.set()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
            installed_signals.append(sig)

    try:
        async with service:
            logger.info("payment_guard_running", environment=config.environment)
            await stop_event.wait()
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed_signals:
            loop.remove_signal_handler(sig)
        logger.info("payment_guard_shutdown_complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
