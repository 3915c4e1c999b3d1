"""Payment orchestration handlers."""

from payment_guard.handlers.payment import (
    PaymentOrchestrator,
    PaymentService,
    build_payment_service,
)

__all__ = ["PaymentOrchestrator", "PaymentService", "build_payment_service"]
