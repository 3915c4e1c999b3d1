"""Audit logging for PCI compliance.

Every orchestrated payment writes audit events: one ATTEMPT once fraud
screening passes, and exactly one terminal SUCCESS, FAILED or ERROR event.
Events are masked before they are stored or emitted, and the trail is
insert-only.
"""

import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable

import structlog

from payment_guard.config import ComplianceSettings
from payment_guard.domain.validation import mask_card_number

logger = structlog.get_logger(__name__)

COMPLIANCE_TAG = "PCI_DSS"

_CARD_KEYS = ("card_number", "cardNumber")


class AuditEventType(str, Enum):
    ATTEMPT = "PAYMENT_ATTEMPT"
    SUCCESS = "PAYMENT_SUCCESS"
    FAILED = "PAYMENT_FAILED"
    ERROR = "PAYMENT_ERROR"


def mask_sensitive_data(details: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return a copy of details with card data masked.

    card_number keeps only its last four digits, cvv becomes "***" and
    ssn becomes "XXX-XX-" plus its last four characters. Empty values are
    left alone.
    """
    masked = dict(details)

    for key in _CARD_KEYS:
        if masked.get(key):
            masked[key] = mask_card_number(str(masked[key]))

    if masked.get("cvv"):
        masked["cvv"] = "***"

    if masked.get("ssn"):
        masked["ssn"] = "XXX-XX-" + str(masked["ssn"])[-4:]

    return masked


@dataclass(frozen=True)
class AuditEvent:
    """A single write-once audit record."""

    timestamp: datetime
    event_type: AuditEventType
    user_id: str | None
    masked_details: Mapping[str, Any] = field(default_factory=dict)
    compliance_tag: str = COMPLIANCE_TAG

    def __post_init__(self) -> None:
        # Freeze the details so stored events cannot be edited in place
        object.__setattr__(self, "masked_details", MappingProxyType(dict(self.masked_details)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "user_id": self.user_id,
            "details": dict(self.masked_details),
            "compliance": self.compliance_tag,
        }


class AuditTrail:
    """
    In-process, append-only store of audit events.

    There is no update or delete; readers get snapshots.
    """

    def __init__(self) -> None:
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def append(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def events(self) -> tuple[AuditEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def events_since(self, since: datetime) -> tuple[AuditEvent, ...]:
        """Events with a timestamp at or after ``since``."""
        return tuple(event for event in self.events() if event.timestamp >= since)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __iter__(self) -> Iterator[AuditEvent]:
        return iter(self.events())


class AuditLogger:
    """
    Writes masked payment audit events to the trail and to the log stream.

    Args:
        trail: Destination trail (a fresh one when omitted)
        config: Compliance switches; ``log_payment_events`` off disables
            storage and emission
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        trail: AuditTrail | None = None,
        config: ComplianceSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.trail = trail if trail is not None else AuditTrail()
        self.config = config or ComplianceSettings()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def log_payment_event(
        self,
        event_type: AuditEventType,
        user_id: str | None,
        details: Mapping[str, Any] | None = None,
    ) -> AuditEvent:
        """
        Record a payment audit event.

        Args:
            event_type: ATTEMPT, SUCCESS, FAILED or ERROR
            user_id: Paying user (may be None for anonymous payments)
            details: Event context; masked before anything else sees it

        Returns:
            The recorded AuditEvent
        """
        event = AuditEvent(
            timestamp=self.clock(),
            event_type=AuditEventType(event_type),
            user_id=user_id,
            masked_details=mask_sensitive_data(details or {}),
        )

        if not self.config.log_payment_events:
            return event

        self.trail.append(event)
        logger.info(
            "payment_audit",
            audit_event_type=event.event_type.value,
            user_id=event.user_id,
            details=dict(event.masked_details),
            compliance=event.compliance_tag,
            audit_timestamp=event.timestamp.isoformat(),
        )
        return event
