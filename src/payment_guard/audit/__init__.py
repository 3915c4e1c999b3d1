"""Audit trail and security reporting."""

from payment_guard.audit.logger import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditTrail,
    mask_sensitive_data,
)
from payment_guard.audit.report import SecurityReport, SecurityReportGenerator

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "AuditTrail",
    "SecurityReport",
    "SecurityReportGenerator",
    "mask_sensitive_data",
]
