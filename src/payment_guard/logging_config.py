"""Structured logging configuration using structlog."""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from payment_guard.domain.validation import luhn_checksum_valid, mask_card_number

# 13-19 contiguous digits, or 4-digit groups joined by one repeated separator
_PAN_PATTERN = re.compile(r"\b(?:\d{4}([ -])\d{4}\1\d{4}\1\d{1,7}|\d{13,19})\b")

_SENSITIVE_KEYS = {"card_number", "cardnumber", "cvv", "ssn"}


def _mask_value(key: str, value: Any) -> Any:
    if key in ("card_number", "cardnumber") and isinstance(value, str):
        return mask_card_number(re.sub(r"[\s-]", "", value))
    if key == "cvv":
        return "***"
    if key == "ssn" and isinstance(value, str):
        return "XXX-XX-" + value[-4:]
    return value


def _mask_pan(match: re.Match) -> str:
    digits = re.sub(r"[\s-]", "", match.group(0))
    if not luhn_checksum_valid(digits):
        return match.group(0)
    return mask_card_number(digits)


def _scrub_text(text: str) -> str:
    return _PAN_PATTERN.sub(_mask_pan, text)


def redact_card_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask card numbers, CVVs and SSNs before an event is rendered."""
    for key, value in list(event_dict.items()):
        lowered = key.lower()
        if lowered in _SENSITIVE_KEYS:
            event_dict[key] = _mask_value(lowered, value)
        elif isinstance(value, str):
            event_dict[key] = _scrub_text(value)
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _mask_value(k.lower(), v) if k.lower() in _SENSITIVE_KEYS else v
                for k, v in value.items()
            }
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    format_as_json: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_as_json: If True, output logs as JSON; otherwise use console format
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_card_data,
    ]

    if format_as_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
