"""Card and amount validators.

Pure functions with no side effects. The only non-deterministic input is
the current date used by the expiry check, which callers can inject.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from payment_guard.models.payment import (
    CardInfo,
    CardType,
    FieldCheck,
    PaymentRequest,
    ValidationResult,
)

MIN_CARD_LENGTH = 13
MAX_CARD_LENGTH = 19
MAX_EXPIRY_YEARS_AHEAD = 10
MAX_DECIMAL_PLACES = 2
MIN_CARDHOLDER_NAME_LENGTH = 2
MAX_CARDHOLDER_NAME_LENGTH = 50

# Tried in order, first match wins
CARD_TYPE_PATTERNS: tuple[tuple[CardType, re.Pattern], ...] = (
    (CardType.VISA, re.compile(r"^4[0-9]{12}(?:[0-9]{3})?$")),
    (CardType.MASTERCARD, re.compile(r"^5[1-5][0-9]{14}$")),
    (CardType.AMEX, re.compile(r"^3[47][0-9]{13}$")),
    (CardType.DISCOVER, re.compile(r"^6(?:011|5[0-9]{2})[0-9]{12}$")),
    (CardType.DINERS, re.compile(r"^3[0689][0-9]{11}$")),
    (CardType.JCB, re.compile(r"^(?:2131|1800|35\d{3})\d{11}$")),
)

_SEPARATORS = re.compile(r"[\s-]")


def clean_card_number(number: Any) -> str:
    """Strip spaces and dashes."""
    return _SEPARATORS.sub("", str(number))


def luhn_checksum_valid(digits: str) -> bool:
    """
    Luhn (mod 10) check.

    Every second digit from the rightmost is doubled, 9 is subtracted from
    doubled values above 9, and the number is valid iff the sum is a
    multiple of 10.
    """
    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def detect_card_type(number: str) -> CardType:
    """Classify a cleaned card number by prefix and length."""
    for card_type, pattern in CARD_TYPE_PATTERNS:
        if pattern.match(number):
            return card_type
    return CardType.UNKNOWN


def mask_card_number(number: str) -> str:
    """Replace all but the last 4 digits with '*'."""
    if len(number) <= 4:
        return number
    return "*" * (len(number) - 4) + number[-4:]


def card_info(number: str) -> CardInfo:
    cleaned = clean_card_number(number)
    return CardInfo(card_type=detect_card_type(cleaned), masked_number=mask_card_number(cleaned))


def validate_card_number(number: Any) -> FieldCheck:
    """
    Validate a card number: digits only, 13-19 long, Luhn checksum.

    The masked number is returned whenever the cleaned input is all digits,
    so callers can log rejected numbers safely. The card type is only
    classified for numbers that pass the checksum.
    """
    if number is None:
        return FieldCheck(is_valid=False, error="Card number must contain only digits")

    cleaned = clean_card_number(number)

    if not cleaned.isdigit() or not cleaned.isascii():
        return FieldCheck(is_valid=False, error="Card number must contain only digits")

    masked = mask_card_number(cleaned)

    if len(cleaned) < MIN_CARD_LENGTH or len(cleaned) > MAX_CARD_LENGTH:
        return FieldCheck(is_valid=False, error="Invalid card number length", masked_number=masked)

    if not luhn_checksum_valid(cleaned):
        return FieldCheck(is_valid=False, error="Invalid card number", masked_number=masked)

    return FieldCheck(
        is_valid=True,
        card_type=detect_card_type(cleaned),
        masked_number=masked,
    )


def validate_cvv(cvv: Any, card_type: CardType | str | None = None) -> FieldCheck:
    """CVV must be 4 digits for amex and 3 digits for every other card type."""
    if cvv is None:
        return FieldCheck(is_valid=False, error="CVV must contain only digits")

    cvv = str(cvv)
    if not cvv.isdigit() or not cvv.isascii():
        return FieldCheck(is_valid=False, error="CVV must contain only digits")

    try:
        card_type = CardType(card_type) if card_type else CardType.UNKNOWN
    except ValueError:
        card_type = CardType.UNKNOWN
    expected_length = 4 if card_type == CardType.AMEX else 3

    if len(cvv) != expected_length:
        return FieldCheck(
            is_valid=False,
            error=f"CVV must be {expected_length} digits for {card_type.value} cards",
        )

    return FieldCheck(is_valid=True)


def validate_expiry_date(month: Any, year: Any, today: date | None = None) -> FieldCheck:
    """
    Validate a card expiry month/year against the current calendar month.

    Two-digit years are read as 20xx. A card is valid through the end of its
    expiry month. Years more than 10 years ahead are rejected.

    Args:
        month: Expiry month (1-12), int or numeric string
        year: Expiry year, 2 or 4 digits
        today: Current date, defaults to date.today()
    """
    today = today or date.today()

    try:
        exp_month = int(month)
        exp_year = int(year)
    except (TypeError, ValueError):
        return FieldCheck(is_valid=False, error="Invalid expiry date format")

    if exp_month < 1 or exp_month > 12:
        return FieldCheck(is_valid=False, error="Invalid expiry month")

    if exp_year < 100:
        exp_year += 2000

    if (exp_year, exp_month) < (today.year, today.month):
        return FieldCheck(is_valid=False, error="Card has expired")

    if exp_year > today.year + MAX_EXPIRY_YEARS_AHEAD:
        return FieldCheck(is_valid=False, error="Invalid expiry year")

    return FieldCheck(is_valid=True)


def parse_amount(amount: Any) -> Decimal | None:
    """Parse an amount into a finite Decimal, or None when it is not numeric."""
    if isinstance(amount, bool):
        return None
    try:
        if isinstance(amount, Decimal):
            value = amount
        elif isinstance(amount, (int, float)):
            # str() keeps the shortest repr, so 10.1 stays 10.1
            value = Decimal(str(amount))
        elif isinstance(amount, str):
            value = Decimal(amount.strip())
        else:
            return None
    except InvalidOperation:
        return None

    if not value.is_finite():
        return None
    return value


def decimal_places(value: Decimal) -> int:
    exponent = value.normalize().as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def validate_payment_amount(
    amount: Any,
    currency: str = "USD",
    max_transaction_amount: float | Decimal = 5000,
) -> FieldCheck:
    """
    Validate a payment amount.

    Amounts above max_transaction_amount are not hard failures: they come
    back invalid with requires_approval=True so the caller can route them to
    manual review.
    """
    value = parse_amount(amount)
    if value is None or value <= 0:
        return FieldCheck(is_valid=False, error="Invalid payment amount")

    if decimal_places(value) > MAX_DECIMAL_PLACES:
        return FieldCheck(
            is_valid=False,
            error=f"Amount cannot have more than {MAX_DECIMAL_PLACES} decimal places",
        )

    limit = Decimal(str(max_transaction_amount))
    if value > limit:
        return FieldCheck(
            is_valid=False,
            error=f"Amount exceeds maximum transaction limit of {limit.normalize():f} {currency}",
            amount=value,
            requires_approval=True,
        )

    return FieldCheck(is_valid=True, amount=value)


def validate_cardholder_name(name: Any) -> FieldCheck:
    if not isinstance(name, str) or not (
        MIN_CARDHOLDER_NAME_LENGTH <= len(name) <= MAX_CARDHOLDER_NAME_LENGTH
    ):
        return FieldCheck(is_valid=False, error="Invalid cardholder name length")
    return FieldCheck(is_valid=True)


def validate_payment_request(
    request: PaymentRequest,
    max_transaction_amount: float | Decimal = 5000,
    today: date | None = None,
) -> ValidationResult:
    """
    Run every validator whose input is present and collect all errors.

    Absent fields (None) are skipped, not defaulted. Expiry is only checked
    when both month and year are present. The CVV length rule uses the type
    of a valid card number, otherwise 'unknown'.
    """
    errors: list[str] = []
    card_type = CardType.UNKNOWN

    if request.card_number is not None:
        card_check = validate_card_number(request.card_number)
        if card_check.is_valid:
            card_type = card_check.card_type or CardType.UNKNOWN
        else:
            errors.append(card_check.error)

    if request.cvv is not None:
        cvv_check = validate_cvv(request.cvv, card_type)
        if not cvv_check.is_valid:
            errors.append(cvv_check.error)

    if request.expiry_month is not None and request.expiry_year is not None:
        expiry_check = validate_expiry_date(request.expiry_month, request.expiry_year, today)
        if not expiry_check.is_valid:
            errors.append(expiry_check.error)

    if request.amount is not None:
        amount_check = validate_payment_amount(
            request.amount, request.currency, max_transaction_amount
        )
        if not amount_check.is_valid:
            errors.append(amount_check.error)

    if request.cardholder_name is not None:
        name_check = validate_cardholder_name(request.cardholder_name)
        if not name_check.is_valid:
            errors.append(name_check.error)

    return ValidationResult(is_valid=not errors, errors=tuple(errors))
