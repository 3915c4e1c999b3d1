"""Payment request and validation models."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CardType(str, Enum):
    """Card network, in detection priority order."""

    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"
    DISCOVER = "discover"
    DINERS = "diners"
    JCB = "jcb"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FieldCheck:
    """
    Result of a single field validator.

    Only the attributes relevant to the validator are populated: card checks
    fill card_type/masked_number, amount checks fill amount/requires_approval.
    """

    is_valid: bool
    error: str | None = None
    card_type: CardType | None = None
    masked_number: str | None = None
    amount: Decimal | None = None
    requires_approval: bool = False


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate validation of a payment request, errors in check order."""

    is_valid: bool
    errors: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CardInfo:
    """Non-sensitive card details derived from a card number."""

    card_type: CardType
    masked_number: str

    @property
    def last_four(self) -> str:
        return self.masked_number[-4:]


class PaymentRequest(BaseModel):
    """
    Inbound payment request.

    Every field is optional: validators skip whatever is absent. Accepts
    snake_case or camelCase keys (``cardNumber``, ``expiryMonth``, ...).
    Card number and CVV are kept out of repr so the model can be logged
    safely by accident.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    card_number: Optional[str] = Field(default=None, repr=False)
    cvv: Optional[str] = Field(default=None, repr=False)
    expiry_month: Optional[Union[int, str]] = None
    expiry_year: Optional[Union[int, str]] = None
    cardholder_name: Optional[str] = None
    amount: Optional[Union[Decimal, int, float, str]] = None
    currency: str = "USD"
    user_id: Optional[str] = None
    ip: Optional[str] = None
