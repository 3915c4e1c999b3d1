"""Fraud assessment domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class RiskLevel(str, Enum):
    """Risk classification of a scored transaction."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class TransactionRecord:
    """A transaction as remembered by the velocity tracker."""

    amount: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class FraudAssessment:
    """
    Outcome of one fraud check.

    Created once per transaction attempt and never mutated. The score is
    additive and uncapped; the thresholds that turn it into a decision live
    in FraudSettings.
    """

    fraud_score: int
    risk_level: RiskLevel
    reasons: tuple[str, ...] = field(default_factory=tuple)
    requires_review: bool = False
    should_block: bool = False

    def __post_init__(self) -> None:
        if self.fraud_score < 0:
            raise ValueError("fraud_score cannot be negative")
        if self.should_block and not self.requires_review:
            raise ValueError("blocked assessments always require review")

    def to_dict(self) -> dict:
        return {
            "fraud_score": self.fraud_score,
            "risk_level": self.risk_level.value,
            "reasons": list(self.reasons),
            "requires_review": self.requires_review,
            "should_block": self.should_block,
        }
