# Response Validator Models
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, Mapping, Optional, Tuple

from pydantic import BeforeValidator, Field, PlainSerializer, ValidationError, model_validator

from core.schemas.base import FrozenModel
from core.utils.exceptions import ValidationContextError


def to_decimal(value: Any) -> Any:
    """Convert floats through str() so binary noise never reaches Decimal."""
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# Decimal in Python, float in JSON dumps
Money = Annotated[
    Decimal,
    BeforeValidator(to_decimal),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class ViolationCategory(str, Enum):
    DOLLAR_AMOUNT = "dollar_amount"
    TRADE_ACTIVITY = "trade_activity"
    TICKER = "ticker"


class OpenPosition(FrozenModel):
    """Currently open position as stored by the paper-trading tables"""
    ticker: str
    entry_price: Money
    pnl: Money  # unrealized P&L, percent


class ClosedTrade(FrozenModel):
    """Closed trade as stored by the paper-trading tables"""
    ticker: str
    entry_price: Money
    exit_price: Money
    pnl: Money  # realized P&L, percent


class ValidationContext(FrozenModel):
    """Ground-truth account snapshot a response is checked against.

    Every field is required. The snapshot is assembled by the caller right
    before validation and is never mutated.
    """
    account_balance: Money
    starting_balance: Money
    total_trades: int = Field(..., ge=0)
    winning_trades: int = Field(..., ge=0)
    losing_trades: int = Field(..., ge=0)
    win_rate: Money = Field(..., ge=0, le=100)
    open_positions: Tuple[OpenPosition, ...]
    recent_trades: Tuple[ClosedTrade, ...]  # most recent first

    @model_validator(mode="after")
    def check_trade_counts(self):
        if self.winning_trades + self.losing_trades > self.total_trades:
            raise ValueError(
                f"winning_trades ({self.winning_trades}) + losing_trades "
                f"({self.losing_trades}) exceeds total_trades ({self.total_trades})"
            )
        return self

    @property
    def has_trade_history(self) -> bool:
        """False only for an account that has never traded"""
        return self.total_trades > 0 or len(self.open_positions) > 0

    @property
    def total_pnl(self) -> Decimal:
        return self.account_balance - self.starting_balance

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ValidationContext":
        """Build a context from a plain mapping, failing loudly on any gap."""
        try:
            return cls.model_validate(dict(payload))
        except ValidationError as e:
            missing = [
                ".".join(str(p) for p in err["loc"])
                for err in e.errors()
                if err["type"] == "missing"
            ]
            raise ValidationContextError(
                f"Invalid validation context: {e.error_count()} error(s)",
                missing_fields=missing,
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e


class ValidationResult(FrozenModel):
    """Outcome of validating one response.

    `violations` and `categories` are parallel; `sanitized_response` is set
    exactly when the response was rejected.
    """
    is_valid: bool
    sanitized_response: Optional[str] = None
    violations: Tuple[str, ...] = ()
    categories: Tuple[ViolationCategory, ...] = ()

    @model_validator(mode="after")
    def check_consistency(self):
        if self.is_valid and (self.violations or self.sanitized_response is not None):
            raise ValueError("A valid result carries no violations and no replacement")
        if not self.is_valid and (not self.violations or self.sanitized_response is None):
            raise ValueError("A rejected result needs violations and a replacement")
        if len(self.categories) != len(self.violations):
            raise ValueError("categories must parallel violations")
        return self

    @classmethod
    def approved(cls) -> "ValidationResult":
        return cls(is_valid=True)

    def text_for_delivery(self, original: str) -> str:
        """Text the caller must show: the original only when approved."""
        return original if self.is_valid else self.sanitized_response

    def category_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for category in self.categories:
            counts[category.value] = counts.get(category.value, 0) + 1
        return counts
