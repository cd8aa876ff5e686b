# Assembles a ValidationContext from paper-trading account and trade rows
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.logging import get_logger
from core.utils.exceptions import ValidationContextError

from .models import ClosedTrade, OpenPosition, ValidationContext

OPEN_STATUSES = frozenset({"OPEN", "PARTIAL_CLOSE"})
CLOSED_STATUSES = frozenset({"CLOSED_WIN", "CLOSED_LOSS", "STOPPED_OUT"})

REQUIRED_ACCOUNT_FIELDS = (
    "current_balance",
    "starting_balance",
    "total_trades",
    "winning_trades",
    "losing_trades",
    "win_rate",
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

# PostgREST trims trailing zeros from fractional seconds
_FRACTION = re.compile(r"\.(\d+)")


def _decimal(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationContextError(
            f"Field {field} is not numeric: {value!r}",
            details={"field": field, "value": value},
        ) from e


def _field(row: Mapping[str, Any], name: str) -> Any:
    value = row.get(name)
    if value is None:
        raise ValidationContextError(
            f"Trade row is missing required field: {name}",
            missing_fields=[name],
            details={"trade_id": row.get("id")},
        )
    return value


def _exit_time(row: Mapping[str, Any]) -> datetime:
    """Parse exit_time (ISO string or datetime); unknown times sort last."""
    value = row.get("exit_time")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
    else:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ValidationContextBuilder:
    """Maps `ayn_account_state` / `ayn_paper_trades` rows to a context"""

    def __init__(self, recent_trades_limit: int = 10):
        self.recent_trades_limit = recent_trades_limit
        self.logger = get_logger("context_builder", component="context_builder")

    def build(self, account_row: Mapping[str, Any],
              trade_rows: Iterable[Mapping[str, Any]]) -> ValidationContext:
        missing = [f for f in REQUIRED_ACCOUNT_FIELDS if account_row.get(f) is None]
        if missing:
            raise ValidationContextError(
                f"Account state is missing required fields: {', '.join(missing)}",
                missing_fields=missing,
            )

        rows = list(trade_rows)
        open_positions = [self._open_position(r) for r in rows if r.get("status") in OPEN_STATUSES]
        recent_trades = self._recent_trades(rows)

        ctx = ValidationContext.from_payload({
            "account_balance": _decimal(account_row["current_balance"], "current_balance"),
            "starting_balance": _decimal(account_row["starting_balance"], "starting_balance"),
            "total_trades": account_row["total_trades"],
            "winning_trades": account_row["winning_trades"],
            "losing_trades": account_row["losing_trades"],
            "win_rate": _decimal(account_row["win_rate"], "win_rate"),
            "open_positions": open_positions,
            "recent_trades": recent_trades,
        })

        self.logger.debug(
            "Validation context built",
            total_trades=ctx.total_trades,
            open_positions=len(ctx.open_positions),
            recent_trades=len(ctx.recent_trades),
            ignored_rows=len(rows) - len(open_positions) - len(recent_trades),
        )
        return ctx

    def _open_position(self, row: Mapping[str, Any]) -> OpenPosition:
        return OpenPosition(
            ticker=str(_field(row, "ticker")),
            entry_price=_decimal(_field(row, "entry_price"), "entry_price"),
            pnl=self._unrealized_percent(row),
        )

    def _unrealized_percent(self, row: Mapping[str, Any]) -> Decimal:
        """Stored pnl_percent, else pnl_dollars relative to position size."""
        if row.get("pnl_percent") is not None:
            return _decimal(row["pnl_percent"], "pnl_percent")
        pnl_dollars = _decimal(row.get("pnl_dollars") or 0, "pnl_dollars")
        size = _decimal(row.get("position_size_dollars") or 0, "position_size_dollars")
        if size <= 0:
            return Decimal("0")
        return pnl_dollars / size * 100

    def _recent_trades(self, rows: List[Mapping[str, Any]]) -> List[ClosedTrade]:
        closed = [
            r for r in rows
            if r.get("status") in CLOSED_STATUSES and r.get("exit_price") is not None
        ]
        closed.sort(key=_exit_time, reverse=True)
        return [
            ClosedTrade(
                ticker=str(_field(r, "ticker")),
                entry_price=_decimal(_field(r, "entry_price"), "entry_price"),
                exit_price=_decimal(r["exit_price"], "exit_price"),
                pnl=_decimal(r.get("pnl_percent") or 0, "pnl_percent"),
            )
            for r in closed[:self.recent_trades_limit]
        ]


def build_validation_context(account_row: Mapping[str, Any],
                             trade_rows: Iterable[Mapping[str, Any]],
                             recent_trades_limit: Optional[int] = None) -> ValidationContext:
    """Convenience wrapper around ValidationContextBuilder"""
    builder = ValidationContextBuilder(recent_trades_limit=recent_trades_limit or 10)
    return builder.build(account_row, trade_rows)


def context_from_document(document: Dict[str, Any],
                          recent_trades_limit: Optional[int] = None) -> ValidationContext:
    """Accept either raw rows ({"account": ..., "trades": [...]}) or context fields."""
    if "account" in document:
        return build_validation_context(
            document["account"], document.get("trades", []), recent_trades_limit
        )
    return ValidationContext.from_payload(document)
