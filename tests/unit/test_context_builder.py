from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.utils.exceptions import ValidationContextError
from services.response_validator import ValidationContextBuilder, build_validation_context
from services.response_validator.context_builder import _EPOCH, _exit_time, context_from_document


def _account(**overrides):
    row = {
        "current_balance": "10250.75",
        "starting_balance": 10000,
        "total_trades": 3,
        "winning_trades": 2,
        "losing_trades": 1,
        "win_rate": 66.67,
    }
    row.update(overrides)
    return row


def _trades():
    return [
        {"id": 1, "ticker": "BTC", "status": "OPEN", "entry_price": "64000", "pnl_percent": "1.25"},
        {"id": 2, "ticker": "ETH", "status": "PARTIAL_CLOSE", "entry_price": 3100,
         "pnl_dollars": 50, "position_size_dollars": 1000},
        {"id": 3, "ticker": "SOL", "status": "CLOSED_WIN", "entry_price": 140, "exit_price": 150,
         "pnl_percent": 7.14, "exit_time": "2024-05-01T10:00:00Z"},
        {"id": 4, "ticker": "AVAX", "status": "CLOSED_LOSS", "entry_price": 35, "exit_price": 33,
         "pnl_percent": -5.71, "exit_time": "2024-05-03T10:00:00+00:00"},
        {"id": 5, "ticker": "LINK", "status": "STOPPED_OUT", "entry_price": 15, "exit_price": 14,
         "pnl_percent": -6.67, "exit_time": "2024-05-02T10:00:00"},
        {"id": 6, "ticker": "DOGE", "status": "PENDING", "entry_price": 0.15},
        {"id": 7, "ticker": "ADA", "status": "CLOSED_WIN", "entry_price": 0.45, "exit_price": None},
    ]


def test_builder_maps_account_and_trades():
    ctx = ValidationContextBuilder().build(_account(), _trades())

    assert ctx.account_balance == Decimal("10250.75")
    assert ctx.win_rate == Decimal("66.67")
    assert ctx.total_trades == 3

    assert [p.ticker for p in ctx.open_positions] == ["BTC", "ETH"]
    assert ctx.open_positions[0].pnl == Decimal("1.25")
    # pnl_dollars relative to position size
    assert ctx.open_positions[1].pnl == Decimal("5")

    # most recent exit first; pending and exit-less rows are skipped
    assert [t.ticker for t in ctx.recent_trades] == ["AVAX", "LINK", "SOL"]
    assert ctx.recent_trades[0].exit_price == Decimal("33")
    assert ctx.recent_trades[2].pnl == Decimal("7.14")


def test_recent_trades_limit():
    ctx = build_validation_context(_account(), _trades(), recent_trades_limit=2)
    assert [t.ticker for t in ctx.recent_trades] == ["AVAX", "LINK"]


def test_open_position_without_pnl_defaults_to_zero():
    trades = [{"ticker": "BTC", "status": "OPEN", "entry_price": 100}]
    ctx = build_validation_context(_account(), trades)
    assert ctx.open_positions[0].pnl == Decimal("0")


def test_missing_account_fields_are_reported():
    account = _account()
    del account["win_rate"]
    with pytest.raises(ValidationContextError) as exc_info:
        build_validation_context(account, [])
    assert exc_info.value.missing_fields == ["win_rate"]


def test_trade_row_without_entry_price_is_rejected():
    trades = [{"id": 9, "ticker": "BTC", "status": "OPEN"}]
    with pytest.raises(ValidationContextError) as exc_info:
        build_validation_context(_account(), trades)
    assert exc_info.value.missing_fields == ["entry_price"]
    assert exc_info.value.details["trade_id"] == 9


def test_non_numeric_balance_is_rejected():
    with pytest.raises(ValidationContextError):
        build_validation_context(_account(current_balance="abc"), [])


def test_inconsistent_account_counts_are_rejected():
    with pytest.raises(ValidationContextError):
        build_validation_context(_account(winning_trades=3, losing_trades=1), [])


def test_context_from_row_document():
    ctx = context_from_document({"account": _account(total_trades=0, winning_trades=0, losing_trades=0)})
    assert ctx.total_trades == 0
    assert ctx.open_positions == ()
    assert ctx.recent_trades == ()


def test_context_from_field_document():
    ctx = context_from_document({
        "account_balance": "1000",
        "starting_balance": "1000",
        "total_trades": 0,
        "winning_trades": 0,
        "losing_trades": 0,
        "win_rate": 0,
        "open_positions": [],
        "recent_trades": [],
    })
    assert ctx.account_balance == Decimal("1000")
    assert ctx.has_trade_history is False


def test_exit_time_with_short_fraction_sorts_by_time():
    trades = [
        {"ticker": "SOL", "status": "CLOSED_WIN", "entry_price": 140, "exit_price": 150,
         "pnl_percent": 7.14, "exit_time": "2024-05-01T10:00:00.5+00:00"},
        {"ticker": "AVAX", "status": "CLOSED_LOSS", "entry_price": 35, "exit_price": 33,
         "pnl_percent": -5.71, "exit_time": "2024-05-03T10:00:00.1234+00:00"},
        {"ticker": "LINK", "status": "STOPPED_OUT", "entry_price": 15, "exit_price": 14,
         "pnl_percent": -6.67, "exit_time": "2024-05-02T10:00:00.1234567Z"},
    ]
    ctx = build_validation_context(_account(), trades)
    assert [t.ticker for t in ctx.recent_trades] == ["AVAX", "LINK", "SOL"]


def test_exit_time_parsing():
    assert _exit_time({"exit_time": "2024-05-03T10:00:00.1234+00:00"}) == datetime(
        2024, 5, 3, 10, 0, 0, 123400, tzinfo=timezone.utc
    )
    assert _exit_time({"exit_time": "not a time"}) == _EPOCH
    assert _exit_time({}) == _EPOCH
