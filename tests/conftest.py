"""
Pytest configuration and shared fixtures for the response guard tests.
"""
import pytest
from decimal import Decimal
from prometheus_client import CollectorRegistry

from core.config.settings import Settings, LoggingSettings, MonitoringSettings
from services.response_validator import (
    ClosedTrade,
    OpenPosition,
    ResponseValidator,
    ValidationContext,
)


@pytest.fixture
def test_settings():
    """Test settings configuration."""
    return Settings(
        environment="testing",
        logging=LoggingSettings(file_enabled=False, console_enabled=False),
        monitoring=MonitoringSettings(metrics_enabled=True),
    )


@pytest.fixture
def registry():
    """Isolated Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def validator(test_settings, registry):
    return ResponseValidator(test_settings, registry=registry)


@pytest.fixture
def zero_trade_context():
    """Fresh account: never traded, nothing open."""
    return ValidationContext(
        account_balance=Decimal("10000.00"),
        starting_balance=Decimal("10000.00"),
        total_trades=0,
        winning_trades=0,
        losing_trades=0,
        win_rate=Decimal("0"),
        open_positions=(),
        recent_trades=(),
    )


@pytest.fixture
def active_context():
    """7 trades, 2 open positions, 8 recent closed trades (most recent first)."""
    return ValidationContext(
        account_balance=Decimal("10523.40"),
        starting_balance=Decimal("10000.00"),
        total_trades=7,
        winning_trades=5,
        losing_trades=2,
        win_rate=Decimal("71.43"),
        open_positions=(
            OpenPosition(ticker="BTC", entry_price=Decimal("64250.50"), pnl=Decimal("2.35")),
            OpenPosition(ticker="ETH", entry_price=Decimal("3120.75"), pnl=Decimal("-1.10")),
        ),
        recent_trades=(
            ClosedTrade(ticker="SOL", entry_price=Decimal("142.30"), exit_price=Decimal("151.80"), pnl=Decimal("6.68")),
            ClosedTrade(ticker="AVAX", entry_price=Decimal("35.10"), exit_price=Decimal("33.90"), pnl=Decimal("-3.42")),
            ClosedTrade(ticker="LINK", entry_price=Decimal("14.25"), exit_price=Decimal("15.40"), pnl=Decimal("8.07")),
            ClosedTrade(ticker="DOGE", entry_price=Decimal("0.15"), exit_price=Decimal("0.17"), pnl=Decimal("12.5")),
            ClosedTrade(ticker="ADA", entry_price=Decimal("0.45"), exit_price=Decimal("0.48"), pnl=Decimal("6.67")),
            ClosedTrade(ticker="XRP", entry_price=Decimal("0.52"), exit_price=Decimal("0.55"), pnl=Decimal("5.77")),
            ClosedTrade(ticker="MATIC", entry_price=Decimal("0.85"), exit_price=Decimal("0.80"), pnl=Decimal("-5.88")),
            ClosedTrade(ticker="DOT", entry_price=Decimal("7.20"), exit_price=Decimal("7.65"), pnl=Decimal("6.25")),
        ),
    )


@pytest.fixture
def make_context():
    """Factory for a $1,000 zero-trade context with selected fields replaced."""

    def _make(**overrides) -> ValidationContext:
        fields = dict(
            account_balance=Decimal("1000.00"),
            starting_balance=Decimal("1000.00"),
            total_trades=0,
            winning_trades=0,
            losing_trades=0,
            win_rate=Decimal("0"),
            open_positions=(),
            recent_trades=(),
        )
        fields.update(overrides)
        return ValidationContext(**fields)

    return _make
