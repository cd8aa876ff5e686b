# Deterministic replacement text built purely from the account snapshot
from decimal import Decimal, ROUND_HALF_UP

from .models import ValidationContext
from .rules import round_cents


def format_money(value: Decimal) -> str:
    """1234.5 -> '1,234.50'"""
    return f"{round_cents(value):,.2f}"


def format_signed_percent(value: Decimal) -> str:
    """2.5 -> '+2.50', -1 -> '-1.00'"""
    sign = "+" if value >= 0 else ""
    return f"{sign}{round_cents(value):.2f}"


def total_pnl_percent(ctx: ValidationContext) -> Decimal:
    if ctx.starting_balance <= 0:
        return Decimal("0")
    return ctx.total_pnl / ctx.starting_balance * 100


class ResponseSanitizer:
    """Builds the text shown instead of a rejected response"""

    def __init__(self, confidence_threshold: int = 65, max_recent_trades: int = 5):
        self.confidence_threshold = confidence_threshold
        self.max_recent_trades = max_recent_trades

    def build(self, ctx: ValidationContext) -> str:
        if ctx.total_trades == 0:
            return self.build_no_trades(ctx)
        return self.build_summary(ctx)

    def build_no_trades(self, ctx: ValidationContext) -> str:
        return (
            f"My paper trading account is live with ${format_money(ctx.account_balance)}.\n"
            "\n"
            "No trades executed yet. I'm being selective and waiting for high-conviction "
            f"setups that meet my {self.confidence_threshold}%+ confidence threshold. "
            "I never force trades just to show activity.\n"
            "\n"
            "You can track my performance live on the Performance page."
        )

    def build_summary(self, ctx: ValidationContext) -> str:
        if ctx.open_positions:
            position_lines = "\n".join(
                f"- {p.ticker}: {format_signed_percent(p.pnl)}% unrealized"
                for p in ctx.open_positions
            )
        else:
            position_lines = "None"

        recent = ctx.recent_trades[:self.max_recent_trades]
        if recent:
            trade_lines = "\n".join(
                f"- {t.ticker}: Entry ${round_cents(t.entry_price):.2f} "
                f"→ Exit ${round_cents(t.exit_price):.2f} "
                f"({format_signed_percent(t.pnl)}%)"
                for t in recent
            )
        else:
            trade_lines = "No closed trades yet"

        win_rate = ctx.win_rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return (
            f"Account Balance: ${format_money(ctx.account_balance)} "
            f"({format_signed_percent(total_pnl_percent(ctx))}%)\n"
            "\n"
            f"Total Trades: {ctx.total_trades}\n"
            f"Win Rate: {win_rate:.1f}% ({ctx.winning_trades}W / {ctx.losing_trades}L)\n"
            "\n"
            "Open Positions:\n"
            f"{position_lines}\n"
            "\n"
            "Recent Closed Trades:\n"
            f"{trade_lines}"
        )
