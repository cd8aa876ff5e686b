# Response validation rules
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import FrozenSet, Iterable, List, Optional

from .models import ValidationContext, ViolationCategory

CENT = Decimal("0.01")

# Words that match the ticker pattern but are NOT trade tickers
EXCLUDED_WORDS = frozenset({
    'USD', 'API', 'FAQ', 'PDF', 'URL', 'UTC', 'GMT', 'KYC', 'AML',
    'RSI', 'SMA', 'EMA', 'ATH', 'ATL', 'OB', 'FVG', 'SMC', 'ICT',
    'TP', 'SL', 'RR', 'PNL', 'ROI', 'AYN', 'AI', 'LLM', 'GPT',
    'CEX', 'DEX', 'TVL', 'APY', 'APR', 'LP', 'DCA', 'HODL',
    'MACD', 'BB', 'CCI', 'ADX', 'OBV', 'VWAP', 'NA',
    'BUY', 'SELL', 'LONG', 'SHORT', 'OPEN', 'STOP', 'YES', 'NO',
})

# Trade-context words written in capitals, e.g. "NO TRADE SIGNAL"
TRADE_CONTEXT_WORDS = frozenset({
    'BOUGHT', 'SOLD', 'SHORTED', 'LONGED', 'ENTERED', 'EXITED',
    'OPENED', 'CLOSED', 'TRADE', 'TRADED', 'SIGNAL',
})

# Phrasing that only makes sense if the account has traded
FABRICATION_PHRASES = [
    re.compile(r"\brecent trade\b", re.IGNORECASE),
    re.compile(r"\blast trade\b", re.IGNORECASE),
    re.compile(r"\bprevious trade\b", re.IGNORECASE),
    re.compile(r"\bentered\s+(?:at|@)", re.IGNORECASE),
    re.compile(r"\bshorted\s+(?:at|@)", re.IGNORECASE),
    re.compile(r"\bbought\s+(?:at|@)", re.IGNORECASE),
    re.compile(r"\bclosed\s+(?:at|@)", re.IGNORECASE),
    re.compile(r"\bexit(?:ed)?\s+(?:at|@)", re.IGNORECASE),
    re.compile(r"\bopened\s+(?:a|the)?\s*(?:long|short|position)\b", re.IGNORECASE),
    re.compile(r"\bclosed\s+(?:a|the|my)?\s*(?:long|short|position)\b", re.IGNORECASE),
    re.compile(r"\btrade\s+(?:result|outcome|closed|opened)\b", re.IGNORECASE),
]

DOLLAR_PATTERN = re.compile(r"\$([0-9,]+(?:\.[0-9]{1,2})?)")

# 2-7 uppercase letters on word boundaries
TICKER_PATTERN = re.compile(r"\b([A-Z]{2,7})\b")

TRADE_CONTEXT_PATTERN = re.compile(
    r"\b(?:bought|sold|shorted|longed|entered|exited|opened|closed|trade[d]?|position|signal)\b",
    re.IGNORECASE,
)


def round_cents(value: Decimal) -> Decimal:
    with localcontext() as decimal_ctx:
        # room for every integer digit plus the cents
        decimal_ctx.prec = max(decimal_ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def build_allowed_amounts(ctx: ValidationContext) -> FrozenSet[Decimal]:
    """Every dollar figure the account snapshot can legitimately back."""
    amounts = [
        ctx.account_balance,
        ctx.starting_balance,
        abs(ctx.total_pnl),
    ]
    for pos in ctx.open_positions:
        amounts.extend((pos.entry_price, abs(pos.pnl)))
    for trade in ctx.recent_trades:
        amounts.extend((trade.entry_price, trade.exit_price, abs(trade.pnl)))
    return frozenset(round_cents(amount) for amount in amounts)


def parse_dollar_amount(raw: str) -> Optional[Decimal]:
    """Parse the digits captured after a '$'. Returns None for unparseable text."""
    cleaned = raw.replace(",", "")
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


class ResponseRule:
    """Base class for response rules"""

    category: ViolationCategory

    def __init__(self, name: str):
        self.name = name

    def applies(self, ctx: ValidationContext) -> bool:
        return True

    def check(self, text: str, ctx: ValidationContext) -> List[str]:
        """
        Check a response against the account snapshot

        Returns:
            List[str]: human-readable violations, empty when the rule passes
        """
        raise NotImplementedError


class DollarAmountRule(ResponseRule):
    """Every material dollar figure must be backed by the snapshot"""

    category = ViolationCategory.DOLLAR_AMOUNT

    def __init__(self, materiality_threshold: Decimal = Decimal("1"),
                 tolerance: Decimal = Decimal("0.50"), max_violations: int = 3):
        super().__init__("DollarAmount")
        self.materiality_threshold = materiality_threshold
        self.tolerance = tolerance
        self.max_violations = max_violations

    def is_allowed(self, amount: Decimal, allowed: Iterable[Decimal]) -> bool:
        return any(abs(amount - value) <= self.tolerance for value in allowed)

    def check(self, text: str, ctx: ValidationContext) -> List[str]:
        allowed = build_allowed_amounts(ctx)
        violations = []

        for match in DOLLAR_PATTERN.finditer(text):
            amount = parse_dollar_amount(match.group(1))
            if amount is None:
                continue
            if amount < self.materiality_threshold:
                continue
            if not self.is_allowed(amount, allowed):
                violations.append(f"Fabricated dollar amount: ${amount} (not in database)")
                if len(violations) >= self.max_violations:
                    break

        return violations


class TradeActivityRule(ResponseRule):
    """An account that never traded cannot have trade history to describe"""

    category = ViolationCategory.TRADE_ACTIVITY

    def __init__(self, phrases: Optional[List[re.Pattern]] = None):
        super().__init__("TradeActivity")
        self.phrases = phrases if phrases is not None else FABRICATION_PHRASES

    def applies(self, ctx: ValidationContext) -> bool:
        return not ctx.has_trade_history

    def check(self, text: str, ctx: ValidationContext) -> List[str]:
        # One hit is enough for this category
        if any(pattern.search(text) for pattern in self.phrases):
            return ["Mentioned trade activity when database shows 0 trades"]
        return []


class TickerMentionRule(ResponseRule):
    """Tickers named next to trade verbs are fabricated when no trades exist"""

    category = ViolationCategory.TICKER

    def __init__(self, excluded_words: Iterable[str] = EXCLUDED_WORDS,
                 context_window: int = 60, max_violations: int = 5):
        super().__init__("TickerMention")
        self.excluded_words = frozenset(word.upper() for word in excluded_words) | TRADE_CONTEXT_WORDS
        self.context_window = context_window
        self.max_violations = max_violations

    def applies(self, ctx: ValidationContext) -> bool:
        return not ctx.has_trade_history

    def is_near_trade_context(self, text: str, index: int) -> bool:
        window = text[max(0, index - self.context_window):index + self.context_window]
        return TRADE_CONTEXT_PATTERN.search(window) is not None

    def check(self, text: str, ctx: ValidationContext) -> List[str]:
        violations = []
        flagged = set()

        for match in TICKER_PATTERN.finditer(text):
            ticker = match.group(1)
            if ticker in self.excluded_words or ticker in flagged:
                continue
            if self.is_near_trade_context(text, match.start()):
                flagged.add(ticker)
                violations.append(f"Fabricated ticker in trade context: {ticker} (no trades in database)")
                if len(violations) >= self.max_violations:
                    break

        return violations
