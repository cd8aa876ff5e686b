"""
Post-processing validation layer for AI trading responses.

Every dollar figure, ticker and trade claim in a generated response is checked
against the account snapshot. Any violation discards the generated text and
replaces it with a summary built only from the snapshot.
"""

import threading
import time
from typing import List, Optional

from prometheus_client import CollectorRegistry

from core.config.settings import Settings, ValidatorSettings
from core.logging import get_logger, get_audit_logger_safe
from core.monitoring.prometheus_metrics import ValidationMetricsCollector

from .models import ValidationContext, ValidationResult
from .rules import (
    EXCLUDED_WORDS,
    DollarAmountRule,
    ResponseRule,
    TickerMentionRule,
    TradeActivityRule,
)
from .sanitizer import ResponseSanitizer


class ResponseValidator:
    """Checks generated responses against ground-truth account data.

    Holds only configuration, compiled rules and metric handles, so one
    instance can serve concurrent requests.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 registry: Optional[CollectorRegistry] = None):
        self.settings = settings or Settings()
        config: ValidatorSettings = self.settings.validator

        self.rules: List[ResponseRule] = [
            DollarAmountRule(
                materiality_threshold=config.materiality_threshold,
                tolerance=config.dollar_tolerance,
                max_violations=config.max_dollar_violations,
            ),
            TradeActivityRule(),
            TickerMentionRule(
                excluded_words=EXCLUDED_WORDS | set(config.extra_excluded_words),
                context_window=config.ticker_context_window,
                max_violations=config.max_ticker_violations,
            ),
        ]
        self.sanitizer = ResponseSanitizer(
            confidence_threshold=config.confidence_threshold,
            max_recent_trades=config.max_recent_trades,
        )

        self.metrics = (
            ValidationMetricsCollector(registry=registry, settings=self.settings)
            if self.settings.monitoring.metrics_enabled else None
        )

        self.logger = get_logger("response_validator", component="response_validator")
        self.audit_logger = get_audit_logger_safe("response_validator_audit")

    def validate(self, response_text: str, ctx: ValidationContext) -> ValidationResult:
        """Approve the response unchanged or return a grounded replacement."""
        started = time.perf_counter()

        violations = []
        categories = []
        for rule in self.rules:
            if not rule.applies(ctx):
                continue
            found = rule.check(response_text, ctx)
            violations.extend(found)
            categories.extend([rule.category] * len(found))

        if not violations:
            result = ValidationResult.approved()
            self.logger.debug("Response approved", response_length=len(response_text))
        else:
            result = ValidationResult(
                is_valid=False,
                sanitized_response=self.sanitizer.build(ctx),
                violations=tuple(violations),
                categories=tuple(categories),
            )
            self.audit_logger.warning(
                "Response rejected and replaced",
                violation_count=len(violations),
                categories=result.category_counts(),
                violations=list(violations),
                total_trades=ctx.total_trades,
                open_positions=len(ctx.open_positions),
            )

        if self.metrics is not None:
            self.metrics.record_validation(
                approved=result.is_valid,
                categories=[c.value for c in result.categories],
                duration_seconds=time.perf_counter() - started,
            )

        return result


_default_validator: Optional[ResponseValidator] = None
_default_validator_lock = threading.Lock()


def validate_trading_response(response_text: str, ctx: ValidationContext) -> ValidationResult:
    """Validate with default settings, reusing one module-level validator."""
    global _default_validator

    if _default_validator is None:
        with _default_validator_lock:
            if _default_validator is None:
                _default_validator = ResponseValidator()
    return _default_validator.validate(response_text, ctx)
