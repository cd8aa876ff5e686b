"""
Response Validator Service

Checks AI-generated trading responses against the paper-trading account
snapshot and replaces any response that states unbacked figures.
"""

from .models import (
    ClosedTrade,
    OpenPosition,
    ValidationContext,
    ValidationResult,
    ViolationCategory,
)
from .validator import ResponseValidator, validate_trading_response
from .context_builder import ValidationContextBuilder, build_validation_context
from .sanitizer import ResponseSanitizer

__all__ = [
    "ClosedTrade",
    "OpenPosition",
    "ValidationContext",
    "ValidationResult",
    "ViolationCategory",
    "ResponseValidator",
    "validate_trading_response",
    "ValidationContextBuilder",
    "build_validation_context",
    "ResponseSanitizer",
]
