# Structured exception hierarchy for the AYN response guard

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone


class AynGuardException(Exception):
    """Base exception for all response guard specific errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.correlation_id = correlation_id
        self.timestamp = datetime.now(timezone.utc)


class PermanentError(AynGuardException):
    """Errors caused by bad input or configuration - retrying cannot help"""
    pass


# Ground-truth context errors
class ValidationContextError(PermanentError):
    """The account snapshot is structurally incomplete or inconsistent.

    Raised before any response is inspected, so a response is never approved
    against a partial context.
    """

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.missing_fields = missing_fields or []


class ContextSourceError(PermanentError):
    """A context document could not be read or decoded"""

    def __init__(self, message: str, source: str, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source


# Configuration Errors
class ConfigurationError(PermanentError):
    """Configuration validation errors"""

    def __init__(self, message: str, config_field: str, config_value: Any,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.config_field = config_field
        self.config_value = config_value


def create_error_context(error: Exception, operation: str,
                         additional_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create structured error context for logging

    Args:
        error: The exception that occurred
        operation: The operation that failed
        additional_context: Additional context information

    Returns:
        Structured error context dictionary
    """
    context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "operation": operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if isinstance(error, AynGuardException):
        if error.correlation_id:
            context["correlation_id"] = error.correlation_id
        if error.details:
            context["error_details"] = error.details

        if isinstance(error, ValidationContextError) and error.missing_fields:
            context["missing_fields"] = error.missing_fields

        if isinstance(error, ContextSourceError):
            context["source"] = error.source

        if isinstance(error, ConfigurationError):
            context["config_field"] = error.config_field

    if additional_context:
        context.update(additional_context)

    return context
