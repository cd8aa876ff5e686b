# Enhanced structured logging with multi-channel support
from typing import Optional, Dict, Any
import structlog

from core.config.settings import Settings
from .channels import LogChannel
from .enhanced_logging import (
    configure_enhanced_logging,
    reset_enhanced_logging,
    get_enhanced_logger,
    get_channel_logger,
    get_logging_statistics,
    get_audit_logger,
    get_monitoring_logger,
    get_error_logger,
)


def configure_logging(settings: Settings) -> None:
    """Configure the logging system once per process."""
    configure_enhanced_logging(settings)


def reset_logging() -> None:
    """Undo configure_logging (used by tests and the CLI between runs)."""
    reset_enhanced_logging()


def get_logger(name: str, component: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return get_enhanced_logger(name, component)


def get_statistics() -> Dict[str, Any]:
    """Get logging system statistics."""
    return get_logging_statistics()


def get_audit_logger_safe(name: str) -> structlog.BoundLogger:
    """Get an audit logger with safe fallback."""
    try:
        return get_audit_logger(name)
    except Exception:
        return get_enhanced_logger(name, "audit")


def get_monitoring_logger_safe(name: str) -> structlog.BoundLogger:
    """Get a monitoring logger with safe fallback."""
    try:
        return get_monitoring_logger(name)
    except Exception:
        return get_enhanced_logger(name, "metrics")


def get_error_logger_safe(name: str) -> structlog.BoundLogger:
    """Get an error logger with safe fallback."""
    try:
        return get_error_logger(name)
    except Exception:
        return get_enhanced_logger(name)


__all__ = [
    "LogChannel",
    "configure_logging",
    "reset_logging",
    "get_logger",
    "get_channel_logger",
    "get_statistics",
    "get_audit_logger_safe",
    "get_monitoring_logger_safe",
    "get_error_logger_safe",
]
