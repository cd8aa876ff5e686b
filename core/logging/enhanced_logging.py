# Enhanced structured logging with multi-channel support
import sys
import logging
import logging.handlers
from typing import Dict, Optional, Any
import structlog

from core.config.settings import Settings
from .channels import (
    LogChannel,
    get_channel_for_component,
    get_channel_config,
    create_log_directory_structure,
    get_channel_statistics
)

# Global logger manager instance
_logger_manager: Optional['EnhancedLoggerManager'] = None


def _record_channel(record: logging.LogRecord) -> Optional[str]:
    """Read the structlog `channel` key from a wrapped record, if any."""
    # wrap_for_formatter stores the event dict as the record message
    if isinstance(record.msg, dict):
        channel = record.msg.get("channel")
        return str(channel) if channel is not None else None
    return getattr(record, "channel", None)


class ChannelFilter(logging.Filter):
    """Filter that routes records to a handler only if they match a channel."""

    def __init__(self, expected_channel: str):
        super().__init__()
        self.expected_channel = expected_channel

    def filter(self, record: logging.LogRecord) -> bool:
        return _record_channel(record) == self.expected_channel


class EnhancedLoggerManager:
    """Enhanced logging manager with multi-channel support and configurable formats."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.channel_handlers: Dict[LogChannel, logging.Handler] = {}
        self.configured_loggers: Dict[str, structlog.BoundLogger] = {}
        self.console_handler: Optional[logging.Handler] = None

        self._setup_logging()

    def _setup_logging(self) -> None:
        """Setup enhanced logging with configurable formats."""
        if self.settings.logging.file_enabled:
            create_log_directory_structure(self.settings.logs_dir)

        self._setup_console_logging()

        if self.settings.logging.file_enabled and self.settings.logging.multi_channel_enabled:
            self._setup_multi_channel_logging()

        self._configure_structlog()

    def _foreign_pre_chain(self) -> list:
        return [
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
        ]

    def _setup_console_logging(self) -> None:
        """Setup console logging with configurable format."""
        root_logger = logging.getLogger()
        level = getattr(logging, self.settings.logging.level.upper())
        root_logger.setLevel(level)

        if not self.settings.logging.console_enabled:
            return

        stream = sys.stderr if self.settings.logging.console_stream == "stderr" else sys.stdout

        # Reuse an existing handler on the same stream instead of stacking a second one
        for handler in root_logger.handlers:
            if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is stream:
                console_handler = handler
                break
        else:
            console_handler = logging.StreamHandler(stream)
            root_logger.addHandler(console_handler)
            self.console_handler = console_handler

        console_handler.setLevel(level)
        console_processor = (
            structlog.processors.JSONRenderer()
            if self.settings.logging.console_json_format
            else structlog.dev.ConsoleRenderer()
        )
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=console_processor,
                foreign_pre_chain=self._foreign_pre_chain(),
            )
        )

    def _setup_multi_channel_logging(self) -> None:
        """Setup multi-channel logging with dedicated files."""
        for channel in LogChannel:
            config = get_channel_config(channel)
            self.channel_handlers[channel] = self._create_channel_handler(channel, config)

        # ERROR channel captures all ERROR+ records from the root logger
        error_handler = self.channel_handlers[LogChannel.ERROR]
        root_logger = logging.getLogger()
        if error_handler not in root_logger.handlers:
            root_logger.addHandler(error_handler)

    def _create_channel_handler(self, channel: LogChannel, config) -> logging.Handler:
        """Create a rotating file handler for a specific channel."""
        log_file = config.get_file_path(self.settings.logs_dir)

        handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=self._parse_size(self.settings.logging.file_max_size),
            backupCount=config.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(getattr(logging, config.level))

        channel_processor = (
            structlog.processors.JSONRenderer()
            if self.settings.logging.json_format
            else structlog.processors.KeyValueRenderer(key_order=["event", "level", "timestamp"])
        )
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=channel_processor,
                foreign_pre_chain=self._foreign_pre_chain(),
            )
        )
        # The error handler sits on root and keeps every ERROR+ record
        if channel != LogChannel.ERROR:
            handler.addFilter(ChannelFilter(expected_channel=channel.value))

        return handler

    def _parse_size(self, size_str: str) -> int:
        """Parse size string (e.g., '100MB') to bytes."""
        size_str = size_str.upper()

        if size_str.endswith("B"):
            size_str = size_str[:-1]

        multipliers = {
            "K": 1024,
            "M": 1024 * 1024,
            "G": 1024 * 1024 * 1024,
        }

        for suffix, multiplier in multipliers.items():
            if size_str.endswith(suffix):
                return int(float(size_str[:-1]) * multiplier)

        return int(size_str)

    def _configure_structlog(self) -> None:
        """Configure structlog with appropriate processors."""
        settings = self.settings

        def add_standard_context(logger, name, event_dict):
            """Bind standard context fields once from settings."""
            event_dict.setdefault('env', settings.environment.value)
            event_dict.setdefault('service', settings.app_name)
            event_dict.setdefault('version', settings.version)
            return event_dict

        keys_to_redact = {key.lower() for key in settings.logging.redact_keys}

        def redact_sensitive(logger, name, event_dict):
            """Redact sensitive fields from event dict recursively."""

            def _redact(obj):
                if isinstance(obj, dict):
                    out = {}
                    for k, v in obj.items():
                        if isinstance(k, str) and k.lower() in keys_to_redact:
                            out[k] = '[REDACTED]'
                        else:
                            out[k] = _redact(v)
                    return out
                if isinstance(obj, list):
                    return [_redact(v) for v in obj]
                return obj

            return _redact(event_dict)

        processors = [
            structlog.contextvars.merge_contextvars,
            add_standard_context,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_sensitive,
            # Defer final rendering to handlers via ProcessorFormatter
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ]

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _attach_channel_handler(self, name: str, channel: LogChannel) -> None:
        handler = self.channel_handlers.get(channel)
        # ERROR already reaches root through propagation
        if handler is None or channel == LogChannel.ERROR:
            return
        stdlib_logger = logging.getLogger(name)
        if handler not in stdlib_logger.handlers:
            stdlib_logger.addHandler(handler)

    def get_logger(self, name: str, component: Optional[str] = None) -> structlog.BoundLogger:
        """Get a structured logger for a component."""
        cache_key = f"{name}:{component}" if component else name
        if cache_key in self.configured_loggers:
            return self.configured_loggers[cache_key]

        logger = structlog.get_logger(name)
        if component:
            channel = get_channel_for_component(component)
            logger = logger.bind(component=component, channel=channel.value)
            self._attach_channel_handler(name, channel)

        self.configured_loggers[cache_key] = logger
        return logger

    def get_channel_logger(self, name: str, channel: LogChannel) -> structlog.BoundLogger:
        """Get a logger for a specific channel."""
        logger = structlog.get_logger(name).bind(channel=channel.value)
        self._attach_channel_handler(name, channel)
        return logger

    def get_statistics(self) -> Dict[str, Any]:
        """Get logging statistics."""
        stats = {
            "total_loggers": len(self.configured_loggers),
            "multi_channel_enabled": self.settings.logging.multi_channel_enabled,
            "file_logging_enabled": self.settings.logging.file_enabled,
            "console_logging_enabled": self.settings.logging.console_enabled,
            "json_format": self.settings.logging.json_format,
            "console_json_format": self.settings.logging.console_json_format,
            "logs_directory": self.settings.logs_dir,
        }

        if self.settings.logging.multi_channel_enabled:
            stats.update(get_channel_statistics())

        stats["channel_handlers"] = {
            ch.value: {
                "filename": get_channel_config(ch).filename,
                "attached": ch in self.channel_handlers,
            }
            for ch in LogChannel
        }
        return stats


def configure_enhanced_logging(settings: Settings) -> None:
    """Configure enhanced logging system."""
    global _logger_manager

    if _logger_manager is not None:
        return

    _logger_manager = EnhancedLoggerManager(settings)


def reset_enhanced_logging() -> None:
    """Drop channel handlers and forget the manager so logging can be reconfigured."""
    global _logger_manager

    if _logger_manager is None:
        return

    for handler in _logger_manager.channel_handlers.values():
        for lg in [logging.getLogger()] + [
            logging.getLogger(name) for name in list(logging.root.manager.loggerDict)
        ]:
            if handler in lg.handlers:
                lg.removeHandler(handler)
        handler.close()

    if _logger_manager.console_handler is not None:
        logging.getLogger().removeHandler(_logger_manager.console_handler)

    _logger_manager = None
    structlog.reset_defaults()


def get_enhanced_logger(name: str, component: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    if _logger_manager is None:
        # Unconfigured: fall back to structlog defaults
        logger = structlog.get_logger(name)
        if component:
            logger = logger.bind(component=component)
        return logger

    return _logger_manager.get_logger(name, component)


def get_channel_logger(name: str, channel: LogChannel) -> structlog.BoundLogger:
    """Get a logger for a specific channel."""
    if _logger_manager is None:
        return structlog.get_logger(name).bind(channel=channel.value)

    return _logger_manager.get_channel_logger(name, channel)


def get_logging_statistics() -> Dict[str, Any]:
    """Get logging system statistics."""
    if _logger_manager is None:
        return {"error": "Logger manager not initialized"}

    return _logger_manager.get_statistics()


# Convenience functions for specific channels
def get_audit_logger(name: str) -> structlog.BoundLogger:
    """Get an audit logger."""
    return get_channel_logger(name, LogChannel.AUDIT)


def get_monitoring_logger(name: str) -> structlog.BoundLogger:
    """Get a monitoring logger."""
    return get_channel_logger(name, LogChannel.MONITORING)


def get_error_logger(name: str) -> structlog.BoundLogger:
    """Get an error logger."""
    return get_channel_logger(name, LogChannel.ERROR)
