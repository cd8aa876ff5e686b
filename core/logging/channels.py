"""
Logging channel definitions and configuration for the AYN response guard.
Provides multi-channel logging with dedicated files for different concerns.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pathlib import Path
from dataclasses import dataclass


class LogChannel(str, Enum):
    """Logging channels for different components."""

    APPLICATION = "application"  # General application logs
    AUDIT = "audit"              # Rejected responses and their violations
    MONITORING = "monitoring"    # Metrics and health
    ERROR = "error"              # Error logs


@dataclass
class ChannelConfig:
    """Configuration for a logging channel."""

    name: str
    filename: str
    level: str = "INFO"
    backup_count: int = 5
    retention_days: Optional[int] = None

    def get_file_path(self, logs_dir: str) -> Path:
        """Get the full file path for this channel."""
        return Path(logs_dir) / self.filename


CHANNEL_CONFIGS: Dict[LogChannel, ChannelConfig] = {
    LogChannel.APPLICATION: ChannelConfig(
        name="application",
        filename="application.log",
        level="INFO",
        backup_count=10,
        retention_days=30
    ),
    LogChannel.AUDIT: ChannelConfig(
        name="audit",
        filename="audit.log",
        level="INFO",
        backup_count=50,
        retention_days=365  # Keep rejected-response audit trail for a year
    ),
    LogChannel.MONITORING: ChannelConfig(
        name="monitoring",
        filename="monitoring.log",
        level="INFO",
        backup_count=10,
        retention_days=30
    ),
    LogChannel.ERROR: ChannelConfig(
        name="error",
        filename="error.log",
        level="ERROR",
        backup_count=20,
        retention_days=90
    ),
}


def get_channel_for_component(component: str) -> LogChannel:
    """Get the appropriate logging channel for a component."""
    component_mapping = {
        "response_validator": LogChannel.APPLICATION,
        "context_builder": LogChannel.APPLICATION,
        "cli": LogChannel.APPLICATION,
        "metrics": LogChannel.MONITORING,
        "audit": LogChannel.AUDIT,
    }

    return component_mapping.get(component, LogChannel.APPLICATION)


def get_channel_config(channel: LogChannel) -> ChannelConfig:
    """Get configuration for a specific channel."""
    return CHANNEL_CONFIGS[channel]


def create_log_directory_structure(logs_dir: str) -> None:
    """Create the logs directory."""
    Path(logs_dir).mkdir(parents=True, exist_ok=True)


def get_channel_statistics() -> Dict[str, Any]:
    """Get statistics about all logging channels."""
    stats = {
        "total_channels": len(LogChannel),
        "channels": {}
    }

    for channel in LogChannel:
        config = get_channel_config(channel)
        stats["channels"][channel.value] = {
            "filename": config.filename,
            "level": config.level,
            "backup_count": config.backup_count,
            "retention_days": config.retention_days,
        }

    return stats
