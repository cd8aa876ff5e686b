"""
Monitoring components for the AYN response guard
"""

from .prometheus_metrics import ValidationMetricsCollector

__all__ = ["ValidationMetricsCollector"]
