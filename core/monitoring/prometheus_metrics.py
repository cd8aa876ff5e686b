"""
Prometheus metrics for response validation outcomes
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Iterable, Optional, Any

from core.logging import get_monitoring_logger_safe


class ValidationMetricsCollector:
    """Counters and latency histogram for the response validator"""

    def __init__(self, registry: Optional[CollectorRegistry] = None, settings: Optional[Any] = None):
        # Private registry by default so several validators never collide on names
        self.registry = registry or CollectorRegistry()
        self.logger = get_monitoring_logger_safe("validation_metrics")
        buckets = None
        if settings is not None and hasattr(settings, 'monitoring'):
            buckets = settings.monitoring.validation_duration_buckets

        self.validations = Counter(
            'response_validations_total',
            'Responses validated, by outcome (approved|rejected)',
            ['outcome'],
            registry=self.registry
        )

        self.violations = Counter(
            'response_violations_total',
            'Violations recorded, by category',
            ['category'],
            registry=self.registry
        )

        self.validation_duration = Histogram(
            'response_validation_duration_seconds',
            'Time spent validating a single response',
            buckets=buckets or [
                0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1
            ],
            registry=self.registry
        )

    def record_validation(self, approved: bool, categories: Iterable[str], duration_seconds: float) -> None:
        """Record one validation call"""
        outcome = "approved" if approved else "rejected"
        self.validations.labels(outcome=outcome).inc()
        for category in categories:
            self.violations.labels(category=category).inc()
        self.validation_duration.observe(duration_seconds)
        self.logger.debug("Validation recorded", outcome=outcome, duration_seconds=round(duration_seconds, 6))
