from prometheus_client import CollectorRegistry, generate_latest

from core.config.settings import MonitoringSettings, Settings
from core.monitoring.prometheus_metrics import ValidationMetricsCollector
from services.response_validator import ResponseValidator


def test_validator_records_outcomes(validator, registry, zero_trade_context):
    validator.validate("Waiting for a setup.", zero_trade_context)
    validator.validate("I shorted BTC at $45000", zero_trade_context)

    assert registry.get_sample_value("response_validations_total", {"outcome": "approved"}) == 1.0
    assert registry.get_sample_value("response_validations_total", {"outcome": "rejected"}) == 1.0
    assert registry.get_sample_value("response_violations_total", {"category": "dollar_amount"}) == 1.0
    assert registry.get_sample_value("response_violations_total", {"category": "ticker"}) == 1.0
    assert registry.get_sample_value("response_validation_duration_seconds_count") == 2.0


def test_metrics_can_be_disabled(registry, zero_trade_context):
    settings = Settings(monitoring=MonitoringSettings(metrics_enabled=False))
    validator = ResponseValidator(settings, registry=registry)
    assert validator.metrics is None
    assert validator.validate("Waiting.", zero_trade_context).is_valid is True
    assert registry.get_sample_value("response_validations_total", {"outcome": "approved"}) is None


def test_collector_accepts_bucket_overrides():
    reg = CollectorRegistry()
    settings = Settings(monitoring=MonitoringSettings(validation_duration_buckets=[0.001, 0.01]))
    collector = ValidationMetricsCollector(registry=reg, settings=settings)
    collector.record_validation(approved=False, categories=["trade_activity"], duration_seconds=0.002)

    out = generate_latest(reg).decode()
    assert 'response_validation_duration_seconds_bucket{le="0.01"} 1.0' in out
    assert 'response_violations_total{category="trade_activity"} 1.0' in out


def test_collectors_use_private_registries():
    # Two collectors must not clash on metric names
    first = ValidationMetricsCollector()
    second = ValidationMetricsCollector()
    assert first.registry is not second.registry
