from core.config.settings import Settings
from core.logging import (
    configure_logging,
    get_audit_logger_safe,
    get_error_logger_safe,
    get_logger,
    get_statistics,
    reset_logging,
)


def test_logging_channels_write_files(tmp_path, monkeypatch):
    # Use a temporary logs directory to avoid polluting repo logs
    logs_dir = tmp_path / "logs"
    monkeypatch.setenv("LOGGING__FILE_ENABLED", "true")
    monkeypatch.setenv("LOGGING__MULTI_CHANNEL_ENABLED", "true")
    monkeypatch.setenv("LOGGING__CONSOLE_ENABLED", "false")
    monkeypatch.setenv("LOGGING__LOGS_DIR", str(logs_dir))
    monkeypatch.setenv("ENVIRONMENT", "testing")

    settings = Settings()
    configure_logging(settings)
    try:
        get_logger("smoke_app", component="response_validator").info("application smoke message")
        get_audit_logger_safe("smoke_audit").warning("audit smoke message", response_text="secret words")
        get_error_logger_safe("smoke_error").error("error smoke message")

        paths = {
            "application": logs_dir / "application.log",
            "audit": logs_dir / "audit.log",
            "error": logs_dir / "error.log",
        }
        for p in paths.values():
            assert p.exists(), f"expected log file not found: {p}"
            assert p.stat().st_size > 0, f"expected log file to have content: {p}"

        audit = paths["audit"].read_text(encoding="utf-8")
        assert "audit smoke message" in audit
        assert "application smoke message" not in audit
        # response bodies are redacted
        assert "secret words" not in audit
        assert "[REDACTED]" in audit

        stats = get_statistics()
        assert stats["file_logging_enabled"] is True
        assert stats["channel_handlers"]["audit"]["attached"] is True
    finally:
        reset_logging()


def test_statistics_when_unconfigured():
    assert "error" in get_statistics()
