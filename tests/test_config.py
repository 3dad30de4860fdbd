"""Tests for environment-driven settings."""

from apr_service.config import AppSettings, ChainSettings, ScheduleSettings


def test_defaults() -> None:
    settings = ScheduleSettings()
    assert settings.collection_cron == "0 0 * * *"
    assert settings.retention_cron == "0 0 * * 0"
    assert settings.retention_days == 365
    assert settings.enabled is True


def test_prefixed_env(monkeypatch) -> None:
    monkeypatch.setenv("CHAIN_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("CHAIN_TIMEOUT_SECONDS", "5")

    settings = ChainSettings()

    assert settings.rpc_url == "https://rpc.example"
    assert settings.timeout_seconds == 5.0


def test_nested_env_on_root(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("API__PORT", "8080")
    monkeypatch.setenv("SCHEDULE__ENABLED", "false")

    settings = AppSettings()

    assert settings.api.port == 8080
    assert settings.schedule.enabled is False
