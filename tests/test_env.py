import pytest

from rebound import Dispatcher, RetryConfig, load_retry_config_from_env


def test_defaults_when_unset(monkeypatch):
    for name in ("MAX_ATTEMPTS", "BUSY_DELAY", "TIMEOUT", "RETRY_AFTER_CAP"):
        monkeypatch.delenv(f"REBOUND_{name}", raising=False)
    assert load_retry_config_from_env() == RetryConfig()


def test_env_values(monkeypatch):
    monkeypatch.setenv("REBOUND_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("REBOUND_BUSY_DELAY", "1.5")
    monkeypatch.setenv("REBOUND_TIMEOUT", "10")
    monkeypatch.setenv("REBOUND_RETRY_AFTER_CAP", "60")
    cfg = load_retry_config_from_env()
    assert cfg == RetryConfig(max_attempts=3, busy_delay=1.5, timeout=10.0, retry_after_cap=60.0)


def test_env_file_and_precedence(monkeypatch, tmp_path):
    envp = tmp_path / ".env"
    envp.write_text('# retry settings\nAPI_MAX_ATTEMPTS=7\nAPI_TIMEOUT="12"\n')
    monkeypatch.setenv("API_MAX_ATTEMPTS", "2")
    monkeypatch.delenv("API_TIMEOUT", raising=False)
    cfg = load_retry_config_from_env(prefix="API_", env_path=str(envp))
    # environment overrides the file; file fills the gaps
    assert cfg.max_attempts == 2  # noqa: PLR2004
    assert cfg.timeout == 12.0  # noqa: PLR2004


def test_missing_env_file_ignored(tmp_path):
    cfg = load_retry_config_from_env(prefix="NOPE_", env_path=str(tmp_path / "missing.env"))
    assert cfg == RetryConfig()


def test_malformed_value_raises(monkeypatch):
    monkeypatch.setenv("REBOUND_MAX_ATTEMPTS", "lots")
    with pytest.raises(ValueError):
        load_retry_config_from_env()


def test_dispatcher_from_env(monkeypatch):
    monkeypatch.setenv("BOT_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("BOT_BUSY_DELAY", "0.5")
    d = Dispatcher.from_env(prefix="BOT_")
    try:
        assert d.retry_config.max_attempts == 2  # noqa: PLR2004
        assert d.retry_config.busy_delay == 0.5  # noqa: PLR2004
    finally:
        d.close()
