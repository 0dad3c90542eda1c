from __future__ import annotations

from core.config import AppSettings, _parse_env_lines, write_user_env_vars


def test_defaults_match_transport_policy() -> None:
    settings = AppSettings(_env_file=None)

    assert settings.http_timeout_seconds == 45.0
    assert settings.http_max_retries == 2
    assert settings.retry_backoff_seconds == 1.5
    assert settings.login_redirect_delay_seconds == 2.0
    assert settings.dev_mode_enabled is False


def test_env_prefix_is_applied(monkeypatch) -> None:
    monkeypatch.setenv("CASEWHR_API_BASE_URL", "https://api.example/")
    monkeypatch.setenv("CASEWHR_PUBLIC_ANON_KEY", "anon")

    settings = AppSettings(_env_file=None)

    assert settings.is_configured
    assert settings.endpoint_url("/projects") == "https://api.example/projects"


def test_write_user_env_vars_merges_existing(tmp_path) -> None:
    env_path = tmp_path / "casewhr" / ".env"
    write_user_env_vars({"CASEWHR_API_BASE_URL": "https://a"}, env_path=env_path)
    write_user_env_vars({"CASEWHR_PUBLIC_ANON_KEY": "k"}, env_path=env_path)

    values = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    assert values == {"CASEWHR_API_BASE_URL": "https://a", "CASEWHR_PUBLIC_ANON_KEY": "k"}
