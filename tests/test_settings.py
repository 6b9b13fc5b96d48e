from lark_assist.config.settings import Settings, settings_public_summary

_ENV_KEYS = (
    "LARK_API_URL",
    "LARK_CONNECTIVITY_RETRIES",
    "LARK_CACHE_TTL_SECONDS",
    "LARK_CHAINING_ENABLED",
    "APP_ENV",
)


def _clear_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch):
    _clear_env(monkeypatch)
    s = Settings()
    assert s.api_url == "http://localhost:3000/api"
    assert s.connectivity_retries == 2
    assert s.cache_ttl_seconds == 1800
    assert s.cache_max_entries == 50
    assert s.chaining_enabled is True


def test_env_overrides_and_trailing_slash(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("LARK_API_URL", "https://lark.example.org/api/ ")
    monkeypatch.setenv("LARK_CHAINING_ENABLED", "false")
    monkeypatch.setenv("APP_ENV", "PROD")
    s = Settings()
    assert s.api_url == "https://lark.example.org/api"
    assert s.chaining_enabled is False
    assert s.app_env == "prod"


def test_negative_values_clamped(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("LARK_CONNECTIVITY_RETRIES", "-3")
    monkeypatch.setenv("LARK_CACHE_TTL_SECONDS", "-10")
    s = Settings()
    assert s.connectivity_retries == 0
    assert s.cache_ttl_seconds == 0


def test_public_summary(monkeypatch):
    _clear_env(monkeypatch)
    summary = settings_public_summary(Settings())
    assert summary["api_url"] == "http://localhost:3000/api"
    assert summary["cache"] == {"ttl_seconds": 1800, "max_entries": 50}
