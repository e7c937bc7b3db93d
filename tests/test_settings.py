from todo_users_api.settings import get_settings

_ENV_VARS = [
    "DATABASE_URL",
    "DB_POOL_SIZE",
    "DB_MAX_OVERFLOW",
    "DB_ECHO",
    "BCRYPT_ROUNDS",
    "CORS_ALLOW_ORIGINS",
    "ENABLE_ROLE_AUTH",
    "ADMIN_ROLE",
    "RATE_LIMIT_MAX_REQUESTS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "LOG_LEVEL",
    "LOG_FORMAT",
]


def _clear(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    s = get_settings()
    assert s.database_url == "sqlite:///./data/app.db"
    assert s.bcrypt_rounds == 10
    assert s.cors_allow_origins == ["*"]
    assert s.enable_role_auth is False
    assert s.admin_role == "admin"
    assert s.rate_limit_max_requests == 100
    assert s.rate_limit_window_seconds == 60
    assert s.log_level == "INFO"
    assert s.log_format == "text"


def test_overrides(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")
    monkeypatch.setenv("BCRYPT_ROUNDS", "12")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("ENABLE_ROLE_AUTH", "yes")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "0")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    s = get_settings()
    assert s.database_url == "postgresql://db/app"
    assert s.bcrypt_rounds == 12
    assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
    assert s.enable_role_auth is True
    assert s.rate_limit_max_requests == 0
    assert s.log_format == "json"


def test_invalid_values_fall_back(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("BCRYPT_ROUNDS", "two")
    monkeypatch.setenv("DB_POOL_SIZE", "0")
    monkeypatch.setenv("LOG_FORMAT", "xml")
    s = get_settings()
    assert s.bcrypt_rounds == 10
    assert s.db_pool_size == 5
    assert s.log_format == "text"
