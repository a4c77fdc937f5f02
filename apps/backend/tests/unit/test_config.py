"""
Name: Settings Tests

Responsibilities:
  - Production refuses default or short secrets
  - Environment helpers and CORS origin parsing
"""

import pytest
from app.crosscutting.config import Settings
from pydantic import ValidationError

pytestmark = pytest.mark.unit

_STRONG_SALT = "s" * 24
_STRONG_SECRET = "j" * 40


def _production(**overrides) -> Settings:
    values = {
        "app_env": "production",
        "pin_salt": _STRONG_SALT,
        "jwt_secret": _STRONG_SECRET,
        "jwt_cookie_secure": True,
        "database_url": "postgresql://firmas@db/firmas",
    }
    values.update(overrides)
    return Settings(**values)


def test_production_accepts_strong_configuration():
    settings = _production()
    assert settings.is_production()
    assert not settings.is_test()


@pytest.mark.parametrize(
    "overrides,fragment",
    [
        ({"pin_salt": "dev-pin-salt"}, "PIN_SALT"),
        ({"pin_salt": "corto"}, "PIN_SALT"),
        ({"jwt_secret": "dev-secret"}, "JWT_SECRET"),
        ({"jwt_secret": "x" * 10}, "JWT_SECRET"),
        ({"jwt_cookie_secure": False}, "JWT_COOKIE_SECURE"),
        ({"database_url": ""}, "DATABASE_URL"),
    ],
)
def test_production_rejects_weak_configuration(overrides, fragment):
    with pytest.raises(ValidationError) as exc_info:
        _production(**overrides)
    assert fragment in str(exc_info.value)


def test_development_allows_defaults():
    settings = Settings(app_env="development", pin_salt="dev-pin-salt")
    assert not settings.is_production()


@pytest.mark.parametrize("env", ["test", "testing", "CI"])
def test_is_test(env):
    assert Settings(app_env=env).is_test()


def test_allowed_origins_list_strips_blanks():
    settings = Settings(allowed_origins=" https://a.cl , ,https://b.cl")
    assert settings.get_allowed_origins_list() == ["https://a.cl", "https://b.cl"]


def test_offline_batch_limit_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(offline_batch_max_items=0)


def test_log_level_is_uppercased():
    assert Settings(log_level="debug").log_level == "DEBUG"
