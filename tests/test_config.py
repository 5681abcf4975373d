"""Settings tests — env loading, the production secret guard, codec wiring."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from taskgate.auth import jwt as jwt_module
from taskgate.auth.jwt import get_token_codec
from taskgate.config import Settings

DEFAULT_SECRET = "change-me-in-production"


@pytest.fixture
def fresh_codec():
    """Clear the cached codec before and after, so settings changes show."""
    get_token_codec.cache_clear()
    yield
    get_token_codec.cache_clear()


def test_default_secret_allowed_in_development():
    s = Settings(environment="development", jwt_secret=DEFAULT_SECRET)
    assert s.jwt_secret == DEFAULT_SECRET


@pytest.mark.parametrize("environment", ["production", "staging"])
def test_default_secret_refused_outside_development(environment):
    with pytest.raises(ValidationError, match="TASKGATE_JWT_SECRET"):
        Settings(environment=environment, jwt_secret=DEFAULT_SECRET)


def test_real_secret_accepted_in_production():
    s = Settings(environment="production", jwt_secret="a-long-random-production-secret")
    assert s.environment == "production"


def test_settings_read_from_env(monkeypatch):
    monkeypatch.setenv("TASKGATE_ENVIRONMENT", "production")
    monkeypatch.setenv("TASKGATE_JWT_SECRET", DEFAULT_SECRET)
    with pytest.raises(ValidationError):
        Settings()


def test_bcrypt_rounds_bounds():
    with pytest.raises(ValidationError):
        Settings(bcrypt_rounds=3)
    with pytest.raises(ValidationError):
        Settings(bcrypt_rounds=32)


def test_token_expire_days_flows_into_codec(monkeypatch, fresh_codec):
    monkeypatch.setenv("TASKGATE_TOKEN_EXPIRE_DAYS", "3")
    monkeypatch.setenv("TASKGATE_JWT_SECRET", "codec-wiring-secret")
    monkeypatch.setattr(jwt_module, "settings", Settings())

    codec = get_token_codec()

    assert codec.default_ttl == timedelta(days=3)
    claims = codec.validate(codec.issue("user-1"))
    assert claims.expires_at - claims.issued_at == timedelta(days=3)
