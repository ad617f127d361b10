from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlmodel import select

from pos_backend.auth import (
    ALGORITHM, create_access_token, decode_access_token, hash_password, verify_password,
)
from pos_backend.config import DEV_JWT_SECRET, Settings, load_settings
from pos_backend.errors import AuthError
from pos_backend.models import User
from pos_backend.seed import seed_admin


def test_load_settings_defaults(monkeypatch):
    for name in ("POS_DATABASE_URL", "POS_JWT_SECRET", "POS_JWT_TTL_MINUTES", "POS_LOG_LEVEL", "POS_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.database_url.startswith("sqlite:///")
    assert settings.jwt_secret == DEV_JWT_SECRET
    assert settings.jwt_ttl_minutes == 60
    assert settings.cors_origins == ["*"]


def test_load_settings_from_env(monkeypatch):
    monkeypatch.setenv("POS_DATABASE_URL", "sqlite:///other.db")
    monkeypatch.setenv("POS_JWT_SECRET", "s")
    monkeypatch.setenv("POS_JWT_TTL_MINUTES", "5")
    monkeypatch.setenv("POS_LOG_LEVEL", "debug")
    monkeypatch.setenv("POS_CORS_ORIGINS", "http://a.test, http://b.test,")

    settings = load_settings()

    assert settings.database_url == "sqlite:///other.db"
    assert settings.jwt_ttl_minutes == 5
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_load_settings_reads_env_file(monkeypatch, tmp_path):
    # register each name so the values the file loads are removed after the test
    for name in ("POS_JWT_SECRET", "POS_JWT_TTL_MINUTES", "POS_LOG_LEVEL"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text("POS_JWT_SECRET=from-file\nPOS_JWT_TTL_MINUTES=15\nPOS_LOG_LEVEL=warning\n")

    settings = load_settings(env_file)

    assert settings.jwt_secret == "from-file"
    assert settings.jwt_ttl_minutes == 15
    assert settings.log_level == "WARNING"


def test_real_environment_wins_over_env_file(monkeypatch, tmp_path):
    monkeypatch.setenv("POS_JWT_SECRET", "from-env")
    env_file = tmp_path / ".env"
    env_file.write_text("POS_JWT_SECRET=from-file\n")

    assert load_settings(env_file).jwt_secret == "from-env"


def test_load_settings_rejects_bad_ttl(monkeypatch):
    monkeypatch.setenv("POS_JWT_TTL_MINUTES", "soon")

    with pytest.raises(ValueError):
        load_settings()


def test_password_hashing():
    hashed = hash_password("hunter2")

    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)
    assert not verify_password("hunter2", "not-a-bcrypt-hash")


def test_token_round_trip():
    settings = Settings(jwt_secret="k")

    user = decode_access_token(settings, create_access_token(settings, user_id=7, role="staff"))

    assert (user.id, user.role) == (7, "staff")


def test_expired_token():
    settings = Settings(jwt_secret="k")
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode({"sub": "1", "role": "admin", "iat": past, "exp": past + timedelta(minutes=1)},
                       "k", algorithm=ALGORITHM)

    with pytest.raises(AuthError, match="Token expired"):
        decode_access_token(settings, token)


def test_token_signed_with_other_secret():
    token = create_access_token(Settings(jwt_secret="one"), user_id=1, role="admin")

    with pytest.raises(AuthError, match="Invalid token"):
        decode_access_token(Settings(jwt_secret="two"), token)


def test_seed_admin_replaces_users(session):
    session.add(User(email="old@example.com", password_hash=hash_password("x"), role="staff"))
    session.commit()

    user = seed_admin(session, " Boss@Example.com ", "pw")

    users = session.exec(select(User)).all()
    assert [u.email for u in users] == ["boss@example.com"]
    assert user.role == "admin"
    assert verify_password("pw", user.password_hash)
