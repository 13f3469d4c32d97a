import pytest
from pydantic import ValidationError

from app.config import Settings
from app.users.schemas import CreateUserRequest, LoginRequest, UpdateUserRequest


def test_database_url_assembled_from_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    cfg = Settings(
        db_host="db.internal",
        db_port=6543,
        db_user="svc",
        db_password="p@ss/word",
        db_name="users",
        database_url="",
    )
    url = cfg.sqlalchemy_url
    assert url.startswith("postgresql+asyncpg://svc:")
    assert url.endswith("@db.internal:6543/users")
    # Reserved characters in the password are escaped.
    assert "p@ss/word" not in url


def test_database_url_override_wins():
    cfg = Settings(database_url="sqlite+aiosqlite:///./local.db", db_host="ignored")
    assert cfg.sqlalchemy_url == "sqlite+aiosqlite:///./local.db"


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("APP_PORT", "9000")
    monkeypatch.setenv("BCRYPT_ROUNDS", "10")
    cfg = Settings()
    assert cfg.is_production
    assert cfg.app_port == 9000
    assert cfg.bcrypt_rounds == 10


def test_update_request_treats_blank_as_unchanged():
    req = UpdateUserRequest(name="", email="")
    assert req.name == ""
    assert req.email == ""
    assert UpdateUserRequest().name is None


@pytest.mark.parametrize("payload", [{"name": "J"}, {"email": "broken"}, {"name": "x" * 101}])
def test_update_request_validates_non_blank_values(payload):
    with pytest.raises(ValidationError):
        UpdateUserRequest(**payload)


def test_create_request_rejects_passwords_bcrypt_would_truncate():
    with pytest.raises(ValidationError):
        CreateUserRequest(name="Jo Doe", email="jo@x.com", password="é" * 37)
    ok = CreateUserRequest(name="Jo Doe", email="jo@x.com", password="é" * 36)
    assert len(ok.password.encode()) == 72


def test_emails_are_lowercased_on_the_way_in():
    assert CreateUserRequest(name="Jo Doe", email="Jo@X.Com", password="secret1").email == "jo@x.com"
    assert UpdateUserRequest(email="Jo.Smith@X.com").email == "jo.smith@x.com"
    assert LoginRequest(email="JO@X.COM", password="secret1").email == "jo@x.com"
