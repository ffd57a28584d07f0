import base64
import json
import pytest

from config import settings
from core.auth import create_session, login, session_user, validate_credentials, validate_session
from models.auth import LoginCredentials, User

ADMIN = User(id="1", username="admin")


def test_login_trims_whitespace():
    user = login(LoginCredentials(username="  admin ", password="admin123\n"))
    assert user == ADMIN


@pytest.mark.parametrize("username,password", [
    ("admin", "admin1234"),
    ("administrator", "admin123"),
    ("ädmin", "admin123"),
])
def test_login_rejects(username, password):
    assert login(LoginCredentials(username=username, password=password)) is None
    assert validate_credentials(username, password) is False


def test_session_round_trip():
    token = create_session(ADMIN, now_ms=1_000)
    session = validate_session(token, now_ms=2_000)
    assert session.user_id == "1"
    assert session.username == "admin"
    assert session.created_at == 1_000
    assert session.expires_at == 1_000 + settings.SESSION_MAX_AGE_SECONDS * 1000
    assert session_user(session) == ADMIN


def test_session_payload_is_camel_case():
    payload = create_session(ADMIN, now_ms=0).split(".")[0]
    decoded = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    assert set(decoded) == {"userId", "username", "createdAt", "expiresAt"}


def test_session_expired():
    token = create_session(ADMIN, now_ms=0)
    expires = settings.SESSION_MAX_AGE_SECONDS * 1000
    assert validate_session(token, now_ms=expires) is not None
    assert validate_session(token, now_ms=expires + 1) is None


def test_session_tampered_payload():
    token = create_session(ADMIN)
    payload, signature = token.split(".")
    forged = payload[:-2] + ("AA" if payload[-2:] != "AA" else "BB")
    assert validate_session(f"{forged}.{signature}") is None


def test_session_signed_with_other_secret(monkeypatch):
    token = create_session(ADMIN)
    monkeypatch.setattr(settings, "SESSION_SECRET", "rotated")
    assert validate_session(token) is None


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "é.é", "..."])
def test_session_garbage(token):
    assert validate_session(token) is None
