"""
Single-account authentication and signed session tokens.

Token format: base64url(json(SessionData)) + "." + base64url(HMAC-SHA256(secret, payload)).
The payload is readable by anyone holding the cookie; integrity comes from the MAC.
"""
import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from typing import Optional

from pydantic import ValidationError

from config import settings
from models.auth import LoginCredentials, SessionData, User

logger = logging.getLogger(__name__)

ADMIN_USER_ID = "1"


def validate_credentials(username: str, password: str) -> bool:
    user_ok = hmac.compare_digest(username.strip().encode(), settings.ADMIN_USERNAME.encode())
    pass_ok = hmac.compare_digest(password.strip().encode(), settings.ADMIN_PASSWORD.encode())
    return user_ok and pass_ok


def login(credentials: LoginCredentials) -> Optional[User]:
    """Return the admin user on a credential match, else None."""
    if not validate_credentials(credentials.username, credentials.password):
        logger.info("Rejected login for %r", credentials.username)
        return None
    return User(id=ADMIN_USER_ID, username=credentials.username.strip())


def _now_ms() -> int:
    return int(time.time() * 1000)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _sign(payload: str) -> str:
    mac = hmac.new(settings.SESSION_SECRET.encode("utf-8"), payload.encode("ascii"), hashlib.sha256)
    return _b64encode(mac.digest())


def create_session(user: User, now_ms: Optional[int] = None) -> str:
    now = _now_ms() if now_ms is None else now_ms
    session = SessionData(
        user_id=user.id,
        username=user.username,
        created_at=now,
        expires_at=now + settings.SESSION_MAX_AGE_SECONDS * 1000,
    )
    payload = _b64encode(json.dumps(session.model_dump(by_alias=True), separators=(",", ":")).encode("utf-8"))
    return f"{payload}.{_sign(payload)}"


def validate_session(token: str, now_ms: Optional[int] = None) -> Optional[SessionData]:
    """Decode and verify a token; None if malformed, tampered with or expired."""
    try:
        payload, signature = token.split(".", 1)
        if not hmac.compare_digest(signature.encode(), _sign(payload).encode()):
            return None
        session = SessionData.model_validate(json.loads(_b64decode(payload)))
    except (ValueError, UnicodeError, binascii.Error, ValidationError):
        return None

    now = _now_ms() if now_ms is None else now_ms
    if now > session.expires_at:
        return None
    return session


def session_user(session: SessionData) -> User:
    return User(id=session.user_id, username=session.username)
