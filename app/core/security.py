import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from app.core.config import settings

ph = PasswordHasher()  # Argon2id by default


def new_link_secret() -> str:
    return secrets.token_urlsafe(32)


def hash_link_secret(secret: str) -> str:
    return ph.hash(secret)


def verify_link_secret(secret: str, secret_hash: str) -> bool:
    try:
        return ph.verify(secret_hash, secret)
    except (VerificationError, InvalidHashError):
        return False


def create_session_token(subject: str, email: str, session_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    payload = {"sub": subject, "email": email, "sid": session_id, "type": "session", "exp": expire}
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=settings.SESSION_ALG)


def decode_session_token(token: str) -> dict:
    payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALG])
    if payload.get("type") != "session" or not payload.get("sub") or not payload.get("sid"):
        raise ValueError("Not a session token")
    return payload
