import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from datetime import timedelta
from urllib.parse import urlencode

from jose import JWTError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.config import settings
from app.core.errors import StorageFailure, Unauthorized
from app.core.security import (
    create_session_token,
    decode_session_token,
    hash_link_secret,
    new_link_secret,
    verify_link_secret,
)
from app.models.magic_link import MagicLinkRequest
from app.models.session import UserSession
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated actor, passed explicitly into every repository call."""

    id: str
    email: str
    session_id: Optional[str] = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def request_magic_link(db: Session, email: str) -> str:
    """
    Issue a single-use login link for `email`.
    Returns the callback URL to deliver; the code is `<request-id>.<secret>`
    and only an argon2 hash of the secret is stored.
    """
    email = normalize_email(email)

    # drop used or expired links for this address
    db.query(MagicLinkRequest).filter(
        MagicLinkRequest.email == email,
        or_(MagicLinkRequest.consumed_at.isnot(None), MagicLinkRequest.expires_at < utcnow()),
    ).delete(synchronize_session=False)

    secret = new_link_secret()
    req = MagicLinkRequest(
        id=str(uuid.uuid4()),
        email=email,
        code_hash=hash_link_secret(secret),
        expires_at=utcnow() + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES),
    )
    db.add(req)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(f"Failed to issue magic link: {e}")

    logger.info("Magic link issued for %s (request %s)", email, req.id)
    code = f"{req.id}.{secret}"
    return f"{settings.PUBLIC_BASE_URL}/auth/callback?{urlencode({'code': code})}"


def exchange_code_for_session(db: Session, code: str) -> tuple[Identity, str]:
    """Consume a magic-link code. Returns the identity and a signed session token."""
    request_id, _, secret = (code or "").strip().partition(".")
    if not request_id or not secret:
        raise Unauthorized("Invalid login link")

    req = db.query(MagicLinkRequest).filter(MagicLinkRequest.id == request_id).first()
    if not req or not verify_link_secret(secret, req.code_hash):
        raise Unauthorized("Invalid login link")
    if req.consumed_at is not None:
        raise Unauthorized("This login link has already been used")
    if as_utc(req.expires_at) < utcnow():
        raise Unauthorized("This login link has expired")

    req.consumed_at = utcnow()

    user = db.query(User).filter(User.email == req.email).first()
    if not user:
        user = User(id=str(uuid.uuid4()), email=req.email)
        db.add(user)
        db.flush()
        logger.info("Created user %s for %s", user.id, user.email)

    session_row = UserSession(id=str(uuid.uuid4()), user_id=user.id)
    db.add(session_row)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(f"Failed to exchange login code: {e}")

    identity = Identity(id=user.id, email=user.email, session_id=session_row.id)
    return identity, create_session_token(subject=user.id, email=user.email, session_id=session_row.id)


def sign_out(db: Session, token: Optional[str]) -> None:
    """Revoke the session behind `token`. Unknown or invalid tokens are ignored."""
    if not token:
        return
    try:
        payload = decode_session_token(token)
    except (JWTError, ValueError):
        return

    revoke_session(db, payload["sid"])


def revoke_session(db: Session, session_id: Optional[str]) -> None:
    row = db.query(UserSession).filter(UserSession.id == session_id).first()
    if not row or row.revoked_at is not None:
        return

    row.revoked_at = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(f"Failed to sign out: {e}")
    logger.info("Session %s revoked for user %s", row.id, row.user_id)
