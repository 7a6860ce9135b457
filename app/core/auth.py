from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.core.errors import Unauthorized
from app.core.security import decode_session_token
from app.models.session import UserSession
from app.models.user import User
from app.services.identity import Identity

bearer = HTTPBearer(auto_error=False)


def resolve_identity(token: Optional[str], db: Session) -> Optional[Identity]:
    """Session token -> Identity, or None when absent/invalid/revoked/unknown user."""
    if not token:
        return None
    try:
        payload = decode_session_token(token)
    except Exception:
        return None

    session_row = db.query(UserSession).filter(UserSession.id == payload["sid"]).first()
    if not session_row or session_row.revoked_at is not None or session_row.user_id != payload["sub"]:
        return None

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        return None
    return Identity(id=user.id, email=user.email, session_id=session_row.id)


def get_optional_identity(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> Optional[Identity]:
    # API clients send a bearer token; browsers carry the session cookie
    token = creds.credentials if creds is not None else request.cookies.get(settings.SESSION_COOKIE_NAME)
    return resolve_identity(token, db)


def get_current_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise Unauthorized("Not authenticated")
    return identity
