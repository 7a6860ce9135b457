from typing import Optional

from fastapi import Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth import resolve_identity
from app.core.config import settings
from app.core.db import get_db
from app.services.identity import Identity


def get_identity_from_cookie(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[Identity]:
    # None is passed on to the repository, which rejects it with Unauthorized
    return resolve_identity(request.cookies.get(settings.SESSION_COOKIE_NAME), db)


def set_session_cookie(resp: Response, token: str) -> None:
    resp.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=True,
    )


def clear_session_cookie(resp: Response) -> None:
    resp.delete_cookie(settings.SESSION_COOKIE_NAME)
