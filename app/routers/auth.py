from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_identity
from app.core.db import get_db
from app.schemas.auth import CodeExchangeIn, IdentityOut, MagicLinkRequestIn, SessionResponse
from app.services import identity as identity_service
from app.services import mailer
from app.services.identity import Identity

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/magic-link")
def send_magic_link(payload: MagicLinkRequestIn, db: Session = Depends(get_db)):
    link = identity_service.request_magic_link(db, payload.email)
    mailer.send_magic_link(identity_service.normalize_email(payload.email), link)
    return {"ok": True}


@router.post("/exchange", response_model=SessionResponse)
def exchange_code(payload: CodeExchangeIn, db: Session = Depends(get_db)):
    _identity, token = identity_service.exchange_code_for_session(db, payload.code)
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=IdentityOut)
def me(identity: Identity = Depends(get_current_identity)):
    return {"id": identity.id, "email": identity.email}


@router.post("/logout")
def logout(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    identity_service.revoke_session(db, identity.session_id)
    return {"ok": True}
