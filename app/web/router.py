import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.core.errors import EquipmentError, Unauthorized
from app.models.equipment import AssetCondition, AssetStatus
from app.schemas.auth import MagicLinkRequestIn
from app.schemas.equipment import EquipmentCreate
from app.services import equipment as repo
from app.services import identity as identity_service
from app.services import mailer
from app.services.identity import Identity
from app.web import formatting
from app.web.auth_web import clear_session_cookie, get_identity_from_cookie, set_session_cookie

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.filters["relative_date"] = formatting.relative_date
templates.env.filters["datetime"] = formatting.format_datetime
templates.env.filters["humanize"] = formatting.humanize
templates.env.filters["status_badge"] = formatting.status_badge

router = APIRouter(tags=["web"])

STATUSES = [s.value for s in AssetStatus]
CONDITIONS = [c.value for c in AssetCondition]
CATEGORIES = ["Core Drill", "Concrete Saw", "Wall Saw", "Generator", "Water Pump", "Drill", "Other"]


def _to_login():
    return RedirectResponse("/login", status_code=303)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


# -------------------
# AUTH
# -------------------
@router.get("/", response_class=HTMLResponse)
def home(request: Request, identity: Optional[Identity] = Depends(get_identity_from_cookie)):
    return templates.TemplateResponse(request, "index.html", {"identity": identity})


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, error: Optional[str] = None):
    return templates.TemplateResponse(request, "login.html", {"error": error, "sent_to": None})


@router.post("/login", response_class=HTMLResponse)
def login_action(request: Request, email: str = Form(...), db: Session = Depends(get_db)):
    try:
        email = identity_service.normalize_email(MagicLinkRequestIn(email=email.strip()).email)
    except ValidationError:
        return templates.TemplateResponse(
            request, "login.html", {"error": "Enter a valid email address", "sent_to": None}, status_code=400
        )

    try:
        link = identity_service.request_magic_link(db, email)
        mailer.send_magic_link(email, link)
    except (EquipmentError, OSError) as e:
        message = getattr(e, "message", None) or f"Could not send login link: {e}"
        return templates.TemplateResponse(
            request, "login.html", {"error": message, "sent_to": None}, status_code=500
        )

    return templates.TemplateResponse(request, "login.html", {"error": None, "sent_to": email})


@router.get("/auth/callback")
def auth_callback(code: Optional[str] = None, error: Optional[str] = None, db: Session = Depends(get_db)):
    if error:
        return RedirectResponse(f"/login?error={quote(error)}", status_code=303)

    if not code:
        return RedirectResponse("/login?error=" + quote("Missing login code"), status_code=303)

    try:
        identity, token = identity_service.exchange_code_for_session(db, code)
    except EquipmentError as e:
        return RedirectResponse(f"/login?error={quote(e.message)}", status_code=303)

    logger.info("Session started for %s", identity.email)
    resp = RedirectResponse("/equipment", status_code=303)
    set_session_cookie(resp, token)
    return resp


@router.post("/auth/logout")
def logout_action(request: Request, db: Session = Depends(get_db)):
    try:
        identity_service.sign_out(db, request.cookies.get(settings.SESSION_COOKIE_NAME))
    except EquipmentError as e:
        logger.error("Sign-out failed: %s", e.message)
    resp = RedirectResponse("/", status_code=303)
    clear_session_cookie(resp)
    return resp


# -------------------
# EQUIPMENT
# -------------------
@router.get("/equipment", response_class=HTMLResponse)
def equipment_list(
    request: Request,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_identity_from_cookie),
):
    try:
        assets = repo.list_equipment_assets(db, identity)
    except Unauthorized:
        return _to_login()
    except EquipmentError as e:
        return templates.TemplateResponse(
            request, "equipment_list.html", {"identity": identity, "assets": [], "error": e.message}, status_code=e.status_code
        )

    return templates.TemplateResponse(
        request, "equipment_list.html", {"identity": identity, "assets": assets, "error": None}
    )


def _render_new_form(request: Request, identity: Identity, form: dict, error: Optional[str], status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "equipment_new.html",
        {
            "identity": identity,
            "form": form,
            "error": error,
            "categories": CATEGORIES,
            "statuses": STATUSES,
            "conditions": CONDITIONS,
        },
        status_code=status_code,
    )


@router.get("/equipment/new", response_class=HTMLResponse)
def equipment_new_page(request: Request, identity: Optional[Identity] = Depends(get_identity_from_cookie)):
    if identity is None:
        return _to_login()
    form = {"status": AssetStatus.AVAILABLE.value, "condition": AssetCondition.GOOD.value}
    return _render_new_form(request, identity, form, None)


@router.post("/equipment/new", response_class=HTMLResponse)
def equipment_new_action(
    request: Request,
    category: str = Form(...),
    manufacturer: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    serial_number: Optional[str] = Form(None),
    status: AssetStatus = Form(AssetStatus.AVAILABLE),
    condition: AssetCondition = Form(AssetCondition.GOOD),
    notes: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_identity_from_cookie),
):
    if identity is None:
        return _to_login()

    form = {
        "category": category,
        "manufacturer": manufacturer,
        "model": model,
        "serial_number": serial_number,
        "status": status.value,
        "condition": condition.value,
        "notes": notes,
    }

    try:
        payload = EquipmentCreate(
            category=category,
            manufacturer=_blank_to_none(manufacturer),
            model=_blank_to_none(model),
            serial_number=_blank_to_none(serial_number),
            status=status,
            condition=condition,
            notes=_blank_to_none(notes),
        )
    except ValidationError:
        return _render_new_form(request, identity, form, "Category is required", status_code=400)

    # 1. create the row, 2. upload photo and patch its URL
    try:
        asset = repo.create_equipment_asset(db, identity, payload)
        if photo is not None and photo.filename:
            repo.attach_equipment_photo(db, identity, asset.id, photo)
    except Unauthorized:
        return _to_login()
    except EquipmentError as e:
        return _render_new_form(request, identity, form, e.message, status_code=e.status_code)

    return RedirectResponse(f"/equipment/{asset.id}", status_code=303)


@router.get("/equipment/{asset_id}", response_class=HTMLResponse)
def equipment_detail(
    asset_id: str,
    request: Request,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_identity_from_cookie),
):
    try:
        asset = repo.get_equipment_asset(db, identity, asset_id)
        if asset is None:
            return templates.TemplateResponse(
                request, "not_found.html", {"identity": identity}, status_code=404
            )
        history_rows = repo.list_equipment_history(db, identity, asset_id)
    except Unauthorized:
        return _to_login()

    return templates.TemplateResponse(
        request,
        "equipment_detail.html",
        {
            "identity": identity,
            "asset": asset,
            "history": history_rows,
            "statuses": STATUSES,
            "conditions": CONDITIONS,
            "error": error,
        },
    )


def _back_to_detail(asset_id: str, error: Optional[str] = None):
    url = f"/equipment/{asset_id}"
    if error:
        url += f"?error={quote(error)}"
    return RedirectResponse(url, status_code=303)


@router.post("/equipment/{asset_id}/verify")
def equipment_verify_action(
    asset_id: str,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_identity_from_cookie),
):
    try:
        repo.mark_equipment_verified(db, identity, asset_id)
    except Unauthorized:
        return _to_login()
    except EquipmentError as e:
        return _back_to_detail(asset_id, e.message)
    return _back_to_detail(asset_id)


@router.post("/equipment/{asset_id}/status")
def equipment_status_action(
    asset_id: str,
    status: AssetStatus = Form(...),
    condition: AssetCondition = Form(...),
    note: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_identity_from_cookie),
):
    try:
        repo.update_equipment_status(db, identity, asset_id, status, condition, _blank_to_none(note))
    except Unauthorized:
        return _to_login()
    except EquipmentError as e:
        return _back_to_detail(asset_id, e.message)
    return _back_to_detail(asset_id)
