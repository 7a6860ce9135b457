from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.core.auth import get_optional_identity
from app.core.db import get_db
from app.core.errors import NotFound
from app.schemas.equipment import (
    EquipmentCreate,
    EquipmentOut,
    EquipmentStatusUpdate,
    EquipmentUpdate,
)
from app.services import equipment as repo
from app.services.identity import Identity

router = APIRouter(prefix="/api/equipment", tags=["equipment"])

# Identity is resolved here and handed to the repository, which decides
# what a missing identity means (Unauthorized).


@router.post("", response_model=EquipmentOut)
def create_equipment(
    payload: EquipmentCreate,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return repo.create_equipment_asset(db, identity, payload)


@router.get("", response_model=list[EquipmentOut])
def list_equipment(
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return repo.list_equipment_assets(db, identity)


@router.get("/{asset_id}", response_model=EquipmentOut)
def get_equipment(
    asset_id: str,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    asset = repo.get_equipment_asset(db, identity, asset_id)
    if asset is None:
        raise NotFound("Equipment not found")
    return asset


@router.patch("/{asset_id}", response_model=EquipmentOut)
def update_equipment(
    asset_id: str,
    payload: EquipmentUpdate,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return repo.update_equipment_asset(db, identity, asset_id, payload)


@router.post("/{asset_id}/verify", response_model=EquipmentOut)
def verify_equipment(
    asset_id: str,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return repo.mark_equipment_verified(db, identity, asset_id)


@router.post("/{asset_id}/status", response_model=EquipmentOut)
def update_equipment_status(
    asset_id: str,
    payload: EquipmentStatusUpdate,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return repo.update_equipment_status(
        db, identity, asset_id, payload.status, payload.condition, payload.note
    )


@router.post("/{asset_id}/photo", response_model=EquipmentOut)
def upload_equipment_photo(
    asset_id: str,
    photo: UploadFile = File(...),
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return repo.attach_equipment_photo(db, identity, asset_id, photo)
