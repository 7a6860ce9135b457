"""
Equipment repository.

Every function takes the caller's Identity explicitly; a missing identity
fails with Unauthorized before anything is read or written.
"""
import logging
import uuid
from datetime import timedelta
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.errors import NotFound, StorageFailure, Unauthorized, ValidationGap
from app.models.equipment import AssetCondition, AssetStatus, EquipmentAsset
from app.models.status_history import EQUIPMENT_ASSET_TYPE, AssetStatusHistory
from app.schemas.equipment import EquipmentCreate, EquipmentUpdate
from app.services import history, storage
from app.services.identity import Identity

logger = logging.getLogger(__name__)


def _require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise Unauthorized()
    return identity


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to %s", what)
        raise StorageFailure(f"Failed to {what}: {e}")


def _load(db: Session, asset_id: str) -> EquipmentAsset:
    asset = db.query(EquipmentAsset).filter(EquipmentAsset.id == asset_id).first()
    if not asset:
        raise NotFound("Equipment not found")
    return asset


def create_equipment_asset(
    db: Session, identity: Optional[Identity], payload: EquipmentCreate
) -> EquipmentAsset:
    user = _require_identity(identity)

    category = payload.category.strip()
    if not category:
        raise ValidationGap("category is required")

    asset = EquipmentAsset(
        id=str(uuid.uuid4()),
        category=category,
        manufacturer=payload.manufacturer,
        model=payload.model,
        serial_number=payload.serial_number,
        status=payload.status,
        condition=payload.condition,
        assigned_vehicle_id=payload.assigned_vehicle_id,
        notes=payload.notes,
        default_image_url=payload.default_image_url,
        created_by=user.id,
    )
    db.add(asset)
    _commit(db, "create equipment")
    db.refresh(asset)

    logger.info("Equipment %s (%s) created by %s", asset.id, asset.category, user.id)
    return asset


def list_equipment_assets(db: Session, identity: Optional[Identity]) -> list[EquipmentAsset]:
    _require_identity(identity)
    try:
        return db.query(EquipmentAsset).order_by(EquipmentAsset.created_at.desc()).all()
    except SQLAlchemyError as e:
        raise StorageFailure(f"Failed to list equipment: {e}")


def get_equipment_asset(
    db: Session, identity: Optional[Identity], asset_id: str
) -> Optional[EquipmentAsset]:
    """Returns None when no asset has this id."""
    _require_identity(identity)
    try:
        return db.query(EquipmentAsset).filter(EquipmentAsset.id == asset_id).first()
    except SQLAlchemyError as e:
        raise StorageFailure(f"Failed to get equipment: {e}")


def update_equipment_asset(
    db: Session, identity: Optional[Identity], asset_id: str, updates: EquipmentUpdate
) -> EquipmentAsset:
    user = _require_identity(identity)
    asset = _load(db, asset_id)

    changes = updates.model_dump(exclude_unset=True)
    if "category" in changes:
        category = (changes["category"] or "").strip()
        if not category:
            raise ValidationGap("category cannot be blank")
        changes["category"] = category
    for field in ("status", "condition"):
        if field in changes and changes[field] is None:
            raise ValidationGap(f"{field} cannot be empty")

    for field, value in changes.items():
        setattr(asset, field, value)

    _commit(db, "update equipment")
    db.refresh(asset)

    logger.info("Equipment %s updated by %s: %s", asset.id, user.id, sorted(changes))
    return asset


def mark_equipment_verified(db: Session, identity: Optional[Identity], asset_id: str) -> EquipmentAsset:
    # Verification is not a status change, so no history row is written.
    _require_identity(identity)
    asset = _load(db, asset_id)

    now = utcnow()
    previous = as_utc(asset.last_verified_at)
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)

    return update_equipment_asset(db, identity, asset_id, EquipmentUpdate(last_verified_at=now))


def update_equipment_status(
    db: Session,
    identity: Optional[Identity],
    asset_id: str,
    status: AssetStatus,
    condition: AssetCondition,
    note: Optional[str] = None,
) -> EquipmentAsset:
    """Set status/condition and append a history row in the same transaction."""
    user = _require_identity(identity)
    asset = _load(db, asset_id)

    try:
        status = AssetStatus(status)
        condition = AssetCondition(condition)
    except ValueError as e:
        raise ValidationGap(str(e))

    old = (asset.status.value, asset.condition.value)
    asset.status = status
    asset.condition = condition
    history.record_status_change(
        db,
        asset_type=EQUIPMENT_ASSET_TYPE,
        asset_id=asset.id,
        status=asset.status,
        condition=asset.condition,
        note=note,
        updated_by=user.id,
    )

    _commit(db, "update equipment status")
    db.refresh(asset)

    logger.info(
        "Equipment %s status %s/%s -> %s/%s by %s",
        asset.id, old[0], old[1], asset.status.value, asset.condition.value, user.id,
    )
    return asset


def list_equipment_history(
    db: Session, identity: Optional[Identity], asset_id: str
) -> list[AssetStatusHistory]:
    _require_identity(identity)
    return history.list_status_history(db, EQUIPMENT_ASSET_TYPE, asset_id)


def attach_equipment_photo(
    db: Session, identity: Optional[Identity], asset_id: str, photo: UploadFile
) -> EquipmentAsset:
    """
    Upload the photo, then point default_image_url at it.
    If the row update fails the stored object is deleted again.
    """
    user = _require_identity(identity)
    asset = _load(db, asset_id)

    key = storage.equipment_photo_key(asset.id, photo.filename, photo.content_type)
    key, size_bytes = storage.upload_object(key, photo)
    asset.default_image_url = storage.public_url(key)
    try:
        _commit(db, "update image URL")
    except StorageFailure:
        storage.delete_object(key)
        raise
    db.refresh(asset)

    logger.info("Photo %s (%d bytes) attached to equipment %s by %s", key, size_bytes, asset.id, user.id)
    return asset
