import uuid

from sqlalchemy.orm import Session

from app.models.equipment import AssetCondition, AssetStatus
from app.models.status_history import AssetStatusHistory


def record_status_change(
    db: Session,
    asset_type: str,
    asset_id: str,
    status: AssetStatus,
    condition: AssetCondition,
    note: str | None,
    updated_by: str,
) -> AssetStatusHistory:
    """Add one audit row to the session. The caller commits."""
    note = (note or "").strip() or None
    row = AssetStatusHistory(
        id=str(uuid.uuid4()),
        asset_type=asset_type,
        asset_id=asset_id,
        status=status,
        condition=condition,
        note=note,
        updated_by=updated_by,
    )
    db.add(row)
    return row


def list_status_history(db: Session, asset_type: str, asset_id: str) -> list[AssetStatusHistory]:
    return (
        db.query(AssetStatusHistory)
        .filter(AssetStatusHistory.asset_type == asset_type, AssetStatusHistory.asset_id == asset_id)
        .order_by(AssetStatusHistory.created_at.desc())
        .all()
    )
