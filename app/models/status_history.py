from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Text
from app.core.clock import utcnow

from app.core.db import Base
from app.models.equipment import AssetCondition, AssetStatus, _enum_values

EQUIPMENT_ASSET_TYPE = "equipment"


class AssetStatusHistory(Base):
    """Append-only. Rows are inserted and never updated or deleted."""

    __tablename__ = "asset_status_history"

    id = Column(String, primary_key=True)  # uuid
    asset_type = Column(String, nullable=False, default=EQUIPMENT_ASSET_TYPE)
    asset_id = Column(String, index=True, nullable=False)

    status = Column(Enum(AssetStatus, values_callable=_enum_values, name="asset_status"), nullable=False)
    condition = Column(Enum(AssetCondition, values_callable=_enum_values, name="asset_condition"), nullable=False)
    note = Column(Text, nullable=True)

    updated_by = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
