import enum
from sqlalchemy import Column, String, DateTime, Enum, Text, ForeignKey
from app.core.clock import utcnow

from app.core.db import Base


class AssetStatus(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    CONDITIONAL = "conditional"
    UNKNOWN = "unknown"


class AssetCondition(str, enum.Enum):
    GOOD = "good"
    NEEDS_REPAIR = "needs_repair"
    OUT_OF_SERVICE = "out_of_service"


def _enum_values(e):
    return [m.value for m in e]


class EquipmentAsset(Base):
    __tablename__ = "equipment_assets"

    id = Column(String, primary_key=True)  # uuid string

    category = Column(String, index=True, nullable=False)
    manufacturer = Column(String, nullable=True)
    model = Column(String, nullable=True)
    serial_number = Column(String, nullable=True)

    # Stored by value ("needs_repair"), not by member name
    status = Column(
        Enum(AssetStatus, values_callable=_enum_values, name="asset_status"),
        default=AssetStatus.AVAILABLE,
        nullable=False,
    )
    condition = Column(
        Enum(AssetCondition, values_callable=_enum_values, name="asset_condition"),
        default=AssetCondition.GOOD,
        nullable=False,
    )

    assigned_vehicle_id = Column(String, nullable=True)  # external vehicle, stored only
    last_verified_at = Column(DateTime(timezone=True), nullable=True)
    default_image_url = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    # microsecond precision, newest-first listing depends on it
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
