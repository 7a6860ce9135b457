from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from app.core.clock import as_utc
from app.models.equipment import AssetCondition, AssetStatus


class EquipmentCreate(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    status: AssetStatus = AssetStatus.AVAILABLE
    condition: AssetCondition = AssetCondition.GOOD
    assigned_vehicle_id: Optional[str] = None
    notes: Optional[str] = None
    default_image_url: Optional[str] = None


class EquipmentUpdate(BaseModel):
    # Only fields the caller actually sends are applied (exclude_unset)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    status: Optional[AssetStatus] = None
    condition: Optional[AssetCondition] = None
    assigned_vehicle_id: Optional[str] = None
    last_verified_at: Optional[datetime] = None
    notes: Optional[str] = None
    default_image_url: Optional[str] = None


class EquipmentStatusUpdate(BaseModel):
    status: AssetStatus
    condition: AssetCondition
    note: Optional[str] = None


class EquipmentOut(BaseModel):
    id: str
    category: str
    manufacturer: Optional[str]
    model: Optional[str]
    serial_number: Optional[str]
    status: AssetStatus
    condition: AssetCondition
    assigned_vehicle_id: Optional[str]
    last_verified_at: Optional[datetime]
    default_image_url: Optional[str]
    notes: Optional[str]
    created_by: Optional[str]
    created_at: datetime

    @field_serializer("created_at", "last_verified_at")
    def _utc(self, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands timestamps back naive; they are stored as UTC
        return as_utc(value)

    class Config:
        from_attributes = True
