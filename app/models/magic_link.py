from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from app.core.db import Base


class MagicLinkRequest(Base):
    __tablename__ = "magic_link_requests"

    id = Column(String, primary_key=True)  # uuid, first half of the emailed code
    email = Column(String, index=True, nullable=False)
    code_hash = Column(String, nullable=False)  # argon2 hash of the secret half

    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
