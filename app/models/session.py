from sqlalchemy import Column, String, DateTime, ForeignKey

from app.core.clock import utcnow
from app.core.db import Base


class UserSession(Base):
    """One row per sign-in. A session token is only honoured while its row is not revoked."""

    __tablename__ = "user_sessions"

    id = Column(String, primary_key=True)  # uuid, carried as the "sid" claim
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
