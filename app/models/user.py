from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from app.core.db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)  # uuid string
    email = Column(String, unique=True, index=True, nullable=False)  # lower-cased
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
