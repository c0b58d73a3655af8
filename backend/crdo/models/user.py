from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func
from crdo.db import Base


class User(Base):
    """Local mirror of identity-provider users, refreshed on each request."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
