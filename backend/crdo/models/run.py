import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.sql import func
from crdo.db import Base


class Run(Base):
    __tablename__ = "runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    started_at = Column(DateTime(timezone=True), nullable=False)
    # Null until the run is finished
    finished_at = Column(DateTime(timezone=True), nullable=True)

    distance_mi = Column(Float, nullable=True)
    duration_s = Column(Integer, nullable=True)

    # Reported speeds, or the implied speed when the client sent none
    average_speed_mph = Column(Float, nullable=True)
    peak_speed_mph = Column(Float, nullable=True)

    gems_earned = Column(Integer, nullable=False, default=0)
    is_flagged = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
