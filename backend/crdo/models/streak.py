from sqlalchemy import Column, Date, ForeignKey, Integer, String
from crdo.db import Base


class Streak(Base):
    __tablename__ = "streaks"

    # One row per user
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_run_date = Column(Date, nullable=True)
    freeze_count = Column(Integer, nullable=False, default=0)
