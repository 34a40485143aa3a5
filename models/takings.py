from sqlalchemy import Column, String, Text, Float, Date, JSON
from core.db.base import Base
from .mixins import WorkspaceScoped


class WeeklyTakings(WorkspaceScoped, Base):
    __tablename__ = "daily_takings"

    week_starting = Column(Date, nullable=False)
    week_ending = Column(Date, nullable=True)
    days = Column(JSON, default=list)
    weekly_total = Column(Float, default=0)
    status = Column(String(20), default="draft", nullable=False)
    notes = Column(Text, nullable=True)
