from sqlalchemy import Column, String, Text, Date, JSON
from core.db.base import Base
from .mixins import WorkspaceScoped


class Roster(WorkspaceScoped, Base):
    __tablename__ = "rosters"

    week_starting = Column(Date, nullable=False)
    week_ending = Column(Date, nullable=True)
    shifts = Column(JSON, default=list)
    status = Column(String(20), default="draft", nullable=False)
    notes = Column(Text, nullable=True)
