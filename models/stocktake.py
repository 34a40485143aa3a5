from sqlalchemy import Column, String, Text, Float, Date, JSON
from core.db.base import Base
from .mixins import WorkspaceScoped


class Stocktake(WorkspaceScoped, Base):
    __tablename__ = "stocktakes"

    stocktake_number = Column(String(100), nullable=True)
    date = Column(Date, nullable=True)
    conducted_by = Column(String(255), nullable=True)
    items = Column(JSON, default=list)
    total_variance_value = Column(Float, default=0)
    status = Column(String(20), default="draft", nullable=False)
    notes = Column(Text, nullable=True)
