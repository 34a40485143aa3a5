from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from core.db.base import Base


class Plan(Base):
    """An AI day or week plan; one per user, workspace, type and date."""

    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    plan_type = Column(String(10), nullable=False)  # daily | weekly
    plan_date = Column(Date, nullable=False)
    plan_data = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    events = relationship("PlanEvent", back_populates="plan", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", "plan_type", "plan_date", name="uix_plan_slot"),
    )


class PlanEvent(Base):
    """A calendar event created from one plan time block."""

    __tablename__ = "plan_events"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(20), nullable=False)
    provider_event_id = Column(String(255), nullable=False)
    task_title = Column(String(500), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    block_type = Column(String(20), default="work")
    notes = Column(Text, nullable=True)

    plan = relationship("Plan", back_populates="events")
