from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from core.db.base import Base
from .mixins import WorkspaceScoped

TASK_STATUSES = ("pending", "in-progress", "completed", "cancelled", "on-hold")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(WorkspaceScoped, Base):
    __tablename__ = "tasks"

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    priority = Column(String(20), default="medium", nullable=False)
    priority_score = Column(Integer, nullable=True)
    category = Column(String(50), default="other")
    due_date = Column(DateTime, nullable=True)
    estimated_time = Column(Integer, nullable=True)  # minutes
    tags = Column(JSON, default=list)
    subtasks = Column(JSON, default=list)
    ai_generated = Column(Boolean, default=False)
    ai_insights = Column(JSON, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    assignee = relationship("User", foreign_keys=[assigned_to])
