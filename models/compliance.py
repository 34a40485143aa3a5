from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, JSON
from core.db.base import Base
from .mixins import WorkspaceScoped


class ComplianceTemplate(WorkspaceScoped, Base):
    __tablename__ = "compliance_templates"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    industry = Column(String(50), nullable=True)
    category = Column(String(100), nullable=True)
    items = Column(JSON, default=list)


class ChecklistInstance(WorkspaceScoped, Base):
    __tablename__ = "checklist_instances"

    template_id = Column(Integer, ForeignKey("compliance_templates.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    industry = Column(String(50), nullable=True)
    category = Column(String(100), nullable=True)
    items = Column(JSON, default=list)
    status = Column(String(20), default="in_progress", nullable=False)
    due_date = Column(Date, nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed_at = Column(DateTime, nullable=True)
