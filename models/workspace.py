from datetime import datetime
import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from core.db.base import Base


class WorkspaceType(str, enum.Enum):
    personal = "personal"
    team = "team"


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(WorkspaceType), default=WorkspaceType.personal, nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    default_view = Column(String(30), default="kanban")
    theme = Column(String(30), default="light")
    background_type = Column(String(30), default="color")
    background_value = Column(String(255), default="#ffffff")
    primary_color = Column(String(20), default="#3b82f6")
    secondary_color = Column(String(20), default="#8b5cf6")
    settings = Column(JSON, default=dict)

    is_default = Column(Boolean, default=False)
    is_archived = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    owner = relationship("User", back_populates="workspaces")
    members = relationship("WorkspaceMember", back_populates="workspace", cascade="all, delete-orphan")

    @property
    def is_team(self) -> bool:
        return self.type == WorkspaceType.team
