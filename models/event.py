from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from core.db.base import Base
from .mixins import WorkspaceScoped


class MeetingEvent(WorkspaceScoped, Base):
    __tablename__ = "events"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(String(20), default="event", nullable=False)  # event | meeting | reminder
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)
    all_day = Column(Boolean, default=False)
    location = Column(String(255), nullable=True)
    attendees = Column(JSON, default=list)
    meeting_link = Column(String(500), nullable=True)
    status = Column(String(20), default="scheduled", nullable=False)
    color = Column(String(20), default="#3b82f6")

    notes = relationship(
        "MeetingNote", back_populates="event", cascade="all, delete-orphan", order_by="MeetingNote.id"
    )
    action_items = relationship(
        "MeetingActionItem", back_populates="event", cascade="all, delete-orphan",
        order_by="MeetingActionItem.id",
    )


class MeetingNote(Base):
    __tablename__ = "meeting_notes"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    content = Column(Text, nullable=False)
    notes_type = Column(String(20), default="general", nullable=False)
    ai_generated = Column(Boolean, default=False)
    ai_summary = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    event = relationship("MeetingEvent", back_populates="notes")


class MeetingActionItem(Base):
    __tablename__ = "meeting_action_items"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    meeting_note_id = Column(Integer, ForeignKey("meeting_notes.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    due_date = Column(DateTime, nullable=True)
    priority = Column(String(20), default="medium", nullable=False)
    status = Column(String(20), default="open", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    event = relationship("MeetingEvent", back_populates="action_items")
