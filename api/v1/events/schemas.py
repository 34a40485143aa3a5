from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.v1.resources.schemas import PartialUpdate, ResourceOut

EventType = Literal["event", "meeting", "reminder"]
EventStatus = Literal["scheduled", "completed", "cancelled"]
NotesType = Literal["general", "agenda", "minutes", "summary"]
ActionPriority = Literal["low", "medium", "high", "urgent"]


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: EventType = "event"
    start_time: datetime
    end_time: Optional[datetime] = None
    all_day: bool = False
    location: Optional[str] = None
    attendees: List[str] = []
    meeting_link: Optional[str] = None
    status: EventStatus = "scheduled"
    color: Optional[str] = None


class EventUpdate(PartialUpdate):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    all_day: Optional[bool] = None
    location: Optional[str] = None
    attendees: Optional[List[str]] = None
    meeting_link: Optional[str] = None
    status: Optional[EventStatus] = None
    color: Optional[str] = None


class EventOut(ResourceOut):
    title: str
    description: Optional[str] = None
    event_type: str
    start_time: datetime
    end_time: Optional[datetime] = None
    all_day: bool = False
    location: Optional[str] = None
    attendees: List[str] = []
    meeting_link: Optional[str] = None
    status: str
    color: Optional[str] = None


class NoteCreate(BaseModel):
    content: str = Field(min_length=1)
    notes_type: NotesType = "general"


class NoteOut(BaseModel):
    id: int
    event_id: int
    user_id: Optional[int] = None
    content: str
    notes_type: str
    ai_generated: bool = False
    ai_summary: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ActionItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None
    priority: ActionPriority = "medium"
    meeting_note_id: Optional[int] = None


class ActionItemOut(BaseModel):
    id: int
    event_id: int
    meeting_note_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None
    priority: str
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EventDetailOut(EventOut):
    notes: List[NoteOut] = []
    action_items: List[ActionItemOut] = []
