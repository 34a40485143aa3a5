import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from api.v1.resources.crud import ResourceService
from api.v1.workspaces.access import VIEWERS, require_access, validate_assignee
from core.db.session import commit
from core.exceptions import IntegrationError, ValidationFailed
from integrations.calendar import to_utc_naive
from models.event import MeetingActionItem, MeetingEvent, MeetingNote
from models.user import User

logger = logging.getLogger(__name__)


class EventService(ResourceService):
    label = "Event"
    clearable = ("description", "end_time", "location", "meeting_link")

    def ordering(self):
        return [MeetingEvent.start_time, MeetingEvent.id]

    def filter(self, query, filters: Dict[str, Any]):
        if filters.get("start"):
            query = query.filter(MeetingEvent.start_time >= to_utc_naive(filters["start"]))
        if filters.get("end"):
            query = query.filter(MeetingEvent.start_time <= to_utc_naive(filters["end"]))
        if filters.get("event_type"):
            query = query.filter(MeetingEvent.event_type == filters["event_type"])
        return query

    def prepare(self, db, workspace, user, values, item=None):
        for field in ("start_time", "end_time"):
            if values.get(field) is not None:
                values[field] = to_utc_naive(values[field])
        if "color" in values and values["color"] is None:
            del values["color"]

        start = values.get("start_time", item.start_time if item else None)
        end = values.get("end_time", item.end_time if item else None)
        if start and end and end < start:
            raise ValidationFailed("End time must be after start time")
        return values

    def add_note(self, db: Session, user: User, workspace_id: int, event_id: int,
                 values: Dict[str, Any]) -> MeetingNote:
        require_access(db, user, workspace_id, VIEWERS)
        event = self._get(db, workspace_id, event_id)
        note = MeetingNote(event_id=event.id, user_id=user.id, **values)
        db.add(note)
        commit(db, "adding meeting note")
        db.refresh(note)
        return note

    def add_action_item(self, db: Session, user: User, workspace_id: int, event_id: int,
                        values: Dict[str, Any]) -> MeetingActionItem:
        workspace, _ = require_access(db, user, workspace_id, VIEWERS)
        event = self._get(db, workspace_id, event_id)
        validate_assignee(db, workspace, values.get("assigned_to"))
        note_id = values.get("meeting_note_id")
        if note_id is not None and not db.query(MeetingNote.id).filter_by(id=note_id, event_id=event.id).first():
            raise ValidationFailed("Meeting note not found for this event")
        if values.get("due_date") is not None:
            values["due_date"] = to_utc_naive(values["due_date"])

        action = MeetingActionItem(event_id=event.id, **values)
        db.add(action)
        commit(db, "adding action item")
        db.refresh(action)
        return action

    def generate_prep(self, db: Session, user: User, ai, workspace_id: int, event_id: int):
        """Ask the model for meeting preparation and keep it as an agenda note."""
        require_access(db, user, workspace_id, VIEWERS)
        event = self._get(db, workspace_id, event_id)
        prep = ai.meeting_prep(meeting_info(event))
        if not prep:
            raise IntegrationError("Failed to generate meeting prep")

        note = MeetingNote(
            event_id=event.id,
            user_id=user.id,
            content=json.dumps(prep, default=str),
            notes_type="agenda",
            ai_generated=True,
        )
        db.add(note)
        commit(db, "saving meeting prep")
        db.refresh(note)
        logger.info("Generated meeting prep for event %s", event.id)
        return prep, note


def meeting_info(event: MeetingEvent) -> Dict[str, Any]:
    duration: Optional[str] = None
    if event.end_time:
        duration = f"{int((event.end_time - event.start_time).total_seconds() // 60)} minutes"
    attendees: List[str] = [str(a) for a in event.attendees or []]
    return {
        "title": event.title,
        "attendees": ", ".join(attendees) or None,
        "date": event.start_time.isoformat(),
        "duration": duration,
        "context": event.description,
    }


events = EventService(MeetingEvent)
