from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.resources.crud import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, crud_router, list_envelope
from core.db.dependencies import get_ai, get_db, get_settings
from core.serialization import envelope
from models.user import User

from .schemas import (
    ActionItemCreate,
    ActionItemOut,
    EventCreate,
    EventDetailOut,
    EventOut,
    EventType,
    EventUpdate,
    NoteCreate,
    NoteOut,
)
from .services import events

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["Events"])


@router.get("/events")
def list_events(
    workspace_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    event_type: Optional[EventType] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    filters = {"start": start, "end": end, "event_type": event_type}
    items, total = events.list(db, user, workspace_id, filters, page=page, limit=limit)
    return list_envelope(settings, "events", [EventOut.model_validate(e) for e in items], total, page, limit)


@router.get("/events/{item_id}")
def get_event(workspace_id: int, item_id: int, user: User = Depends(get_current_user),
              db: Session = Depends(get_db), settings=Depends(get_settings)):
    event = events.get(db, user, workspace_id, item_id)
    return envelope(settings, event=EventDetailOut.model_validate(event))


@router.post("/events/{item_id}/notes", status_code=status.HTTP_201_CREATED)
def add_note(workspace_id: int, item_id: int, data: NoteCreate, user: User = Depends(get_current_user),
             db: Session = Depends(get_db), settings=Depends(get_settings)):
    note = events.add_note(db, user, workspace_id, item_id, data.model_dump())
    return envelope(settings, message="Note added", note=NoteOut.model_validate(note))


@router.post("/events/{item_id}/action-items", status_code=status.HTTP_201_CREATED)
def add_action_item(workspace_id: int, item_id: int, data: ActionItemCreate,
                    user: User = Depends(get_current_user), db: Session = Depends(get_db),
                    settings=Depends(get_settings)):
    action = events.add_action_item(db, user, workspace_id, item_id, data.model_dump())
    return envelope(settings, message="Action item added", action_item=ActionItemOut.model_validate(action))


@router.post("/events/{item_id}/generate-prep")
def generate_prep(workspace_id: int, item_id: int, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    prep, note = events.generate_prep(db, user, ai, workspace_id, item_id)
    return envelope(settings, message="Meeting prep generated", prep=prep, note=NoteOut.model_validate(note))


crud_router(events, "events", EventCreate, EventUpdate, EventOut, "event", "events",
            tags=["Events"], router=router, skip=("list", "get"))
