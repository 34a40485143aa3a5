from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.tasks.schemas import TaskOut
from core.db.dependencies import get_calendar_clients, get_db, get_settings
from core.serialization import envelope
from models.user import User

from . import services
from .schemas import ConnectRequest, EventIn, EventUpdate, ImportRequest

router = APIRouter(prefix="/calendar/{provider}", tags=["Calendar"])

Provider = Literal["google", "outlook"]


@router.get("/auth-url")
def auth_url(provider: Provider, user: User = Depends(get_current_user),
             settings=Depends(get_settings), clients=Depends(get_calendar_clients)):
    client = services.get_client(clients, provider)
    return envelope(settings, url=client.authorization_url(state=str(user.id)))


@router.post("/connect")
def connect(provider: Provider, data: ConnectRequest, user: User = Depends(get_current_user),
            db: Session = Depends(get_db), settings=Depends(get_settings),
            clients=Depends(get_calendar_clients)):
    connection = services.connect(db, user, services.get_client(clients, provider), data.code)
    return envelope(
        settings,
        message=f"{provider.title()} calendar connected successfully",
        email=connection.provider_email,
    )


@router.get("/status")
def connection_status(provider: Provider, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db), settings=Depends(get_settings)):
    return envelope(settings, **services.connection_status(db, user, provider))


@router.post("/disconnect")
def disconnect(provider: Provider, user: User = Depends(get_current_user),
               db: Session = Depends(get_db), settings=Depends(get_settings)):
    services.disconnect(db, user, provider)
    return envelope(settings, message=f"{provider.title()} calendar disconnected")


@router.get("/events")
def list_events(provider: Provider, start: Optional[datetime] = None, end: Optional[datetime] = None,
                user: User = Depends(get_current_user), db: Session = Depends(get_db),
                settings=Depends(get_settings), clients=Depends(get_calendar_clients)):
    events = services.list_events(db, user, services.get_client(clients, provider), start, end)
    return envelope(settings, count=len(events), events=[event.to_dict() for event in events])


@router.post("/events", status_code=status.HTTP_201_CREATED)
def create_event(provider: Provider, data: EventIn, user: User = Depends(get_current_user),
                 db: Session = Depends(get_db), settings=Depends(get_settings),
                 clients=Depends(get_calendar_clients)):
    event = services.create_event(db, user, services.get_client(clients, provider), data.model_dump())
    return envelope(settings, message="Event created", event=event.to_dict())


@router.put("/events/{event_id}")
def update_event(provider: Provider, event_id: str, data: EventUpdate,
                 user: User = Depends(get_current_user), db: Session = Depends(get_db),
                 settings=Depends(get_settings), clients=Depends(get_calendar_clients)):
    event = services.update_event(
        db, user, services.get_client(clients, provider), event_id, data.model_dump(exclude_unset=True)
    )
    return envelope(settings, message="Event updated", event=event.to_dict())


@router.delete("/events/{event_id}")
def delete_event(provider: Provider, event_id: str, user: User = Depends(get_current_user),
                 db: Session = Depends(get_db), settings=Depends(get_settings),
                 clients=Depends(get_calendar_clients)):
    services.delete_event(db, user, services.get_client(clients, provider), event_id)
    return envelope(settings, message="Event deleted")


@router.post("/sync-task/{workspace_id}/{task_id}")
def sync_task(provider: Provider, workspace_id: int, task_id: int,
              user: User = Depends(get_current_user), db: Session = Depends(get_db),
              settings=Depends(get_settings), clients=Depends(get_calendar_clients)):
    event = services.sync_task(db, user, services.get_client(clients, provider), workspace_id, task_id)
    return envelope(settings, message=f"Task synced to {provider.title()} calendar", event=event.to_dict())


@router.post("/import/{workspace_id}", status_code=status.HTTP_201_CREATED)
def import_events(provider: Provider, workspace_id: int, data: ImportRequest,
                  user: User = Depends(get_current_user), db: Session = Depends(get_db),
                  settings=Depends(get_settings), clients=Depends(get_calendar_clients)):
    created = services.import_events(db, user, services.get_client(clients, provider), workspace_id,
                                     data.event_ids)
    return envelope(
        settings,
        message=f"Imported {len(created)} events as tasks",
        tasks=[TaskOut.model_validate(task) for task in created],
    )
