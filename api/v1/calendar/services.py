import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from api.v1.workspaces.access import VIEWERS, require_access
from core.db.session import commit
from core.exceptions import InvalidOperation, NotFound, ValidationFailed
from integrations.calendar import CalendarClient, CalendarEvent, to_utc_naive
from models.calendar_connection import CalendarConnection
from models.task import Task
from models.user import User

logger = logging.getLogger(__name__)

REFRESH_MARGIN = timedelta(minutes=5)
DEFAULT_WINDOW = timedelta(days=30)
IMPORT_WINDOW = timedelta(days=90)
DEFAULT_EVENT_MINUTES = 60


def get_client(clients: Dict[str, CalendarClient], provider: str) -> CalendarClient:
    client = clients.get(provider)
    if client is None:
        raise NotFound("Unknown calendar provider")
    return client


def _connection(db: Session, user: User, provider: str) -> Optional[CalendarConnection]:
    return db.query(CalendarConnection).filter_by(user_id=user.id, provider=provider).first()


def connect(db: Session, user: User, client: CalendarClient, code: str) -> CalendarConnection:
    tokens = client.exchange_code(code)
    profile = client.get_profile(tokens.access_token)

    connection = _connection(db, user, client.provider)
    if connection is None:
        connection = CalendarConnection(user_id=user.id, provider=client.provider)
        db.add(connection)
    connection.provider_email = profile.email
    connection.access_token = tokens.access_token
    connection.refresh_token = tokens.refresh_token or connection.refresh_token
    connection.expires_at = datetime.utcnow() + timedelta(seconds=tokens.expires_in)
    connection.connected_at = datetime.utcnow()
    commit(db, "storing calendar connection")
    logger.info("User %s connected %s calendar", user.id, client.provider)
    return connection


def connection_status(db: Session, user: User, provider: str) -> Dict[str, Any]:
    connection = _connection(db, user, provider)
    if connection is None:
        return {"connected": False, "email": None, "connected_at": None, "last_synced_at": None}
    return {
        "connected": True,
        "email": connection.provider_email,
        "connected_at": connection.connected_at,
        "last_synced_at": connection.last_synced_at,
    }


def disconnect(db: Session, user: User, provider: str) -> None:
    connection = _connection(db, user, provider)
    if connection is None:
        raise InvalidOperation(f"{provider.title()} calendar not connected")
    db.delete(connection)
    commit(db, "removing calendar connection")
    logger.info("User %s disconnected %s calendar", user.id, provider)


def valid_access_token(db: Session, user: User, client: CalendarClient) -> str:
    """Return a usable access token, refreshing it when it is about to expire."""
    connection = _connection(db, user, client.provider)
    if connection is None:
        raise InvalidOperation(f"{client.provider.title()} calendar not connected")

    if connection.expires_at and connection.expires_at > datetime.utcnow() + REFRESH_MARGIN:
        return connection.access_token

    if not connection.refresh_token:
        raise InvalidOperation(
            f"Refresh token not available. Please reconnect your {client.provider.title()} account."
        )
    tokens = client.refresh(connection.refresh_token)
    connection.access_token = tokens.access_token
    connection.refresh_token = tokens.refresh_token or connection.refresh_token
    connection.expires_at = datetime.utcnow() + timedelta(seconds=tokens.expires_in)
    commit(db, "refreshing calendar token")
    logger.info("Refreshed %s token for user %s", client.provider, user.id)
    return connection.access_token


def _touch(db: Session, user: User, provider: str) -> None:
    connection = _connection(db, user, provider)
    if connection is not None:
        connection.last_synced_at = datetime.utcnow()
        commit(db, "stamping calendar sync")


def list_events(db: Session, user: User, client: CalendarClient,
                start: Optional[datetime], end: Optional[datetime]) -> List[CalendarEvent]:
    start = to_utc_naive(start) if start else datetime.utcnow()
    end = to_utc_naive(end) if end else start + DEFAULT_WINDOW
    if end <= start:
        raise ValidationFailed("end must be after start")
    token = valid_access_token(db, user, client)
    events = client.list_events(token, start, end)
    _touch(db, user, client.provider)
    return events


def create_event(db: Session, user: User, client: CalendarClient, values: Dict[str, Any]) -> CalendarEvent:
    token = valid_access_token(db, user, client)
    return client.create_event(token, CalendarEvent(**values))


def update_event(db: Session, user: User, client: CalendarClient, event_id: str,
                 changes: Dict[str, Any]) -> CalendarEvent:
    token = valid_access_token(db, user, client)
    return client.update_event(token, event_id, changes)


def delete_event(db: Session, user: User, client: CalendarClient, event_id: str) -> None:
    token = valid_access_token(db, user, client)
    client.delete_event(token, event_id)


def sync_task(db: Session, user: User, client: CalendarClient, workspace_id: int, task_id: int) -> CalendarEvent:
    """Put a task on the calendar at its due date."""
    require_access(db, user, workspace_id, VIEWERS)
    task = db.query(Task).filter_by(id=task_id, workspace_id=workspace_id).first()
    if not task:
        raise NotFound("Task not found")
    if not task.due_date:
        raise ValidationFailed("Task must have a due date to sync to calendar")

    token = valid_access_token(db, user, client)
    minutes = task.estimated_time or DEFAULT_EVENT_MINUTES
    event = client.create_event(token, CalendarEvent(
        title=task.title,
        description=task.description or "",
        start=task.due_date,
        end=task.due_date + timedelta(minutes=minutes),
    ))
    _touch(db, user, client.provider)
    logger.info("Synced task %s to %s calendar", task.id, client.provider)
    return event


def import_events(db: Session, user: User, client: CalendarClient, workspace_id: int,
                  event_ids: List[str]) -> List[Task]:
    """Create meeting tasks from the selected upcoming calendar events."""
    require_access(db, user, workspace_id, VIEWERS)
    token = valid_access_token(db, user, client)
    start = datetime.utcnow()
    wanted = set(event_ids)
    events = [e for e in client.list_events(token, start, start + IMPORT_WINDOW) if e.id in wanted]

    created = []
    for event in events:
        created.append(Task(
            workspace_id=workspace_id,
            created_by=user.id,
            title=event.title[:500],
            description=event.description or None,
            due_date=event.start,
            estimated_time=max(0, int((event.end - event.start).total_seconds() // 60)),
            category="meeting",
            priority="medium",
            status="pending",
            tags=[],
            subtasks=[],
        ))
    db.add_all(created)
    commit(db, "importing calendar events")
    _touch(db, user, client.provider)
    return created
