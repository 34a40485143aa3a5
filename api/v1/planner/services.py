"""Generate AI day and week plans and push their time blocks to calendars.

A plan is kept per user, workspace, type and date. Regenerating one removes
the calendar events created for the previous version before syncing again.
Calendar failures never fail the request; they come back as sync errors.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from api.v1.ai.services import task_for_ai
from api.v1.calendar.services import get_client, valid_access_token
from api.v1.workspaces.access import VIEWERS, require_access
from core.db.session import commit
from core.exceptions import AppError, IntegrationError, InvalidOperation
from integrations.calendar import CalendarClient, CalendarEvent
from models.plan import Plan, PlanEvent
from models.task import Task
from models.user import User

logger = logging.getLogger(__name__)

NO_TASKS_MESSAGE = "No pending tasks found. Create some tasks first!"
_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")


@dataclass
class Block:
    day: date
    title: str
    start: datetime
    end: datetime
    clock: Tuple[str, str]
    block_type: str
    notes: Optional[str]
    event_title: str
    event_description: str


def _clock(value: Any) -> Optional[time]:
    match = _CLOCK_RE.match(value) if isinstance(value, str) else None
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def _blocks(raw: Any, day: date, offset: int, title_prefix: str, fallback_description: str) -> List[Block]:
    """Turn model time blocks into UTC calendar slots, skipping breaks and junk."""
    if not isinstance(raw, list):
        return []
    blocks = []
    for entry in raw:
        if not isinstance(entry, dict) or entry.get("type") == "break":
            continue
        title = entry.get("taskTitle")
        starts, ends = _clock(entry.get("startTime")), _clock(entry.get("endTime"))
        if not isinstance(title, str) or not title.strip() or starts is None or ends is None or ends <= starts:
            logger.debug("Skipping unusable time block %r", entry)
            continue
        notes = entry.get("notes") if isinstance(entry.get("notes"), str) else None
        shift = timedelta(minutes=offset)
        blocks.append(Block(
            day=day,
            title=title.strip()[:500],
            start=datetime.combine(day, starts) + shift,
            end=datetime.combine(day, ends) + shift,
            clock=(starts.strftime("%H:%M"), ends.strftime("%H:%M")),
            block_type=str(entry.get("type") or "work")[:20],
            notes=notes,
            event_title=f"[{title_prefix}] {title.strip()}",
            event_description=notes or fallback_description,
        ))
    return blocks


def daily_blocks(plan: Dict[str, Any], day: date, offset: int) -> List[Block]:
    return _blocks(plan.get("timeBlocks"), day, offset, "Plan", "Part of your daily plan")


def weekly_blocks(plan: Dict[str, Any], offset: int) -> List[Block]:
    days = plan.get("days")
    blocks: List[Block] = []
    for entry in days if isinstance(days, list) else []:
        if not isinstance(entry, dict) or not isinstance(entry.get("plan"), dict):
            continue
        try:
            day = date.fromisoformat(str(entry.get("date")))
        except ValueError:
            logger.debug("Skipping weekly plan day with bad date %r", entry.get("date"))
            continue
        name = entry.get("dayName") if isinstance(entry.get("dayName"), str) else day.strftime("%A")
        blocks.extend(_blocks(entry["plan"].get("timeBlocks"), day, offset, name,
                              f"Part of your weekly plan for {name}"))
    return blocks


def _pending_tasks(db: Session, workspace_id: int) -> List[Task]:
    return (
        db.query(Task)
        .filter(Task.workspace_id == workspace_id, Task.status == "pending")
        .order_by(Task.priority_score.desc(), Task.due_date, Task.id)
        .limit(50)
        .all()
    )


def _existing(db: Session, user: User, workspace_id: int, plan_type: str, plan_date: date) -> Optional[Plan]:
    return (
        db.query(Plan)
        .filter_by(user_id=user.id, workspace_id=workspace_id, plan_type=plan_type, plan_date=plan_date)
        .first()
    )


def _remove_synced(db: Session, user: User, clients: Dict[str, CalendarClient], plan: Plan) -> None:
    """Best-effort removal of the calendar events behind an older plan."""
    by_provider: Dict[str, List[PlanEvent]] = {}
    for record in plan.events:
        by_provider.setdefault(record.provider, []).append(record)
    for provider, records in by_provider.items():
        try:
            client = get_client(clients, provider)
            token = valid_access_token(db, user, client)
        except AppError as exc:
            logger.warning("Leaving %d old %s plan events in place: %s", len(records), provider, exc.message)
            continue
        for record in records:
            try:
                client.delete_event(token, record.provider_event_id)
            except AppError as exc:
                logger.warning("Could not delete %s event %s: %s", provider, record.provider_event_id, exc.message)
    plan.events.clear()


def _sync(db: Session, user: User, clients: Dict[str, CalendarClient], providers: List[str],
          blocks: List[Block]) -> Tuple[List[PlanEvent], List[Dict[str, Any]], List[str]]:
    records: List[PlanEvent] = []
    synced: List[Dict[str, Any]] = []
    errors: List[str] = []
    for provider in dict.fromkeys(providers):
        try:
            client = get_client(clients, provider)
            token = valid_access_token(db, user, client)
            for block in blocks:
                event = client.create_event(token, CalendarEvent(
                    title=block.event_title,
                    description=block.event_description,
                    start=block.start,
                    end=block.end,
                ))
                records.append(PlanEvent(
                    provider=provider,
                    provider_event_id=event.id,
                    task_title=block.title,
                    start_time=block.start,
                    end_time=block.end,
                    block_type=block.block_type,
                    notes=block.notes,
                ))
                synced.append({
                    "provider": provider,
                    "day": block.day.isoformat(),
                    "task_title": block.title,
                    "start_time": block.clock[0],
                    "end_time": block.clock[1],
                    "event_id": event.id,
                })
        except AppError as exc:
            logger.warning("Plan sync to %s failed for user %s: %s", provider, user.id, exc.message)
            errors.append(f"{provider.title()}: {exc.message}")
    return records, synced, errors


def _generate_and_sync(db: Session, user: User, clients: Dict[str, CalendarClient], workspace_id: int,
                       plan_type: str, plan_date: date, plan: Any, blocks_for, providers: List[str]):
    if not isinstance(plan, dict):
        raise IntegrationError(f"Failed to generate {plan_type} plan")

    saved = _existing(db, user, workspace_id, plan_type, plan_date)
    if saved is not None:
        _remove_synced(db, user, clients, saved)
        saved.plan_data = plan
    else:
        saved = Plan(user_id=user.id, workspace_id=workspace_id, plan_type=plan_type,
                     plan_date=plan_date, plan_data=plan)
        db.add(saved)

    records, synced, errors = _sync(db, user, clients, providers, blocks_for(plan))
    saved.events.extend(records)
    commit(db, f"saving {plan_type} plan")
    db.refresh(saved)
    logger.info("User %s generated %s plan %s with %d synced events", user.id, plan_type, saved.id, len(synced))
    return saved, synced, errors


def generate_daily(db: Session, user: User, ai, clients: Dict[str, CalendarClient], workspace_id: int,
                   target: Optional[date], providers: List[str], offset: int = 0):
    require_access(db, user, workspace_id, VIEWERS)
    pending = _pending_tasks(db, workspace_id)
    if not pending:
        raise InvalidOperation(NO_TASKS_MESSAGE)
    target = target or datetime.utcnow().date()
    plan = ai.daily_plan([task_for_ai(task) for task in pending], user.preferences or {})
    return _generate_and_sync(db, user, clients, workspace_id, "daily", target, plan,
                              lambda p: daily_blocks(p, target, offset), providers)


def generate_weekly(db: Session, user: User, ai, clients: Dict[str, CalendarClient], workspace_id: int,
                    week_start: Optional[date], providers: List[str], offset: int = 0):
    require_access(db, user, workspace_id, VIEWERS)
    pending = _pending_tasks(db, workspace_id)
    if not pending:
        raise InvalidOperation(NO_TASKS_MESSAGE)
    if week_start is None:
        today = datetime.utcnow().date()
        week_start = today - timedelta(days=today.weekday())
    plan = ai.weekly_plan([task_for_ai(task) for task in pending], week_start.isoformat(),
                          user.preferences or {})
    return _generate_and_sync(db, user, clients, workspace_id, "weekly", week_start, plan,
                              lambda p: weekly_blocks(p, offset), providers)
