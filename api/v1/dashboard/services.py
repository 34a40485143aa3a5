"""Task overview and analytics across the workspaces a user can see."""

import math
from collections import Counter
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from api.v1.workspaces.access import VIEWERS, require_access
from models.membership import WorkspaceMember
from models.task import Task
from models.user import User
from models.workspace import Workspace

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
LIST_LIMIT = 10
CLOSED = ("completed", "cancelled")


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def workspace_ids(db: Session, user: User, workspace_id: Optional[int]) -> List[int]:
    if workspace_id is not None:
        require_access(db, user, workspace_id, VIEWERS)
        return [workspace_id]
    member_of = select(WorkspaceMember.workspace_id).where(WorkspaceMember.user_id == user.id)
    rows = (
        db.query(Workspace.id)
        .filter(
            or_(Workspace.owner_id == user.id, Workspace.id.in_(member_of)),
            Workspace.is_archived.is_(False),
        )
        .all()
    )
    return [row.id for row in rows]


def productivity_score(completion_rate: int, pending: int, overdue: int) -> int:
    backlog = 30 if pending < 10 else 15
    lateness = 30 if overdue == 0 else max(0, 30 - overdue * 3)
    return min(100, _half_up(completion_rate * 0.4 + backlog + lateness))


def overview(db: Session, user: User, workspace_id: Optional[int] = None,
             now: Optional[datetime] = None) -> Dict[str, Any]:
    ids = workspace_ids(db, user, workspace_id)
    tasks = db.query(Task).filter(Task.workspace_id.in_(ids)).all() if ids else []

    now = now or datetime.utcnow()
    today = datetime.combine(now.date(), time.min)
    tomorrow = today + timedelta(days=1)

    by_status = Counter(task.status for task in tasks)
    overdue = sum(1 for t in tasks if t.status not in CLOSED and t.due_date and t.due_date < today)
    open_dated = [t for t in tasks if t.status != "completed" and t.due_date]
    due_today = [t for t in open_dated if today <= t.due_date < tomorrow][:LIST_LIMIT]
    upcoming = sorted((t for t in open_dated if t.due_date >= tomorrow), key=lambda t: t.due_date)[:LIST_LIMIT]

    total = len(tasks)
    rate = _half_up(by_status["completed"] / total * 100) if total else 0
    stats = {
        "total_tasks": total,
        "completed_tasks": by_status["completed"],
        "pending_tasks": by_status["pending"],
        "in_progress_tasks": by_status["in-progress"],
        "overdue_tasks": overdue,
        "completion_rate": rate,
        "productivity_score": productivity_score(rate, by_status["pending"], overdue),
    }
    return {"stats": stats, "today_tasks": due_today, "upcoming_tasks": upcoming}


def analytics(db: Session, user: User, workspace_id: Optional[int] = None, period: str = "7d",
              now: Optional[datetime] = None) -> Dict[str, Any]:
    ids = workspace_ids(db, user, workspace_id)
    if not ids:
        return {"completed_tasks": [], "tasks_by_category": [], "tasks_by_priority": []}

    end = now or datetime.utcnow()
    start = end - timedelta(days=PERIOD_DAYS.get(period, 7))
    stamps = (
        db.query(Task.completed_at)
        .filter(
            Task.workspace_id.in_(ids),
            Task.status == "completed",
            Task.completed_at >= start,
            Task.completed_at <= end,
        )
        .all()
    )
    per_day = Counter(row.completed_at.date().isoformat() for row in stamps)

    categories = (
        db.query(Task.category, func.count(Task.id))
        .filter(Task.workspace_id.in_(ids))
        .group_by(Task.category)
        .order_by(func.count(Task.id).desc(), Task.category)
        .all()
    )
    priorities = (
        db.query(Task.priority, func.count(Task.id))
        .filter(Task.workspace_id.in_(ids), Task.status != "completed")
        .group_by(Task.priority)
        .order_by(func.count(Task.id).desc(), Task.priority)
        .all()
    )
    return {
        "completed_tasks": [{"date": day, "count": count} for day, count in sorted(per_day.items())],
        "tasks_by_category": [{"category": name or "other", "count": count} for name, count in categories],
        "tasks_by_priority": [{"priority": name, "count": count} for name, count in priorities],
    }
