import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import or_

from api.v1.tasks.services import tasks as task_service
from api.v1.workspaces.access import VIEWERS, require_access
from core.db.session import commit
from core.exceptions import NotFound
from models.task import Task
from models.user import User

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"7d": 7, "30d": 30}


def task_for_ai(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "priorityScore": task.priority_score,
        "category": task.category,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "estimatedTime": task.estimated_time,
    }


def _open_tasks(db, workspace_id: int, limit: int = 20) -> List[Task]:
    return (
        db.query(Task)
        .filter(Task.workspace_id == workspace_id, Task.status != "completed")
        .order_by(Task.priority_score.desc(), Task.due_date, Task.id)
        .limit(limit)
        .all()
    )


def extract_tasks(db, user: User, ai, workspace_id: int, text: str) -> List[Task]:
    require_access(db, user, workspace_id, VIEWERS)
    drafts = ai.extract_tasks(text)
    if not drafts:
        return []
    return task_service.bulk_create(db, user, workspace_id, drafts)


def prioritize(db, user: User, ai, workspace_id: int, task_ids: List[int]) -> List[Task]:
    require_access(db, user, workspace_id, VIEWERS)
    found = db.query(Task).filter(Task.workspace_id == workspace_id, Task.id.in_(task_ids)).all()
    if not found:
        raise NotFound("No tasks found")

    by_id = {task.id: task for task in found}
    ranked = ai.prioritize_tasks([task_for_ai(task) for task in found])
    ordered = []
    for entry in ranked:
        if not isinstance(entry, dict):
            continue
        task_id = entry.get("id")
        if isinstance(task_id, bool) or not isinstance(task_id, int):
            continue
        task = by_id.pop(task_id, None)
        if task is None:
            continue
        score = entry.get("priorityScore")
        if isinstance(score, (int, float)) and not isinstance(score, bool) and math.isfinite(score):
            task.priority_score = max(0, min(100, int(score)))
        if isinstance(entry.get("aiInsights"), dict):
            task.ai_insights = entry["aiInsights"]
        ordered.append(task)
    # Anything the model dropped keeps its place after the ranked tasks
    ordered.extend(by_id.values())
    commit(db, "storing task priorities")
    return ordered


def suggest_tasks(db, user: User, ai, workspace_id: int, time_of_day: Optional[str],
                  day_of_week: Optional[str]) -> List[Dict[str, Any]]:
    require_access(db, user, workspace_id, VIEWERS)
    recent = (
        db.query(Task)
        .filter_by(workspace_id=workspace_id)
        .order_by(Task.updated_at.desc(), Task.id.desc())
        .limit(10)
        .all()
    )
    now = datetime.utcnow()
    if time_of_day is None:
        time_of_day = "morning" if now.hour < 12 else "afternoon" if now.hour < 17 else "evening"
    return ai.suggest_tasks({
        "current_tasks": [{"title": t.title, "category": t.category, "status": t.status} for t in recent],
        "user_role": (user.preferences or {}).get("role"),
        "time_of_day": time_of_day,
        "day_of_week": day_of_week or now.strftime("%A"),
    })


def daily_plan(db, user: User, ai, workspace_id: int, target: Optional[date]):
    require_access(db, user, workspace_id, VIEWERS)
    target = target or datetime.utcnow().date()
    end_of_day = datetime.combine(target, datetime.max.time())
    candidates = (
        db.query(Task)
        .filter(
            Task.workspace_id == workspace_id,
            Task.status != "completed",
            or_(Task.due_date.is_(None), Task.due_date <= end_of_day),
        )
        .order_by(Task.priority_score.desc(), Task.due_date, Task.id)
        .limit(20)
        .all()
    )
    payload = [task_for_ai(task) for task in candidates]
    return target, ai.daily_plan(payload, user.preferences or {}), len(payload)


def weekly_plan(db, user: User, ai, workspace_id: int, week_start: Optional[date]):
    require_access(db, user, workspace_id, VIEWERS)
    if week_start is None:
        today = datetime.utcnow().date()
        week_start = today - timedelta(days=today.weekday())
    payload = [task_for_ai(task) for task in _open_tasks(db, workspace_id, limit=50)]
    return week_start, ai.weekly_plan(payload, week_start.isoformat(), user.preferences or {}), len(payload)


def productivity_analysis(db, user: User, ai, workspace_id: int, period: str):
    require_access(db, user, workspace_id, VIEWERS)
    days = PERIOD_DAYS.get(period, 7)
    end = datetime.utcnow()
    start = end - timedelta(days=days)
    completed = (
        db.query(Task)
        .filter(
            Task.workspace_id == workspace_id,
            Task.status == "completed",
            Task.completed_at >= start,
            Task.completed_at <= end,
        )
        .all()
    )
    time_data = {
        "period": period,
        "totalDays": days,
        "tasksCompleted": len(completed),
        "avgTasksPerDay": round(len(completed) / days, 2),
    }
    payload = [dict(task_for_ai(task), completedAt=task.completed_at.isoformat()) for task in completed]
    return ai.productivity_analysis(payload, time_data), len(payload)
