import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import or_

from api.v1.resources.crud import ResourceService
from api.v1.workspaces.access import VIEWERS, require_access, validate_assignee
from core.db.session import commit
from models.task import Task, TASK_PRIORITIES
from models.user import User

logger = logging.getLogger(__name__)


class TaskService(ResourceService):
    label = "Task"
    clearable = ("description", "due_date", "estimated_time", "assigned_to", "ai_insights")

    def filter(self, query, filters: Dict[str, Any]):
        if filters.get("status"):
            query = query.filter(Task.status == filters["status"])
        if filters.get("priority"):
            query = query.filter(Task.priority == filters["priority"])
        if filters.get("assigned_to"):
            query = query.filter(Task.assigned_to == filters["assigned_to"])
        if filters.get("search"):
            pattern = f"%{filters['search']}%"
            query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        return query

    def prepare(self, db, workspace, user, values, item=None):
        if "assigned_to" in values:
            validate_assignee(db, workspace, values["assigned_to"])

        status = values.get("status")
        if status == "completed" and (item is None or item.status != "completed"):
            values["completed_at"] = datetime.utcnow()
        elif status is not None and status != "completed":
            values["completed_at"] = None
        return values

    def after_write(self, db, workspace, user, item, previous, email_sender=None, **context):
        if email_sender is None or item.assigned_to is None or item.assigned_to == user.id:
            return
        if previous is not None and previous.get("assigned_to", item.assigned_to) == item.assigned_to:
            return
        notify_assignment(db, email_sender, workspace, user, item)

    def add_subtask(self, db, user: User, workspace_id: int, task_id: int, title: str) -> Task:
        require_access(db, user, workspace_id, VIEWERS)
        task = self._get(db, workspace_id, task_id)
        # JSON columns only track reassignment
        task.subtasks = list(task.subtasks or []) + [{"title": title, "completed": False}]
        commit(db, "adding subtask")
        db.refresh(task)
        return task

    def bulk_create(self, db, user: User, workspace_id: int, drafts: List[Dict[str, Any]]) -> List[Task]:
        """Create AI-drafted tasks in one transaction."""
        require_access(db, user, workspace_id, VIEWERS)
        tasks = [
            Task(workspace_id=workspace_id, created_by=user.id, **task_values(draft))
            for draft in drafts
            if isinstance(draft, dict) and _text(draft.get("title"))
        ]
        db.add_all(tasks)
        commit(db, "creating extracted tasks")
        for task in tasks:
            db.refresh(task)
        return tasks


def _text(value: Any, limit: Optional[int] = None) -> Optional[str]:
    if value is None or value == "":
        return None
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text[:limit] if limit else text


def _deadline(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable deadline %r", value)
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def task_values(draft: Dict[str, Any]) -> Dict[str, Any]:
    """Map an AI task draft onto Task columns, dropping anything unusable."""
    priority = draft.get("priority")
    estimated = draft.get("estimatedTime")
    if isinstance(estimated, bool) or not isinstance(estimated, (int, float)) \
            or not math.isfinite(estimated) or estimated < 0:
        estimated = None
    tags = draft.get("tags")
    subtasks = draft.get("subtasks")
    return {
        "title": _text(draft["title"], 500),
        "description": _text(draft.get("description")),
        "priority": priority if isinstance(priority, str) and priority in TASK_PRIORITIES else "medium",
        "category": _text(draft.get("category"), 50) or "other",
        "estimated_time": int(estimated) if estimated is not None else None,
        "due_date": _deadline(draft.get("suggestedDeadline")),
        "tags": [_text(tag, 50) for tag in tags if _text(tag)] if isinstance(tags, list) else [],
        "subtasks": [
            {"title": _text(sub["title"], 500), "completed": sub.get("completed") is True}
            for sub in subtasks
            if isinstance(sub, dict) and _text(sub.get("title"))
        ] if isinstance(subtasks, list) else [],
        "ai_generated": True,
    }


def notify_assignment(db, email_sender, workspace, assigner: User, task: Task) -> None:
    assignee = db.query(User).filter_by(id=task.assigned_to).first()
    if not assignee:
        return
    result = email_sender.send_task_assignment(
        assignee.email,
        assignee.name,
        task.title,
        assigner.name,
        workspace.name,
        task.due_date.date().isoformat() if task.due_date else None,
    )
    if not result.sent:
        logger.info("Assignment email for task %s not sent: %s", task.id, result.error)


tasks = TaskService(Task)
