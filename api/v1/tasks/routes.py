from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.resources.crud import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, crud_router, list_envelope
from core.db.dependencies import get_db, get_email, get_settings
from core.serialization import envelope
from models.user import User

from .schemas import SubtaskCreate, TaskCreate, TaskOut, TaskPriority, TaskStatus, TaskUpdate
from .services import tasks

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["Tasks"])


@router.get("/tasks")
def list_tasks(
    workspace_id: int,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    assigned_to: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    filters = {"status": status, "priority": priority, "assigned_to": assigned_to, "search": search}
    items, total = tasks.list(db, user, workspace_id, filters, page=page, limit=limit)
    return list_envelope(settings, "tasks", [TaskOut.model_validate(t) for t in items], total, page, limit)


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
def create_task(
    workspace_id: int,
    data: TaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    email=Depends(get_email),
):
    task = tasks.create(db, user, workspace_id, data.model_dump(), email_sender=email)
    return envelope(settings, message="Task created", task=TaskOut.model_validate(task))


@router.put("/tasks/{item_id}")
def update_task(
    workspace_id: int,
    item_id: int,
    data: TaskUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    email=Depends(get_email),
):
    task = tasks.update(db, user, workspace_id, item_id, data.model_dump(exclude_unset=True), email_sender=email)
    return envelope(settings, message="Task updated", task=TaskOut.model_validate(task))


@router.post("/tasks/{item_id}/subtasks", status_code=status.HTTP_201_CREATED)
def add_subtask(
    workspace_id: int,
    item_id: int,
    data: SubtaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    task = tasks.add_subtask(db, user, workspace_id, item_id, data.title)
    return envelope(settings, message="Subtask added", task=TaskOut.model_validate(task))


crud_router(tasks, "tasks", TaskCreate, TaskUpdate, TaskOut, "task", "tasks",
            tags=["Tasks"], router=router, skip=("list", "create", "update"))
