from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.v1.auth.schemas import UserSummary
from api.v1.resources.schemas import PartialUpdate, ResourceOut

TaskStatus = Literal["pending", "in-progress", "completed", "cancelled", "on-hold"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class Subtask(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    completed: bool = False

    model_config = ConfigDict(extra="allow")


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    category: str = "other"
    due_date: Optional[datetime] = None
    estimated_time: Optional[int] = Field(default=None, ge=0)
    tags: List[str] = []
    subtasks: List[Subtask] = []
    assigned_to: Optional[int] = None
    ai_generated: bool = False


class TaskUpdate(PartialUpdate):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    priority_score: Optional[int] = Field(default=None, ge=0, le=100)
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_time: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None
    subtasks: Optional[List[Subtask]] = None
    assigned_to: Optional[int] = None
    ai_insights: Optional[Dict[str, Any]] = None


class SubtaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)


class TaskOut(ResourceOut):
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    priority_score: Optional[int] = None
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_time: Optional[int] = None
    tags: List[str] = []
    subtasks: List[Dict[str, Any]] = []
    ai_generated: bool = False
    ai_insights: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    assigned_to: Optional[int] = None
    assignee: Optional[UserSummary] = None
