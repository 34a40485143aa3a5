from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.v1.resources.schemas import PartialUpdate, ResourceOut

Industry = Literal["hospitality", "construction", "healthcare", "finance", "retail", "manufacturing", "other"]
InstanceStatus = Literal["in_progress", "completed"]


class ChecklistItem(BaseModel):
    id: Optional[str] = None
    text: str = Field(min_length=1)
    required: bool = True
    notes: str = ""
    completed: bool = False
    completed_at: Optional[str] = None
    completed_by: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    industry: Industry = "other"
    category: Optional[str] = None
    items: List[ChecklistItem] = []


class TemplateUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    items: Optional[List[ChecklistItem]] = None


class TemplateOut(ResourceOut):
    name: str
    description: Optional[str] = None
    industry: Optional[str] = None
    category: Optional[str] = None
    items: List[Dict[str, Any]] = []


class ChecklistGenerate(BaseModel):
    prompt: str = Field(min_length=3)
    industry: Industry = "other"
    category: Optional[str] = None


class InstanceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    template_id: Optional[int] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    items: List[ChecklistItem] = []
    due_date: Optional[date] = None
    assigned_to: Optional[int] = None


class InstanceFromTemplate(BaseModel):
    name: Optional[str] = None
    due_date: Optional[date] = None
    assigned_to: Optional[int] = None


class InstanceUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    items: Optional[List[ChecklistItem]] = None
    status: Optional[InstanceStatus] = None
    due_date: Optional[date] = None
    assigned_to: Optional[int] = None


class InstanceOut(ResourceOut):
    template_id: Optional[int] = None
    name: str
    industry: Optional[str] = None
    category: Optional[str] = None
    items: List[Dict[str, Any]] = []
    status: str
    due_date: Optional[date] = None
    assigned_to: Optional[int] = None
    completed_at: Optional[datetime] = None
