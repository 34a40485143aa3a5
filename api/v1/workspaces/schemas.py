from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from api.v1.auth.schemas import UserSummary
from models.membership import MembershipRole
from models.workspace import WorkspaceType

ViewType = Literal["kanban", "list", "calendar", "timeline"]
ThemeType = Literal["light", "dark"]


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: WorkspaceType = WorkspaceType.personal
    default_view: ViewType = "kanban"
    theme: ThemeType = "light"
    background_type: Literal["color", "gradient", "image"] = "color"
    background_value: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    settings: Dict[str, Any] = {}

    @field_validator("name")
    def name_not_blank(cls, value):
        if not value.strip():
            raise ValueError("Workspace name is required")
        return value.strip()


class WorkspaceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    default_view: Optional[ViewType] = None
    theme: Optional[ThemeType] = None
    background_type: Optional[Literal["color", "gradient", "image"]] = None
    background_value: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class WorkspaceGenerate(BaseModel):
    prompt: str = Field(min_length=3)
    type: WorkspaceType = WorkspaceType.personal


class WorkspaceOut(BaseModel):
    id: int
    owner_id: int
    type: WorkspaceType
    name: str
    description: Optional[str] = None
    default_view: Optional[str] = None
    theme: Optional[str] = None
    background_type: Optional[str] = None
    background_value: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    is_default: bool = False
    is_archived: bool = False
    created_at: Optional[datetime] = None
    role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MemberAdd(BaseModel):
    user_email: EmailStr
    role: MembershipRole = MembershipRole.member


class MemberRoleUpdate(BaseModel):
    role: MembershipRole


class MemberOut(BaseModel):
    id: Optional[int] = None
    workspace_id: int
    user_id: int
    role: MembershipRole
    joined_at: Optional[datetime] = None
    invited_by_id: Optional[int] = None
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)
