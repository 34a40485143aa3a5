from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str

    @field_validator("name")
    def name_must_be_valid(cls, value):
        if not value.strip():
            raise ValueError("Name is required")
        if len(value) > 255:
            raise ValueError("Name must be under 255 characters")
        return value.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class GoogleAuthRequest(BaseModel):
    credential: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    avatar: Optional[str] = None
    role: str
    is_active: bool
    permissions: List[str] = []
    preferences: Dict[str, Any] = {}
    subscription_status: Optional[str] = None
    trial_end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("permissions", "preferences", mode="before")
    def empty_when_null(cls, value, info):
        if value is None:
            return [] if info.field_name == "permissions" else {}
        return value


class UserSummary(BaseModel):
    id: int
    email: str
    name: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
