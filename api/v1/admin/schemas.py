from typing import Optional

from pydantic import BaseModel

from models.user import UserRole


class StatusUpdate(BaseModel):
    # Omitted flips the current value
    is_active: Optional[bool] = None


class RoleUpdate(BaseModel):
    role: UserRole
