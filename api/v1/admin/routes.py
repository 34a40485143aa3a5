from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.v1.auth.schemas import UserOut
from api.v1.auth.utils import require_admin, require_superadmin
from api.v1.resources.crud import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, list_envelope
from core.db.dependencies import get_db, get_settings
from core.serialization import envelope
from models.user import User

from . import services
from .schemas import RoleUpdate, StatusUpdate

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users")
def list_users(
    search: Optional[str] = None,
    status: Optional[Literal["active", "inactive", "admin"]] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    users, total = services.list_users(db, search, status, page, limit)
    return list_envelope(settings, "users", [UserOut.model_validate(u) for u in users], total, page, limit)


@router.get("/stats")
def stats(admin: User = Depends(require_admin), db: Session = Depends(get_db), settings=Depends(get_settings)):
    return envelope(settings, stats=services.stats(db))


@router.put("/users/{user_id}/status")
def set_status(user_id: int, data: StatusUpdate, superadmin: User = Depends(require_superadmin),
               db: Session = Depends(get_db), settings=Depends(get_settings)):
    user = services.set_status(db, superadmin, user_id, data.is_active)
    state = "activated" if user.is_active else "deactivated"
    return envelope(settings, message=f"User {state}", user=UserOut.model_validate(user))


@router.put("/users/{user_id}/role")
def set_role(user_id: int, data: RoleUpdate, superadmin: User = Depends(require_superadmin),
             db: Session = Depends(get_db), settings=Depends(get_settings)):
    user = services.set_role(db, superadmin, user_id, data.role)
    return envelope(settings, message="User role updated", user=UserOut.model_validate(user))
