from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.tasks.schemas import TaskOut
from core.db.dependencies import get_db, get_settings
from core.serialization import envelope
from models.user import User

from . import services

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def overview(workspace_id: Optional[int] = None, user: User = Depends(get_current_user),
             db: Session = Depends(get_db), settings=Depends(get_settings)):
    data = services.overview(db, user, workspace_id)
    return envelope(
        settings,
        stats=data["stats"],
        today_tasks=[TaskOut.model_validate(task) for task in data["today_tasks"]],
        upcoming_tasks=[TaskOut.model_validate(task) for task in data["upcoming_tasks"]],
    )


@router.get("/analytics")
def analytics(workspace_id: Optional[int] = None, period: Literal["7d", "30d", "90d"] = "7d",
              user: User = Depends(get_current_user), db: Session = Depends(get_db),
              settings=Depends(get_settings)):
    return envelope(settings, period=period, **services.analytics(db, user, workspace_id, period))
