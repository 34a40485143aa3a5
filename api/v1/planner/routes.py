from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from core.db.dependencies import get_ai, get_calendar_clients, get_db, get_settings
from core.serialization import envelope
from models.user import User

from . import services
from .schemas import DailySyncRequest, PlanOut, WeeklySyncRequest

router = APIRouter(prefix="/planner", tags=["Planner"])


def _response(settings, label: str, plan, synced, errors):
    if synced:
        message = f"{label} plan generated and {len(synced)} events synced to calendar!"
    else:
        message = f"{label} plan generated successfully!"
    return envelope(
        settings,
        message=message,
        plan=PlanOut.model_validate(plan),
        synced_events=synced,
        sync_errors=errors,
    )


@router.post("/daily/generate-and-sync")
def daily_generate_and_sync(data: DailySyncRequest, user: User = Depends(get_current_user),
                            db: Session = Depends(get_db), settings=Depends(get_settings),
                            ai=Depends(get_ai), clients=Depends(get_calendar_clients)):
    plan, synced, errors = services.generate_daily(
        db, user, ai, clients, data.workspace_id, data.date, data.sync_to, data.timezone_offset
    )
    return _response(settings, "Daily", plan, synced, errors)


@router.post("/weekly/generate-and-sync")
def weekly_generate_and_sync(data: WeeklySyncRequest, user: User = Depends(get_current_user),
                             db: Session = Depends(get_db), settings=Depends(get_settings),
                             ai=Depends(get_ai), clients=Depends(get_calendar_clients)):
    plan, synced, errors = services.generate_weekly(
        db, user, ai, clients, data.workspace_id, data.week_start, data.sync_to, data.timezone_offset
    )
    return _response(settings, "Weekly", plan, synced, errors)
