from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.tasks.schemas import TaskOut
from core.db.dependencies import get_ai, get_db, get_settings
from core.serialization import envelope
from models.user import User

from . import services
from .schemas import (
    DailyPlanRequest,
    ExtractTasksRequest,
    MeetingPrepRequest,
    PrioritizeRequest,
    SuggestTasksRequest,
    WeeklyPlanRequest,
)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/extract-tasks")
def extract_tasks(data: ExtractTasksRequest, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    created = services.extract_tasks(db, user, ai, data.workspace_id, data.text)
    return envelope(
        settings,
        message=f"Successfully created {len(created)} tasks from text",
        tasks=[TaskOut.model_validate(task) for task in created],
    )


@router.post("/prioritize")
def prioritize(data: PrioritizeRequest, user: User = Depends(get_current_user),
               db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    ranked = services.prioritize(db, user, ai, data.workspace_id, data.task_ids)
    return envelope(
        settings,
        message="Tasks prioritized successfully",
        tasks=[TaskOut.model_validate(task) for task in ranked],
    )


@router.post("/suggest-tasks")
def suggest_tasks(data: SuggestTasksRequest, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    suggestions = services.suggest_tasks(db, user, ai, data.workspace_id, data.time_of_day, data.day_of_week)
    return envelope(settings, suggestions=suggestions)


@router.post("/daily-plan")
def daily_plan(data: DailyPlanRequest, user: User = Depends(get_current_user),
               db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    target, plan, included = services.daily_plan(db, user, ai, data.workspace_id, data.date)
    return envelope(settings, date=target.isoformat(), plan=plan, tasks_included=included)


@router.post("/weekly-plan")
def weekly_plan(data: WeeklyPlanRequest, user: User = Depends(get_current_user),
                db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    week_start, plan, included = services.weekly_plan(db, user, ai, data.workspace_id, data.week_start)
    return envelope(settings, week_start=week_start.isoformat(), plan=plan, tasks_included=included)


@router.post("/meeting-prep")
def meeting_prep(data: MeetingPrepRequest, user: User = Depends(get_current_user),
                 settings=Depends(get_settings), ai=Depends(get_ai)):
    info = data.model_dump()
    return envelope(settings, meeting=info, preparation=ai.meeting_prep(info))


@router.get("/productivity-analysis")
def productivity_analysis(workspace_id: int, period: Literal["7d", "30d"] = "7d",
                          user: User = Depends(get_current_user), db: Session = Depends(get_db),
                          settings=Depends(get_settings), ai=Depends(get_ai)):
    analysis, points = services.productivity_analysis(db, user, ai, workspace_id, period)
    return envelope(settings, period=period, analysis=analysis, data_points=points)
