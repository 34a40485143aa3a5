import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

CalendarProvider = Literal["google", "outlook"]


class DailySyncRequest(BaseModel):
    workspace_id: int
    date: Optional[dt.date] = None
    sync_to: List[CalendarProvider] = []
    # Minutes added to local wall-clock time to get UTC, as browsers report it
    timezone_offset: int = Field(default=0, ge=-840, le=840)


class WeeklySyncRequest(BaseModel):
    workspace_id: int
    week_start: Optional[dt.date] = None
    sync_to: List[CalendarProvider] = []
    timezone_offset: int = Field(default=0, ge=-840, le=840)


class PlanOut(BaseModel):
    id: int
    workspace_id: int
    plan_type: str
    plan_date: dt.date
    plan_data: Dict[str, Any]
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)
