import datetime as dt
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ExtractTasksRequest(BaseModel):
    workspace_id: int
    text: str

    @field_validator("text")
    def text_required(cls, value):
        if not value.strip():
            raise ValueError("Text is required")
        return value


class PrioritizeRequest(BaseModel):
    workspace_id: int
    task_ids: List[int] = Field(min_length=1)


class SuggestTasksRequest(BaseModel):
    workspace_id: int
    time_of_day: Optional[Literal["morning", "afternoon", "evening"]] = None
    day_of_week: Optional[str] = None


class DailyPlanRequest(BaseModel):
    workspace_id: int
    date: Optional[dt.date] = None


class WeeklyPlanRequest(BaseModel):
    workspace_id: int
    week_start: Optional[date] = None


class MeetingPrepRequest(BaseModel):
    title: str = Field(min_length=1)
    attendees: Optional[str] = None
    date: Optional[str] = None
    duration: Optional[str] = None
    context: Optional[str] = None
