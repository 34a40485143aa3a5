from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class ConnectRequest(BaseModel):
    code: str = Field(min_length=1)


class EventIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    start: datetime
    end: datetime
    location: str = ""
    attendees: List[EmailStr] = []

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end <= self.start:
            raise ValueError("Event end must be after its start")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    location: Optional[str] = None


class ImportRequest(BaseModel):
    event_ids: List[str] = Field(min_length=1)
