from datetime import datetime
from typing import Any, Dict, List

from .calendar import (
    CalendarClient,
    CalendarEvent,
    CalendarProfile,
    parse_provider_datetime,
    to_utc_naive,
)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
GOOGLE_SCOPE = "https://www.googleapis.com/auth/calendar https://www.googleapis.com/auth/userinfo.email"


def _wire_time(value: datetime) -> Dict[str, str]:
    return {"dateTime": to_utc_naive(value).isoformat(), "timeZone": "UTC"}


def _profile(body: Dict[str, Any]) -> CalendarProfile:
    return CalendarProfile(id=body["id"], email=body.get("email"), name=body.get("name"))


def _from_wire(item: Dict[str, Any]) -> CalendarEvent:
    start = item.get("start") or {}
    end = item.get("end") or {}
    return CalendarEvent(
        id=item.get("id"),
        title=item.get("summary") or "(No title)",
        description=item.get("description") or "",
        start=parse_provider_datetime(start.get("dateTime") or start.get("date")),
        end=parse_provider_datetime(end.get("dateTime") or end.get("date")),
        location=item.get("location") or "",
        attendees=[a["email"] for a in item.get("attendees") or [] if a.get("email")],
        link=item.get("htmlLink"),
    )


class GoogleCalendarClient(CalendarClient):
    provider = "google"
    auth_url = GOOGLE_AUTH_URL
    token_url = GOOGLE_TOKEN_URL
    auth_scope = GOOGLE_SCOPE
    auth_params = {"access_type": "offline", "prompt": "consent"}

    def get_profile(self, access_token: str) -> CalendarProfile:
        body = self._api("GET", GOOGLE_USERINFO_URL, access_token)
        return self.parse(body, _profile)

    def create_event(self, access_token: str, event: CalendarEvent) -> CalendarEvent:
        resource = {
            "summary": event.title,
            "description": event.description or "",
            "start": _wire_time(event.start),
            "end": _wire_time(event.end),
        }
        if event.location:
            resource["location"] = event.location
        if event.attendees:
            resource["attendees"] = [{"email": email} for email in event.attendees]
        return self.parse(self._api("POST", GOOGLE_EVENTS_URL, access_token, json=resource), _from_wire)

    def list_events(self, access_token: str, start: datetime, end: datetime) -> List[CalendarEvent]:
        params = {
            "timeMin": to_utc_naive(start).isoformat() + "Z",
            "timeMax": to_utc_naive(end).isoformat() + "Z",
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 250,
        }
        body = self._api("GET", GOOGLE_EVENTS_URL, access_token, params=params) or {}
        return self.parse(body, lambda b: [_from_wire(item) for item in b.get("items", [])])

    def get_event(self, access_token: str, event_id: str) -> CalendarEvent:
        return self.parse(self._api("GET", f"{GOOGLE_EVENTS_URL}/{event_id}", access_token), _from_wire)

    def update_event(self, access_token: str, event_id: str, changes: Dict[str, Any]) -> CalendarEvent:
        patch: Dict[str, Any] = {}
        if changes.get("title") is not None:
            patch["summary"] = changes["title"]
        if changes.get("description") is not None:
            patch["description"] = changes["description"]
        if changes.get("location") is not None:
            patch["location"] = changes["location"]
        if changes.get("start") is not None:
            patch["start"] = _wire_time(changes["start"])
        if changes.get("end") is not None:
            patch["end"] = _wire_time(changes["end"])
        body = self._api("PATCH", f"{GOOGLE_EVENTS_URL}/{event_id}", access_token, json=patch)
        return self.parse(body, _from_wire)

    def delete_event(self, access_token: str, event_id: str) -> None:
        self._api("DELETE", f"{GOOGLE_EVENTS_URL}/{event_id}", access_token)
