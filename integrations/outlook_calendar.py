from datetime import datetime
from typing import Any, Dict, List

from .calendar import (
    CalendarClient,
    CalendarEvent,
    CalendarProfile,
    parse_provider_datetime,
    to_utc_naive,
)

OUTLOOK_AUTH_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
OUTLOOK_TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
GRAPH_API_URL = "https://graph.microsoft.com/v1.0"
OUTLOOK_SCOPE = "Calendars.ReadWrite User.Read offline_access"

# Graph returns event times in the mailbox zone unless told otherwise
_UTC_PREFERENCE = {"Prefer": 'outlook.timezone="UTC"'}


def _wire_time(value: datetime) -> Dict[str, str]:
    return {"dateTime": to_utc_naive(value).isoformat(), "timeZone": "UTC"}


def _profile(body: Dict[str, Any]) -> CalendarProfile:
    return CalendarProfile(
        id=body["id"],
        email=body.get("userPrincipalName") or body.get("mail"),
        name=body.get("displayName"),
    )


def _from_wire(item: Dict[str, Any]) -> CalendarEvent:
    return CalendarEvent(
        id=item.get("id"),
        title=item.get("subject") or "(No title)",
        description=(item.get("body") or {}).get("content") or "",
        start=parse_provider_datetime((item.get("start") or {}).get("dateTime")),
        end=parse_provider_datetime((item.get("end") or {}).get("dateTime")),
        location=(item.get("location") or {}).get("displayName") or "",
        attendees=[
            a["emailAddress"]["address"]
            for a in item.get("attendees") or []
            if (a.get("emailAddress") or {}).get("address")
        ],
        link=item.get("webLink"),
    )


class OutlookCalendarClient(CalendarClient):
    provider = "outlook"
    auth_url = OUTLOOK_AUTH_URL
    token_url = OUTLOOK_TOKEN_URL
    scope = OUTLOOK_SCOPE
    auth_scope = OUTLOOK_SCOPE
    auth_params = {"response_mode": "query"}

    def get_profile(self, access_token: str) -> CalendarProfile:
        body = self._api("GET", f"{GRAPH_API_URL}/me", access_token)
        return self.parse(body, _profile)

    def create_event(self, access_token: str, event: CalendarEvent) -> CalendarEvent:
        resource = {
            "subject": event.title,
            "body": {"contentType": "HTML", "content": event.description or ""},
            "start": _wire_time(event.start),
            "end": _wire_time(event.end),
            "attendees": [
                {"emailAddress": {"address": email}, "type": "required"} for email in event.attendees
            ],
        }
        if event.location:
            resource["location"] = {"displayName": event.location}
        body = self._api("POST", f"{GRAPH_API_URL}/me/calendar/events", access_token,
                         json=resource, headers=dict(_UTC_PREFERENCE))
        return self.parse(body, _from_wire)

    def list_events(self, access_token: str, start: datetime, end: datetime) -> List[CalendarEvent]:
        params = {
            "startDateTime": to_utc_naive(start).isoformat() + "Z",
            "endDateTime": to_utc_naive(end).isoformat() + "Z",
            "$select": "subject,start,end,location,body,attendees,webLink",
            "$orderby": "start/dateTime",
            "$top": 50,
        }
        body = self._api("GET", f"{GRAPH_API_URL}/me/calendarView", access_token,
                         params=params, headers=dict(_UTC_PREFERENCE)) or {}
        return self.parse(body, lambda b: [_from_wire(item) for item in b.get("value", [])])

    def get_event(self, access_token: str, event_id: str) -> CalendarEvent:
        body = self._api("GET", f"{GRAPH_API_URL}/me/events/{event_id}", access_token,
                         headers=dict(_UTC_PREFERENCE))
        return self.parse(body, _from_wire)

    def update_event(self, access_token: str, event_id: str, changes: Dict[str, Any]) -> CalendarEvent:
        patch: Dict[str, Any] = {}
        if changes.get("title") is not None:
            patch["subject"] = changes["title"]
        if changes.get("description") is not None:
            patch["body"] = {"contentType": "HTML", "content": changes["description"]}
        if changes.get("location") is not None:
            patch["location"] = {"displayName": changes["location"]}
        if changes.get("start") is not None:
            patch["start"] = _wire_time(changes["start"])
        if changes.get("end") is not None:
            patch["end"] = _wire_time(changes["end"])
        body = self._api("PATCH", f"{GRAPH_API_URL}/me/events/{event_id}", access_token,
                         json=patch, headers=dict(_UTC_PREFERENCE))
        return self.parse(body, _from_wire)

    def delete_event(self, access_token: str, event_id: str) -> None:
        self._api("DELETE", f"{GRAPH_API_URL}/me/events/{event_id}", access_token)
