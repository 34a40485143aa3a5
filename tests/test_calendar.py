import json
from datetime import datetime, timedelta

import pytest
import requests

from core.exceptions import DependencyUnavailable, IntegrationError
from integrations.calendar import CalendarEvent, parse_provider_datetime
from integrations.google_calendar import GOOGLE_EVENTS_URL, GOOGLE_TOKEN_URL, GoogleCalendarClient
from integrations.outlook_calendar import GRAPH_API_URL, OutlookCalendarClient
from models.calendar_connection import CalendarConnection
from models.task import Task
from tests.conftest import personal_workspace_id, register


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.content = json.dumps(body).encode() if body is not None else b""

    def json(self):
        return self._body


class FakeSession:
    """Records outgoing calls and replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self):
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, data=None, timeout=None):
        self.calls.append(("POST", url, {"data": data}))
        return self._next()

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append((method, url, dict(kwargs, headers=headers)))
        return self._next()


def _google(*responses):
    session = FakeSession(*responses)
    return GoogleCalendarClient("gid", "gsecret", "https://app.example.com/cb", session=session), session


def _outlook(*responses):
    session = FakeSession(*responses)
    return OutlookCalendarClient("oid", "osecret", "https://app.example.com/cb", session=session), session


# Adapters


def test_parse_provider_datetime():
    assert parse_provider_datetime("2026-02-03T10:00:00Z") == datetime(2026, 2, 3, 10, 0)
    assert parse_provider_datetime("2026-02-03T20:00:00+10:00") == datetime(2026, 2, 3, 10, 0)
    assert parse_provider_datetime("2026-02-03T10:00:00.1234567") == datetime(2026, 2, 3, 10, 0, 0, 123456)
    assert parse_provider_datetime(None) is None


def test_google_exchange_and_refresh_keep_refresh_token():
    client, session = _google(
        FakeResponse(body={"access_token": "a1", "refresh_token": "r1", "expires_in": 1800}),
        FakeResponse(body={"access_token": "a2", "expires_in": 3600}),
    )
    tokens = client.exchange_code("code-1")
    assert (tokens.access_token, tokens.refresh_token, tokens.expires_in) == ("a1", "r1", 1800)

    refreshed = client.refresh("r1")
    assert (refreshed.access_token, refreshed.refresh_token) == ("a2", "r1")

    method, url, kwargs = session.calls[0]
    assert url == GOOGLE_TOKEN_URL
    assert kwargs["data"]["grant_type"] == "authorization_code"
    assert "scope" not in kwargs["data"]
    assert session.calls[1][2]["data"]["grant_type"] == "refresh_token"


def test_google_lists_timed_and_all_day_events():
    client, session = _google(FakeResponse(body={"items": [
        {
            "id": "e1", "summary": "Delivery", "htmlLink": "https://cal.example.com/e1",
            "start": {"dateTime": "2026-02-03T10:00:00Z"}, "end": {"dateTime": "2026-02-03T11:00:00Z"},
            "attendees": [{"email": "chef@example.com"}, {"displayName": "no email"}],
        },
        {"id": "e2", "start": {"date": "2026-02-04"}, "end": {"date": "2026-02-05"}},
    ]}))
    events = client.list_events("token", datetime(2026, 2, 1), datetime(2026, 2, 8))

    assert [e.id for e in events] == ["e1", "e2"]
    assert events[0].attendees == ["chef@example.com"]
    assert events[0].link == "https://cal.example.com/e1"
    assert events[1].title == "(No title)"
    assert events[1].start == datetime(2026, 2, 4)

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", GOOGLE_EVENTS_URL)
    assert kwargs["params"]["timeMin"] == "2026-02-01T00:00:00Z"
    assert kwargs["headers"]["Authorization"] == "Bearer token"


def test_google_update_sends_only_changed_fields():
    client, session = _google(FakeResponse(body={
        "id": "e1", "summary": "Renamed",
        "start": {"dateTime": "2026-02-03T10:00:00Z"}, "end": {"dateTime": "2026-02-03T11:00:00Z"},
    }))
    event = client.update_event("token", "e1", {"title": "Renamed", "location": None})
    assert event.title == "Renamed"
    assert session.calls[0][0] == "PATCH"
    assert session.calls[0][2]["json"] == {"summary": "Renamed"}


def test_google_errors_become_integration_errors():
    client, _ = _google(FakeResponse(status_code=401, body={"error": "invalid_grant"}))
    with pytest.raises(IntegrationError):
        client.exchange_code("bad")

    client, _ = _google(requests.ConnectionError("down"))
    with pytest.raises(IntegrationError):
        client.delete_event("token", "e1")


def test_google_delete_accepts_empty_reply():
    client, session = _google(FakeResponse(status_code=204))
    assert client.delete_event("token", "e1") is None
    assert session.calls[0][:2] == ("DELETE", f"{GOOGLE_EVENTS_URL}/e1")


def test_unconfigured_client():
    client = GoogleCalendarClient(None, None, None, session=FakeSession())
    with pytest.raises(DependencyUnavailable):
        client.exchange_code("code")
    with pytest.raises(DependencyUnavailable):
        client.authorization_url()


def test_authorization_url_carries_provider_params():
    client, _ = _google()
    url = client.authorization_url(state="7")
    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert "client_id=gid" in url
    assert "access_type=offline" in url
    assert "state=7" in url


def test_outlook_token_request_sends_scope():
    client, session = _outlook(FakeResponse(body={"access_token": "a1", "refresh_token": "r1"}))
    client.exchange_code("code-1")
    assert "offline_access" in session.calls[0][2]["data"]["scope"]


def test_outlook_profile_and_event_mapping():
    client, session = _outlook(
        FakeResponse(body={"id": "u1", "userPrincipalName": "boss@contoso.example.com", "displayName": "Boss"}),
        FakeResponse(body={
            "id": "o1", "subject": "Stock meeting", "webLink": "https://outlook.example.com/o1",
            "body": {"content": "<p>Agenda</p>"},
            "location": {"displayName": "Back office"},
            "start": {"dateTime": "2026-02-03T10:00:00.0000000"},
            "end": {"dateTime": "2026-02-03T10:30:00.0000000"},
            "attendees": [{"emailAddress": {"address": "chef@example.com"}}],
        }),
    )
    profile = client.get_profile("token")
    assert (profile.email, profile.name) == ("boss@contoso.example.com", "Boss")

    event = client.create_event("token", CalendarEvent(
        title="Stock meeting",
        start=datetime(2026, 2, 3, 10, 0),
        end=datetime(2026, 2, 3, 10, 30),
        attendees=["chef@example.com"],
        location="Back office",
    ))
    assert event.id == "o1"
    assert event.location == "Back office"
    assert event.end == datetime(2026, 2, 3, 10, 30)

    method, url, kwargs = session.calls[1]
    assert (method, url) == ("POST", f"{GRAPH_API_URL}/me/calendar/events")
    assert kwargs["headers"]["Prefer"] == 'outlook.timezone="UTC"'
    assert kwargs["json"]["attendees"] == [{"emailAddress": {"address": "chef@example.com"}, "type": "required"}]


class TextResponse:
    def __init__(self, text, status_code=200):
        self.status_code = status_code
        self.content = text.encode()

    def json(self):
        return json.loads(self.content)


def test_non_json_reply_becomes_integration_error():
    client, _ = _google(TextResponse("<html>gateway</html>"))
    with pytest.raises(IntegrationError):
        client.exchange_code("code")

    client, _ = _outlook(TextResponse("<html>gateway</html>"))
    with pytest.raises(IntegrationError):
        client.list_events("token", datetime(2026, 2, 1), datetime(2026, 2, 8))


def test_token_reply_without_access_token():
    client, _ = _google(FakeResponse(body={"error": "weird"}))
    with pytest.raises(IntegrationError):
        client.exchange_code("code")

    client, _ = _outlook(FakeResponse(body=["not", "an", "object"]))
    with pytest.raises(IntegrationError):
        client.refresh("r1")


def test_malformed_event_payloads():
    client, _ = _google(FakeResponse(body={"email": "no-id@example.com"}))
    with pytest.raises(IntegrationError):
        client.get_profile("token")

    client, _ = _google(FakeResponse(body={
        "id": "e1", "start": {"dateTime": "yesterday-ish"}, "end": {"dateTime": "2026-02-03T11:00:00Z"},
    }))
    with pytest.raises(IntegrationError):
        client.get_event("token", "e1")


def test_google_get_event():
    client, session = _google(FakeResponse(body={
        "id": "e9", "summary": "Wine tasting", "location": "Cellar",
        "start": {"dateTime": "2026-03-01T18:00:00Z"}, "end": {"dateTime": "2026-03-01T20:00:00Z"},
    }))
    event = client.get_event("token", "e9")
    assert (event.id, event.title, event.location) == ("e9", "Wine tasting", "Cellar")
    assert event.start == datetime(2026, 3, 1, 18, 0)
    assert session.calls[0][:2] == ("GET", f"{GOOGLE_EVENTS_URL}/e9")


def test_outlook_get_event():
    client, session = _outlook(FakeResponse(body={
        "id": "o9", "subject": "Supplier call",
        "start": {"dateTime": "2026-03-02T09:00:00.0000000"},
        "end": {"dateTime": "2026-03-02T09:15:00.0000000"},
    }))
    event = client.get_event("token", "o9")
    assert (event.id, event.title, event.description) == ("o9", "Supplier call", "")
    assert event.end == datetime(2026, 3, 2, 9, 15)
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", f"{GRAPH_API_URL}/me/events/o9")
    assert kwargs["headers"]["Prefer"] == 'outlook.timezone="UTC"'


# Routes


@pytest.fixture
def user(client):
    _, headers = register(client, "cal@example.com", "Cal Endar")
    return headers


def _connect(client, headers, provider="google"):
    response = client.post(f"/api/calendar/{provider}/connect", json={"code": "auth-code"}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _soon(hours=24):
    return (datetime.utcnow() + timedelta(hours=hours)).replace(microsecond=0)


def test_connect_status_disconnect(client, user):
    assert client.get("/api/calendar/google/status", headers=user).json()["connected"] is False

    body = _connect(client, user)
    assert body["email"] == "owner@calendar.example.com"
    status = client.get("/api/calendar/google/status", headers=user).json()
    assert status["connected"] is True
    assert client.get("/api/calendar/outlook/status", headers=user).json()["connected"] is False

    assert client.post("/api/calendar/google/disconnect", headers=user).status_code == 200
    assert client.get("/api/calendar/google/status", headers=user).json()["connected"] is False
    assert client.post("/api/calendar/google/disconnect", headers=user).status_code == 400


def test_events_need_a_connection(client, user):
    response = client.get("/api/calendar/google/events", headers=user)
    assert response.status_code == 400
    assert response.json()["message"] == "Google calendar not connected"


def test_unknown_provider_is_rejected(client, user):
    assert client.get("/api/calendar/icloud/status", headers=user).status_code == 400


def test_auth_url(client, user):
    url = client.get("/api/calendar/outlook/auth-url", headers=user).json()["url"]
    assert url.startswith("https://calendar.example.com/auth?")
    assert "client_id=client-id" in url


def test_event_crud(client, user, calendars):
    _connect(client, user)
    start = _soon()
    created = client.post("/api/calendar/google/events", json={
        "title": "Supplier call",
        "start": start.isoformat(),
        "end": (start + timedelta(minutes=30)).isoformat(),
        "attendees": ["rep@example.com"],
    }, headers=user)
    assert created.status_code == 201
    event_id = created.json()["event"]["id"]

    listed = client.get("/api/calendar/google/events", headers=user).json()
    assert [e["id"] for e in listed["events"]] == [event_id]

    updated = client.put(f"/api/calendar/google/events/{event_id}", json={"title": "Supplier review"}, headers=user)
    assert updated.json()["event"]["title"] == "Supplier review"

    assert client.delete(f"/api/calendar/google/events/{event_id}", headers=user).status_code == 200
    assert calendars["google"].events == {}


def test_event_end_must_follow_start(client, user):
    _connect(client, user)
    start = _soon()
    response = client.post("/api/calendar/google/events", json={
        "title": "Backwards", "start": start.isoformat(), "end": (start - timedelta(hours=1)).isoformat(),
    }, headers=user)
    assert response.status_code == 400


def test_expiring_token_is_refreshed(client, db, user, calendars):
    _connect(client, user)
    connection = db.query(CalendarConnection).one()
    connection.expires_at = datetime.utcnow() + timedelta(minutes=2)
    db.commit()

    assert client.get("/api/calendar/google/events", headers=user).status_code == 200
    assert calendars["google"].refreshed == ["refresh-1"]

    db.expire_all()
    connection = db.query(CalendarConnection).one()
    assert connection.access_token == "access-2"
    assert connection.refresh_token == "refresh-1"
    assert connection.expires_at > datetime.utcnow() + timedelta(minutes=30)
    assert connection.last_synced_at is not None


def test_expired_token_without_refresh_token(client, db, user):
    _connect(client, user)
    connection = db.query(CalendarConnection).one()
    connection.expires_at = datetime.utcnow() - timedelta(minutes=1)
    connection.refresh_token = None
    db.commit()

    response = client.get("/api/calendar/google/events", headers=user)
    assert response.status_code == 400
    assert "reconnect" in response.json()["message"]


def test_sync_task_uses_due_date_and_estimate(client, user, calendars):
    _connect(client, user)
    workspace_id = personal_workspace_id(client, user)
    undated = client.post(f"/api/workspaces/{workspace_id}/tasks", json={"title": "Someday"},
                          headers=user).json()["task"]
    response = client.post(f"/api/calendar/google/sync-task/{workspace_id}/{undated['id']}", headers=user)
    assert response.status_code == 400
    assert response.json()["message"] == "Task must have a due date to sync to calendar"

    due = _soon()
    task = client.post(f"/api/workspaces/{workspace_id}/tasks", json={
        "title": "Menu tasting", "due_date": due.isoformat(), "estimated_time": 45,
    }, headers=user).json()["task"]
    synced = client.post(f"/api/calendar/google/sync-task/{workspace_id}/{task['id']}", headers=user)
    assert synced.status_code == 200

    event = next(iter(calendars["google"].events.values()))
    assert event.title == "Menu tasting"
    assert event.start == due
    assert event.end == due + timedelta(minutes=45)


def test_import_events_as_meeting_tasks(client, db, user, calendars):
    _connect(client, user)
    workspace_id = personal_workspace_id(client, user)
    start = _soon(48)
    fake = calendars["google"]
    fake.create_event("token", CalendarEvent(id="keep", title="Staff meeting", start=start,
                                             end=start + timedelta(minutes=90)))
    fake.create_event("token", CalendarEvent(id="skip", title="Dentist", start=start,
                                             end=start + timedelta(minutes=30)))

    response = client.post(f"/api/calendar/google/import/{workspace_id}", json={"event_ids": ["keep"]},
                           headers=user)
    assert response.status_code == 201
    tasks = response.json()["tasks"]
    assert [t["title"] for t in tasks] == ["Staff meeting"]
    assert tasks[0]["category"] == "meeting"
    assert tasks[0]["estimated_time"] == 90
    assert db.query(Task).filter_by(workspace_id=workspace_id, category="meeting").count() == 1
