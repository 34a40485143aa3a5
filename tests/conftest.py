"""Shared fixtures: a fresh in-memory app per test with fake outbound clients."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.config import Settings  # noqa: E402
from integrations.billing import BillingClient  # noqa: E402
from integrations.calendar import (  # noqa: E402
    CalendarClient,
    CalendarEvent,
    CalendarProfile,
    TokenPair,
    to_utc_naive,
)
from integrations.email import EmailResult  # noqa: E402
from main import create_app  # noqa: E402

WEBHOOK_SECRET = "whsec_test"


class FakeAI:
    """Stands in for AIContentAdapter; each answer can be replaced per test."""

    def __init__(self):
        self.drafts: List[Dict[str, Any]] = []
        self.ranking: Optional[List[Dict[str, Any]]] = None
        self.template: Dict[str, Any] = {"name": "Cafe Ops", "sample_tasks": []}
        self.checklist: List[Dict[str, Any]] = []
        self.plan: Optional[Dict[str, Any]] = None
        self.week: Optional[Dict[str, Any]] = None
        # Methods named here answer None, as the adapter does when the model output is unusable
        self.failing: set = set()
        self.calls: List[str] = []

    def extract_tasks(self, text):
        self.calls.append("extract_tasks")
        return list(self.drafts)

    def prioritize_tasks(self, tasks):
        self.calls.append("prioritize_tasks")
        return self.ranking if self.ranking is not None else tasks

    def suggest_tasks(self, context):
        self.calls.append("suggest_tasks")
        return [{"title": "Review inbox", "reasoning": context["time_of_day"]}]

    def daily_plan(self, tasks, preferences=None):
        self.calls.append("daily_plan")
        if "daily_plan" in self.failing:
            return None
        if self.plan is not None:
            return self.plan
        return {"schedule": [{"taskId": t["id"]} for t in tasks]}

    def weekly_plan(self, tasks, week_start, preferences=None):
        self.calls.append("weekly_plan")
        if "weekly_plan" in self.failing:
            return None
        if self.week is not None:
            return self.week
        return {"weekStart": week_start, "count": len(tasks)}

    def meeting_prep(self, info):
        self.calls.append("meeting_prep")
        if "meeting_prep" in self.failing:
            return None
        return {"agenda": [info["title"]]}

    def productivity_analysis(self, completed_tasks, time_data):
        self.calls.append("productivity_analysis")
        return {"completed": time_data["tasksCompleted"]}

    def workspace_template(self, prompt):
        self.calls.append("workspace_template")
        return self.template

    def compliance_checklist(self, prompt, industry, category):
        self.calls.append("compliance_checklist")
        return list(self.checklist)


class FakeEmail:
    def __init__(self):
        self.assignments: List[Dict[str, Any]] = []
        self.invites: List[Dict[str, Any]] = []

    def send_task_assignment(self, to_email, assignee_name, task_title, assigner_name,
                             workspace_name, due_date=None):
        self.assignments.append({"to": to_email, "task": task_title, "by": assigner_name})
        return EmailResult(sent=True)

    def send_workspace_invite(self, to_email, workspace_name, inviter):
        self.invites.append({"to": to_email, "workspace": workspace_name, "by": inviter})
        return EmailResult(sent=True)


class FakeCalendar(CalendarClient):
    """In-memory provider keeping events in a dict."""

    provider = "google"
    auth_url = "https://calendar.example.com/auth"

    def __init__(self, provider="google"):
        super().__init__("client-id", "client-secret", "https://app.example.com/callback")
        self.provider = provider
        self.events: Dict[str, CalendarEvent] = {}
        self.refreshed: List[str] = []
        self.issued = 0

    def exchange_code(self, code):
        self.issued += 1
        return TokenPair(access_token=f"access-{self.issued}", refresh_token="refresh-1", expires_in=3600)

    def refresh(self, refresh_token):
        self.refreshed.append(refresh_token)
        self.issued += 1
        return TokenPair(access_token=f"access-{self.issued}", refresh_token=None, expires_in=3600)

    def get_profile(self, access_token):
        return CalendarProfile(id="42", email="owner@calendar.example.com", name="Owner")

    def create_event(self, access_token, event):
        event.start, event.end = to_utc_naive(event.start), to_utc_naive(event.end)
        event.id = event.id or f"evt-{len(self.events) + 1}"
        self.events[event.id] = event
        return event

    def list_events(self, access_token, start, end):
        return [e for e in self.events.values() if start <= e.start <= end]

    def get_event(self, access_token, event_id):
        return self.events[event_id]

    def update_event(self, access_token, event_id, changes):
        event = self.events[event_id]
        for key, value in changes.items():
            if value is not None:
                setattr(event, key, value)
        return event

    def delete_event(self, access_token, event_id):
        self.events.pop(event_id, None)


@pytest.fixture
def settings():
    return Settings(
        DB_URL="sqlite://",
        JWT_SECRET="test-secret",
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        GOOGLE_CLIENT_ID=None,
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
    )


@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def fake_email():
    return FakeEmail()


@pytest.fixture
def calendars():
    return {"google": FakeCalendar("google"), "outlook": FakeCalendar("outlook")}


@pytest.fixture
def app(settings, fake_ai, fake_email, calendars):
    billing = BillingClient(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)
    return create_app(
        settings,
        ai=fake_ai,
        email=fake_email,
        billing=billing,
        google=calendars["google"],
        outlook=calendars["outlook"],
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()


def register(client, email, name="Test User", password="secret123"):
    response = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


def team_workspace(client, headers, name="Harbour Cafe"):
    response = client.post("/api/workspaces", json={"name": name, "type": "team"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["workspace"]


def personal_workspace_id(client, headers):
    workspaces = client.get("/api/workspaces", headers=headers).json()["workspaces"]
    return next(w["id"] for w in workspaces if w["is_default"])


def add_member(client, headers, workspace_id, email, role="member"):
    return client.post(
        f"/api/workspaces/{workspace_id}/members",
        json={"user_email": email, "role": role},
        headers=headers,
    )


@pytest.fixture
def team(client):
    """A team workspace with an owner, an admin and a plain member."""
    owner, owner_h = register(client, "owner@example.com", "Olive Owner")
    admin, admin_h = register(client, "admin@example.com", "Ada Admin")
    member, member_h = register(client, "member@example.com", "Max Member")
    workspace = team_workspace(client, owner_h)
    admin_row = add_member(client, owner_h, workspace["id"], admin["email"], "admin").json()["member"]
    member_row = add_member(client, owner_h, workspace["id"], member["email"]).json()["member"]
    return {
        "workspace": workspace,
        "owner": owner, "owner_h": owner_h,
        "admin": admin, "admin_h": admin_h, "admin_row": admin_row,
        "member": member, "member_h": member_h, "member_row": member_row,
    }

