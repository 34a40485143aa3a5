from types import SimpleNamespace

import pytest
from openai import OpenAIError

from core.exceptions import DependencyUnavailable, IntegrationError
from integrations.ai import AIContentAdapter, decode_json_payload
from models.task import Task
from tests.conftest import personal_workspace_id, register


class ScriptedClient:
    """Mimics ``client.chat.completions.create`` with canned replies."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, model, messages):
        self.prompts.append(messages[0]["content"])
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


def _adapter(*replies):
    return AIContentAdapter(api_key=None, base_url=None, model="test-model", client=ScriptedClient(*replies))


def test_decode_fenced_array():
    result = decode_json_payload('Here you go:\n```json\n[{"title": "A"}, {"title": "B"}]\n```')
    assert result.ok
    assert result.value == [{"title": "A"}, {"title": "B"}]


def test_decode_skips_prose_and_respects_expectation():
    text = 'Sure! {"note": "ignored"} and then [1, 2, {"x": "]"}] trailing'
    assert decode_json_payload(text, "array").value == [1, 2, {"x": "]"}]
    assert decode_json_payload(text, "object").value == {"note": "ignored"}


@pytest.mark.parametrize("text", [None, "", "   ", "no json here", "[1, 2", "[1, 2,]"])
def test_decode_failures_never_raise(text):
    result = decode_json_payload(text, "array")
    assert result.ok is False
    assert result.error


def test_best_effort_methods_fall_back():
    adapter = _adapter("I could not do that", OpenAIError("rate limited"))
    assert adapter.extract_tasks("buy milk") == []
    tasks = [{"id": 1, "title": "A"}]
    assert adapter.prioritize_tasks(tasks) == tasks


def test_extract_tasks_drops_untitled_drafts():
    adapter = _adapter('```json\n[{"title": "Buy milk"}, {"description": "no title"}, "junk"]\n```')
    assert adapter.extract_tasks("buy milk") == [{"title": "Buy milk"}]


def test_unconfigured_adapter():
    adapter = AIContentAdapter(api_key=None, base_url=None, model="test-model")
    assert adapter.configured is False
    assert adapter.suggest_tasks({}) == []
    with pytest.raises(DependencyUnavailable):
        adapter.workspace_template("a bakery")


def test_strict_methods_raise_on_garbage():
    adapter = _adapter("not json at all")
    with pytest.raises(IntegrationError):
        adapter.compliance_checklist("kitchen", "hospitality", None)


def test_checklist_prompt_includes_industry_standards():
    client = ScriptedClient('[{"text": "Probe chicken"}]')
    adapter = AIContentAdapter(api_key=None, base_url=None, model="test-model", client=client)
    assert adapter.compliance_checklist("kitchen", "hospitality", None) == [{"text": "Probe chicken"}]
    assert "hospitality" in client.prompts[0]


# Routes


@pytest.fixture
def workspace(client):
    _, headers = register(client, "planner@example.com", "Pat Planner")
    return headers, personal_workspace_id(client, headers)


def test_extract_tasks_creates_tasks(client, db, fake_ai, workspace):
    headers, workspace_id = workspace
    fake_ai.drafts = [
        {"title": "Email landlord", "priority": "high", "estimatedTime": 15, "suggestedDeadline": "2026-03-01"},
        {"title": "Book plumber", "priority": "whenever", "subtasks": [{"title": "Get quotes"}, {"x": 1}]},
    ]
    response = client.post("/api/ai/extract-tasks", json={"workspace_id": workspace_id, "text": "notes"},
                           headers=headers)
    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert response.json()["message"] == "Successfully created 2 tasks from text"
    assert [(t["title"], t["priority"]) for t in tasks] == [("Email landlord", "high"), ("Book plumber", "medium")]
    assert tasks[0]["due_date"].startswith("2026-03-01")
    assert tasks[1]["subtasks"] == [{"title": "Get quotes", "completed": False}]
    assert db.query(Task).filter_by(workspace_id=workspace_id, ai_generated=True).count() == 2


def test_extract_tasks_with_nothing_found(client, workspace):
    headers, workspace_id = workspace
    response = client.post("/api/ai/extract-tasks", json={"workspace_id": workspace_id, "text": "hello"},
                           headers=headers)
    assert response.status_code == 200
    assert response.json()["tasks"] == []


def test_extract_tasks_tolerates_odd_draft_shapes(client, db, fake_ai, workspace):
    headers, workspace_id = workspace
    fake_ai.drafts = [
        {"title": "Call supplier", "tags": 5},
        {
            "title": "Count wine",
            "description": {"note": "cellar"},
            "category": ["stock"],
            "estimatedTime": "soon",
            "priority": ["high"],
            "subtasks": "none",
            "suggestedDeadline": 20260301,
        },
        {"title": "Fix fridge", "tags": ["urgent", 7, None], "estimatedTime": 22.5,
         "suggestedDeadline": "2026-03-01T10:00:00Z"},
        "not a draft",
        {"title": ""},
    ]
    response = client.post("/api/ai/extract-tasks", json={"workspace_id": workspace_id, "text": "notes"},
                           headers=headers)
    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert [t["title"] for t in tasks] == ["Call supplier", "Count wine", "Fix fridge"]
    assert tasks[0]["tags"] == []
    assert tasks[1]["description"] == '{"note": "cellar"}'
    assert tasks[1]["category"] == '["stock"]'
    assert tasks[1]["priority"] == "medium"
    assert tasks[1]["estimated_time"] is None
    assert tasks[1]["subtasks"] == []
    assert tasks[1]["due_date"] is None
    assert tasks[2]["tags"] == ["urgent", "7"]
    assert tasks[2]["estimated_time"] == 22
    assert tasks[2]["due_date"].startswith("2026-03-01T10:00")
    assert db.query(Task).filter_by(workspace_id=workspace_id).count() == 3


def test_prioritize_skips_unusable_ids(client, fake_ai, workspace):
    headers, workspace_id = workspace
    ids = [
        client.post(f"/api/workspaces/{workspace_id}/tasks", json={"title": title}, headers=headers).json()["task"]["id"]
        for title in ("First", "Second")
    ]
    fake_ai.ranking = [
        {"id": [ids[0]], "priorityScore": 90},
        {"id": {"value": ids[0]}},
        {"id": str(ids[1]), "priorityScore": 80},
        {"id": ids[1], "priorityScore": "very"},
    ]
    response = client.post("/api/ai/prioritize", json={"workspace_id": workspace_id, "task_ids": ids},
                           headers=headers)
    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert [t["id"] for t in tasks] == [ids[1], ids[0]]
    assert tasks[0]["priority_score"] is None


def test_prioritize_stores_scores_and_order(client, fake_ai, workspace):
    headers, workspace_id = workspace
    ids = [
        client.post(f"/api/workspaces/{workspace_id}/tasks", json={"title": title}, headers=headers).json()["task"]["id"]
        for title in ("Low", "High", "Skipped")
    ]
    fake_ai.ranking = [
        {"id": ids[1], "priorityScore": 140, "aiInsights": {"matrix": "urgent-important"}},
        {"id": ids[0], "priorityScore": 20},
        {"id": 999999, "priorityScore": 50},
    ]
    response = client.post("/api/ai/prioritize", json={"workspace_id": workspace_id, "task_ids": ids},
                           headers=headers)
    tasks = response.json()["tasks"]
    assert [t["id"] for t in tasks] == [ids[1], ids[0], ids[2]]
    assert tasks[0]["priority_score"] == 100
    assert tasks[0]["ai_insights"] == {"matrix": "urgent-important"}
    assert tasks[1]["priority_score"] == 20


def test_prioritize_unknown_tasks(client, workspace):
    headers, workspace_id = workspace
    response = client.post("/api/ai/prioritize", json={"workspace_id": workspace_id, "task_ids": [12345]},
                           headers=headers)
    assert response.status_code == 404
    assert response.json()["message"] == "No tasks found"


def test_plans_and_analysis(client, fake_ai, workspace):
    headers, workspace_id = workspace
    client.post(f"/api/workspaces/{workspace_id}/tasks", json={"title": "Open"}, headers=headers)
    client.post(f"/api/workspaces/{workspace_id}/tasks", json={"title": "Done", "status": "completed"},
                headers=headers)

    daily = client.post("/api/ai/daily-plan", json={"workspace_id": workspace_id, "date": "2026-02-03"},
                        headers=headers).json()
    assert daily["date"] == "2026-02-03"
    assert daily["tasks_included"] == 1

    weekly = client.post("/api/ai/weekly-plan", json={"workspace_id": workspace_id, "week_start": "2026-02-02"},
                         headers=headers).json()
    assert weekly["plan"] == {"weekStart": "2026-02-02", "count": 1}

    analysis = client.get("/api/ai/productivity-analysis", params={"workspace_id": workspace_id, "period": "30d"},
                          headers=headers).json()
    assert analysis["data_points"] == 1
    assert analysis["analysis"] == {"completed": 1}

    suggestions = client.post("/api/ai/suggest-tasks", json={"workspace_id": workspace_id, "time_of_day": "evening"},
                              headers=headers).json()
    assert suggestions["suggestions"][0]["reasoning"] == "evening"

    prep = client.post("/api/ai/meeting-prep", json={"title": "Supplier review"}, headers=headers).json()
    assert prep["preparation"] == {"agenda": ["Supplier review"]}


def test_ai_routes_respect_workspace_access(client, fake_ai, workspace):
    _, workspace_id = workspace
    _, stranger_h = register(client, "stranger@example.com")
    response = client.post("/api/ai/extract-tasks", json={"workspace_id": workspace_id, "text": "steal"},
                           headers=stranger_h)
    assert response.status_code == 403
    assert "extract_tasks" not in fake_ai.calls
