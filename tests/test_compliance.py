import pytest

from api.v1.compliance.services import all_completed, with_item_ids
from models.compliance import ComplianceTemplate
from tests.conftest import personal_workspace_id, register


@pytest.fixture
def workspace(client):
    _, headers = register(client, "safety@example.com", "Sid Safety")
    return headers, personal_workspace_id(client, headers)


def test_all_completed_needs_items():
    assert all_completed([]) is False
    assert all_completed([{"completed": True}, {"completed": True}]) is True
    assert all_completed([{"completed": True}, {"completed": False}]) is False


def test_item_ids_are_kept_or_assigned():
    items = with_item_ids([{"id": "item-keep", "text": "A"}, {"text": "B"}])
    assert items[0]["id"] == "item-keep"
    assert items[1]["id"].startswith("item-")
    assert len(items[1]["id"]) == len("item-") + 12


def test_generate_returns_items_without_saving(client, db, fake_ai, workspace):
    headers, workspace_id = workspace
    fake_ai.checklist = [
        {"text": "Check fridge temperature", "required": True, "notes": "FSANZ 3.2.2"},
        {"text": "Log cleaning", "required": False},
    ]
    response = client.post(
        f"/api/workspaces/{workspace_id}/compliance/templates/generate",
        json={"prompt": "daily kitchen checks", "industry": "hospitality"},
        headers=headers,
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert [i["text"] for i in items] == ["Check fridge temperature", "Log cleaning"]
    assert [i["required"] for i in items] == [True, False]
    assert all(i["completed"] is False and i["id"].startswith("item-") for i in items)
    assert db.query(ComplianceTemplate).count() == 0


def test_instance_from_template_completes_when_every_item_is_done(client, workspace):
    headers, workspace_id = workspace
    base = f"/api/workspaces/{workspace_id}/compliance"
    template = client.post(f"{base}/templates", json={
        "name": "Opening checks",
        "industry": "hospitality",
        "items": [{"text": "Unlock fire exits"}, {"text": "Check hot holding"}],
    }, headers=headers).json()["template"]
    assert all(item["id"] for item in template["items"])

    created = client.post(f"{base}/instances/from-template/{template['id']}", json={}, headers=headers)
    assert created.status_code == 201
    instance = created.json()["instance"]
    assert instance["name"] == "Opening checks"
    assert instance["status"] == "in_progress"
    assert instance["template_id"] == template["id"]

    items = [dict(item, completed=True) for item in instance["items"]]
    items[1]["completed"] = False
    partial = client.put(f"{base}/instances/{instance['id']}", json={"items": items}, headers=headers)
    assert partial.json()["instance"]["status"] == "in_progress"

    items[1]["completed"] = True
    done = client.put(f"{base}/instances/{instance['id']}", json={"items": items}, headers=headers).json()
    assert done["instance"]["status"] == "completed"

    reopened = client.put(f"{base}/instances/{instance['id']}", json={"status": "in_progress"}, headers=headers)
    assert reopened.json()["instance"]["status"] == "in_progress"


def test_instance_rejects_foreign_template(client, workspace):
    headers, workspace_id = workspace
    _, other_h = register(client, "other@example.com")
    other_workspace = personal_workspace_id(client, other_h)
    foreign = client.post(f"/api/workspaces/{other_workspace}/compliance/templates",
                          json={"name": "Theirs"}, headers=other_h).json()["template"]

    response = client.post(f"/api/workspaces/{workspace_id}/compliance/instances",
                           json={"name": "Mine", "template_id": foreign["id"]}, headers=headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Template not found"

    from_template = client.post(
        f"/api/workspaces/{workspace_id}/compliance/instances/from-template/{foreign['id']}",
        json={}, headers=headers,
    )
    assert from_template.status_code == 404
