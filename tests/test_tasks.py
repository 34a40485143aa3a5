from tests.conftest import personal_workspace_id, register


def _tasks_url(workspace_id, suffix=""):
    return f"/api/workspaces/{workspace_id}/tasks{suffix}"


def test_task_crud_in_personal_workspace(client):
    _, headers = register(client, "solo@example.com")
    workspace_id = personal_workspace_id(client, headers)

    created = client.post(_tasks_url(workspace_id), json={"title": "Count the float", "priority": "high"},
                          headers=headers)
    assert created.status_code == 201
    task = created.json()["task"]
    assert task["status"] == "pending"
    assert task["completed_at"] is None

    fetched = client.get(_tasks_url(workspace_id, f"/{task['id']}"), headers=headers)
    assert fetched.json()["task"]["title"] == "Count the float"

    deleted = client.delete(_tasks_url(workspace_id, f"/{task['id']}"), headers=headers)
    assert deleted.status_code == 200
    missing = client.get(_tasks_url(workspace_id, f"/{task['id']}"), headers=headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Task not found"


def test_completion_stamps_and_clears_completed_at(client):
    _, headers = register(client, "solo@example.com")
    workspace_id = personal_workspace_id(client, headers)
    task = client.post(_tasks_url(workspace_id), json={"title": "Close till"}, headers=headers).json()["task"]

    done = client.put(_tasks_url(workspace_id, f"/{task['id']}"), json={"status": "completed"}, headers=headers)
    assert done.json()["task"]["completed_at"] is not None

    reopened = client.put(_tasks_url(workspace_id, f"/{task['id']}"), json={"status": "pending"}, headers=headers)
    assert reopened.json()["task"]["completed_at"] is None


def test_null_clears_only_clearable_fields(client):
    _, headers = register(client, "solo@example.com")
    workspace_id = personal_workspace_id(client, headers)
    task = client.post(
        _tasks_url(workspace_id),
        json={"title": "Call supplier", "description": "Ask about milk", "due_date": "2026-03-01T09:00:00"},
        headers=headers,
    ).json()["task"]

    response = client.put(
        _tasks_url(workspace_id, f"/{task['id']}"),
        json={"description": None, "title": None},
        headers=headers,
    )
    updated = response.json()["task"]
    assert updated["description"] is None
    assert updated["title"] == "Call supplier"
    assert updated["due_date"].startswith("2026-03-01")


def test_filters_and_pagination(client):
    _, headers = register(client, "solo@example.com")
    workspace_id = personal_workspace_id(client, headers)
    for title, priority in [("Mop floor", "low"), ("Fix fridge", "urgent"), ("Fix oven", "high")]:
        client.post(_tasks_url(workspace_id), json={"title": title, "priority": priority}, headers=headers)

    urgent = client.get(_tasks_url(workspace_id), params={"priority": "urgent"}, headers=headers).json()
    assert [t["title"] for t in urgent["tasks"]] == ["Fix fridge"]

    search = client.get(_tasks_url(workspace_id), params={"search": "fix"}, headers=headers).json()
    assert {t["title"] for t in search["tasks"]} == {"Fix fridge", "Fix oven"}

    page = client.get(_tasks_url(workspace_id), params={"limit": 2, "page": 2}, headers=headers).json()
    assert page["total"] == 3
    assert page["pages"] == 2
    assert page["count"] == 1

    invalid = client.get(_tasks_url(workspace_id), params={"status": "someday"}, headers=headers)
    assert invalid.status_code == 400


def test_add_subtask(client):
    _, headers = register(client, "solo@example.com")
    workspace_id = personal_workspace_id(client, headers)
    task = client.post(
        _tasks_url(workspace_id),
        json={"title": "Deep clean", "subtasks": [{"title": "Grill"}]},
        headers=headers,
    ).json()["task"]

    response = client.post(_tasks_url(workspace_id, f"/{task['id']}/subtasks"), json={"title": "Hood"},
                           headers=headers)
    assert response.status_code == 201
    assert [s["title"] for s in response.json()["task"]["subtasks"]] == ["Grill", "Hood"]


def test_assignment_emails_the_assignee(client, fake_email, team):
    workspace_id = team["workspace"]["id"]
    task = client.post(
        _tasks_url(workspace_id),
        json={"title": "Restock bar", "assigned_to": team["member"]["id"]},
        headers=team["owner_h"],
    ).json()["task"]
    assert task["assignee"]["email"] == "member@example.com"
    assert fake_email.assignments == [{"to": "member@example.com", "task": "Restock bar", "by": "Olive Owner"}]

    # Unchanged assignee sends nothing
    client.put(_tasks_url(workspace_id, f"/{task['id']}"), json={"title": "Restock bar fridge"},
               headers=team["owner_h"])
    assert len(fake_email.assignments) == 1

    # Self-assignment sends nothing
    client.put(_tasks_url(workspace_id, f"/{task['id']}"), json={"assigned_to": team["admin"]["id"]},
               headers=team["admin_h"])
    assert len(fake_email.assignments) == 1


def test_assignee_must_belong_to_workspace(client, team):
    outsider, _ = register(client, "outsider@example.com")
    response = client.post(
        _tasks_url(team["workspace"]["id"]),
        json={"title": "Secret", "assigned_to": outsider["id"]},
        headers=team["owner_h"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Assignee must be a member of this workspace"


def test_members_write_but_only_managers_delete(client, team):
    workspace_id = team["workspace"]["id"]
    task = client.post(_tasks_url(workspace_id), json={"title": "Wipe tables"}, headers=team["member_h"])
    assert task.status_code == 201
    task_id = task.json()["task"]["id"]

    edited = client.put(_tasks_url(workspace_id, f"/{task_id}"), json={"status": "in-progress"},
                        headers=team["member_h"])
    assert edited.status_code == 200

    denied = client.delete(_tasks_url(workspace_id, f"/{task_id}"), headers=team["member_h"])
    assert denied.status_code == 403
    assert denied.json()["message"] == "Only owners and admins can delete this task"
    assert client.delete(_tasks_url(workspace_id, f"/{task_id}"), headers=team["admin_h"]).status_code == 200


def test_outsider_cannot_see_tasks(client, team):
    _, outsider_h = register(client, "outsider@example.com")
    response = client.get(_tasks_url(team["workspace"]["id"]), headers=outsider_h)
    assert response.status_code == 403
