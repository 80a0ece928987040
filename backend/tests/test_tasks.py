"""Task API tests."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from taskmanager.models import Task
from taskmanager.models.base import utcnow


def _future(days: int = 3) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


async def _create_task(client, headers, **fields):
    payload = {"title": "Task"}
    payload.update(fields)
    response = await client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_task_defaults(client, alice):
    user, headers = alice
    task = await _create_task(client, headers, title="  Write report  ", tags=["Work", "work", " urgent "])
    assert task["title"] == "Write report"
    assert task["status"] == "pending"
    assert task["priority"] == "medium"
    assert task["progression"] == 0
    assert task["userId"] == user["id"]
    assert task["tags"] == ["work", "urgent"]
    assert task["isArchived"] is False
    assert task["completedAt"] is None
    assert task["daysUntilDeadline"] is None


@pytest.mark.asyncio
async def test_create_task_requires_title(client, auth_headers):
    response = await client.post("/api/tasks", json={"description": "no title"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_task_rejects_past_deadline(client, auth_headers):
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = await client.post("/api/tasks", json={"title": "Late", "deadline": past}, headers=auth_headers)
    assert response.status_code == 400
    assert "Deadline must be in the future" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_task_rejects_unknown_status(client, auth_headers):
    response = await client.post("/api/tasks", json={"title": "X", "status": "done"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_task_with_foreign_category_is_rejected(client, auth_headers, bob):
    _, bob_headers = bob
    category = (await client.post("/api/categories", json={"name": "Bob's"}, headers=bob_headers)).json()
    response = await client.post(
        "/api/tasks", json={"title": "Sneaky", "category": category["id"]}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Category not found"


@pytest.mark.asyncio
async def test_create_task_with_deadline_and_subtasks(client, auth_headers):
    task = await _create_task(
        client,
        auth_headers,
        title="Plan trip",
        deadline=_future(5),
        subtasks=[{"title": "Book flights", "isCompleted": True}, {"title": "Book hotel"}],
    )
    assert task["daysUntilDeadline"] == 5
    assert task["isOverdue"] is False
    assert [s["title"] for s in task["subtasks"]] == ["Book flights", "Book hotel"]
    assert task["subtasks"][0]["completedAt"] is not None
    assert task["subtaskCompletionRate"] == 50


@pytest.mark.asyncio
async def test_tasks_are_private_to_their_owner(client, auth_headers, bob):
    _, bob_headers = bob
    task = await _create_task(client, auth_headers, title="Private")

    assert (await client.get(f"/api/tasks/{task['id']}", headers=bob_headers)).status_code == 404
    assert (await client.put(f"/api/tasks/{task['id']}", json={"title": "Hijack"}, headers=bob_headers)).status_code == 404
    assert (await client.delete(f"/api/tasks/{task['id']}", headers=bob_headers)).status_code == 404

    listing = (await client.get("/api/tasks", headers=bob_headers)).json()
    assert listing["total"] == 0


@pytest.mark.asyncio
async def test_list_tasks_pagination(client, auth_headers):
    for i in range(12):
        await _create_task(client, auth_headers, title=f"Task {i}")

    first = (await client.get("/api/tasks?pageSize=5", headers=auth_headers)).json()
    assert first["page"] == 1
    assert first["pages"] == 3
    assert first["total"] == 12
    assert first["hasMore"] is True
    # newest first
    assert first["tasks"][0]["title"] == "Task 11"

    last = (await client.get("/api/tasks?pageSize=5&pageNumber=3", headers=auth_headers)).json()
    assert len(last["tasks"]) == 2
    assert last["hasMore"] is False

    beyond = (await client.get("/api/tasks?pageSize=5&pageNumber=9", headers=auth_headers)).json()
    assert beyond["tasks"] == []
    assert beyond["page"] == 9
    assert beyond["total"] == 12


@pytest.mark.asyncio
async def test_list_tasks_bad_paging_values_fall_back(client, auth_headers):
    await _create_task(client, auth_headers)
    data = (await client.get("/api/tasks?pageNumber=abc&pageSize=-3", headers=auth_headers)).json()
    assert data["page"] == 1
    assert data["pages"] == 1
    assert len(data["tasks"]) == 1


@pytest.mark.asyncio
async def test_list_tasks_filters(client, auth_headers):
    await _create_task(client, auth_headers, title="Quarterly report", priority="high")
    await _create_task(client, auth_headers, title="Groceries", description="milk and REPORT paper")
    await _create_task(client, auth_headers, title="Fix bike", tags=["Report-Card"])
    await _create_task(client, auth_headers, title="Call mom", status="in-progress")

    keyword = (await client.get("/api/tasks?keyword=report", headers=auth_headers)).json()
    assert keyword["total"] == 3

    status = (await client.get("/api/tasks?status=in-progress", headers=auth_headers)).json()
    assert [t["title"] for t in status["tasks"]] == ["Call mom"]

    priority = (await client.get("/api/tasks?priority=high", headers=auth_headers)).json()
    assert [t["title"] for t in priority["tasks"]] == ["Quarterly report"]


@pytest.mark.asyncio
async def test_list_tasks_keyword_is_literal(client, auth_headers):
    await _create_task(client, auth_headers, title="100% done")
    await _create_task(client, auth_headers, title="1000 things")
    data = (await client.get("/api/tasks", params={"keyword": "100%"}, headers=auth_headers)).json()
    assert [t["title"] for t in data["tasks"]] == ["100% done"]


@pytest.mark.asyncio
async def test_list_tasks_keyword_matches_whole_tags_only(client, auth_headers):
    await _create_task(client, auth_headers, title="Plain")
    await _create_task(client, auth_headers, title="Other", tags=["home", "work"])

    for keyword in ("[", ", ", "\"", "ork\",\"ho"):
        data = (await client.get("/api/tasks", params={"keyword": keyword}, headers=auth_headers)).json()
        assert data["total"] == 0, keyword

    data = (await client.get("/api/tasks", params={"keyword": "ork"}, headers=auth_headers)).json()
    assert [t["title"] for t in data["tasks"]] == ["Other"]


@pytest.mark.asyncio
async def test_list_tasks_keyword_matches_accented_tag(client, auth_headers):
    await _create_task(client, auth_headers, title="Pastry run", tags=["Café"])
    await _create_task(client, auth_headers, title="Cafeteria menu")

    data = (await client.get("/api/tasks", params={"keyword": "café"}, headers=auth_headers)).json()
    assert data["total"] == 1
    assert [t["title"] for t in data["tasks"]] == ["Pastry run"]


@pytest.mark.asyncio
async def test_list_tasks_deadline_range(client, auth_headers):
    await _create_task(client, auth_headers, title="Soon", deadline=_future(2))
    await _create_task(client, auth_headers, title="Later", deadline=_future(20))
    await _create_task(client, auth_headers, title="Someday")

    params = {"dueBefore": _future(10)}
    before = (await client.get("/api/tasks", params=params, headers=auth_headers)).json()
    assert [t["title"] for t in before["tasks"]] == ["Soon"]

    params = {"dueAfter": _future(10)}
    after = (await client.get("/api/tasks", params=params, headers=auth_headers)).json()
    assert [t["title"] for t in after["tasks"]] == ["Later"]


@pytest.mark.asyncio
async def test_archived_tasks_hidden_by_default(client, auth_headers):
    task = await _create_task(client, auth_headers, title="Old news")
    await _create_task(client, auth_headers, title="Fresh")

    response = await client.put(f"/api/tasks/{task['id']}/archive", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["task"]["isArchived"] is True
    assert response.json()["message"] == "Task archived successfully"

    default = (await client.get("/api/tasks", headers=auth_headers)).json()
    assert [t["title"] for t in default["tasks"]] == ["Fresh"]

    everything = (await client.get("/api/tasks?includeArchived=true", headers=auth_headers)).json()
    assert everything["total"] == 2

    # archived tasks are still reachable directly
    fetched = (await client.get(f"/api/tasks/{task['id']}", headers=auth_headers)).json()
    assert fetched["isArchived"] is True
    assert fetched["archivedAt"] is not None

    restored = await client.put(f"/api/tasks/{task['id']}/archive", headers=auth_headers)
    assert restored.json()["task"]["isArchived"] is False


@pytest.mark.asyncio
async def test_status_lifecycle(client, auth_headers):
    task = await _create_task(client, auth_headers, progression=20)

    done = (await client.put(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=auth_headers)).json()
    assert done["status"] == "completed"
    assert done["progression"] == 100
    assert done["completedAt"] is not None

    again = (await client.put(f"/api/tasks/{task['id']}", json={"title": "Renamed"}, headers=auth_headers)).json()
    assert again["completedAt"] == done["completedAt"]

    reopened = (await client.put(f"/api/tasks/{task['id']}", json={"status": "in-progress"}, headers=auth_headers)).json()
    assert reopened["completedAt"] is None
    assert reopened["progression"] == 50


@pytest.mark.asyncio
async def test_update_task_partial_fields(client, auth_headers):
    task = await _create_task(client, auth_headers, title="Draft", description="v1", deadline=_future())

    updated = (
        await client.put(
            f"/api/tasks/{task['id']}",
            json={"priority": "urgent", "deadline": None, "tags": ["A"]},
            headers=auth_headers,
        )
    ).json()
    assert updated["priority"] == "urgent"
    assert updated["deadline"] is None
    assert updated["tags"] == ["a"]
    assert updated["title"] == "Draft"
    assert updated["description"] == "v1"


@pytest.mark.asyncio
async def test_update_task_subtasks(client, auth_headers):
    task = await _create_task(client, auth_headers, subtasks=[{"title": "one"}, {"title": "two"}])
    updated = (
        await client.put(
            f"/api/tasks/{task['id']}",
            json={"subtasks": [{"title": "two", "isCompleted": True}, {"title": "three"}]},
            headers=auth_headers,
        )
    ).json()
    assert [s["title"] for s in updated["subtasks"]] == ["two", "three"]
    assert updated["subtaskCompletionRate"] == 50


@pytest.mark.asyncio
async def test_delete_task(client, auth_headers):
    task = await _create_task(client, auth_headers, title="Temporary")
    response = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["deletedTask"] == {"id": task["id"], "title": "Temporary"}
    assert (await client.get(f"/api/tasks/{task['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_add_comment(client, alice):
    user, headers = alice
    task = await _create_task(client, headers)

    response = await client.post(f"/api/tasks/{task['id']}/comments", json={"text": " Looks good "}, headers=headers)
    assert response.status_code == 201
    comment = response.json()["comment"]
    assert comment["text"] == "Looks good"
    assert comment["user"]["id"] == user["id"]
    assert comment["user"]["name"] == user["name"]

    fetched = (await client.get(f"/api/tasks/{task['id']}", headers=headers)).json()
    assert [c["text"] for c in fetched["comments"]] == ["Looks good"]


@pytest.mark.asyncio
async def test_blank_comment_is_rejected(client, auth_headers):
    task = await _create_task(client, auth_headers)
    response = await client.post(f"/api/tasks/{task['id']}/comments", json={"text": "   "}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_overdue_tasks(client, auth_headers, session_factory):
    late = await _create_task(client, auth_headers, title="Late", deadline=_future())
    later = await _create_task(client, auth_headers, title="Later", deadline=_future())
    done = await _create_task(client, auth_headers, title="Done late", deadline=_future())
    await _create_task(client, auth_headers, title="On time", deadline=_future())
    await client.put(f"/api/tasks/{done['id']}", json={"status": "completed"}, headers=auth_headers)

    async with session_factory() as session:
        for task_id, days in ((late["id"], 3), (later["id"], 1), (done["id"], 2)):
            await session.execute(
                update(Task).where(Task.id == task_id).values(deadline=utcnow() - timedelta(days=days))
            )
        await session.commit()

    response = await client.get("/api/tasks/overdue", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [t["title"] for t in data["tasks"]] == ["Late", "Later"]
    assert all(t["isOverdue"] for t in data["tasks"])

    stats = (await client.get("/api/tasks/stats", headers=auth_headers)).json()["stats"]
    assert stats["overdueTasks"] == 2


@pytest.mark.asyncio
async def test_missing_task_is_404(client, auth_headers):
    response = await client.get("/api/tasks/9999", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Task not found"


@pytest.mark.asyncio
async def test_tasks_require_authentication(client):
    response = await client.get("/api/tasks")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized, no token provided"

    response = await client.get("/api/tasks", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized, token failed"
