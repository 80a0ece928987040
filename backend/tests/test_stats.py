"""Statistics tests: pure helpers and the aggregate endpoints."""

from datetime import datetime, timedelta, timezone

import pytest

from taskmanager.services.stats_service import average_completion_days, completion_rate, productivity_score


def test_completion_rate():
    assert completion_rate(2, 4) == 50
    assert completion_rate(1, 3) == 33
    assert completion_rate(0, 0) == 0


def test_productivity_score():
    assert productivity_score(3, 2) == 150
    assert productivity_score(5, 0) == 0


def test_average_completion_days():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    spans = [
        (start, start + timedelta(days=2)),
        (start, start + timedelta(days=4)),
        (start, None),
    ]
    assert average_completion_days(spans) == 3
    assert average_completion_days([]) == 0


async def _create_task(client, headers, **fields):
    payload = {"title": "Task"}
    payload.update(fields)
    response = await client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_empty_stats_are_zero(client, auth_headers):
    response = await client.get("/api/tasks/stats", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["totalTasks"] == 0
    assert data["stats"]["completionRate"] == 0
    assert data["stats"]["avgProgression"] == 0
    assert "generatedAt" in data


@pytest.mark.asyncio
async def test_task_stats_completion_rate(client, auth_headers):
    await _create_task(client, auth_headers, title="A", status="completed")
    await _create_task(client, auth_headers, title="B", status="completed")
    await _create_task(client, auth_headers, title="C", status="in-progress")
    await _create_task(client, auth_headers, title="D")

    response = await client.get("/api/tasks/stats", headers=auth_headers)
    stats = response.json()["stats"]
    assert stats["totalTasks"] == 4
    assert stats["completedTasks"] == 2
    assert stats["inProgressTasks"] == 1
    assert stats["pendingTasks"] == 1
    assert stats["completionRate"] == 50
    assert stats["avgProgression"] == 50


@pytest.mark.asyncio
async def test_archived_tasks_are_excluded(client, auth_headers):
    task = await _create_task(client, auth_headers, title="Old")
    await _create_task(client, auth_headers, title="New")
    await client.put(f"/api/tasks/{task['id']}/archive", headers=auth_headers)

    stats = (await client.get("/api/tasks/stats", headers=auth_headers)).json()["stats"]
    assert stats["totalTasks"] == 1


@pytest.mark.asyncio
async def test_user_stats_productivity_score(client, alice):
    user, headers = alice
    task = await _create_task(client, headers, estimatedHours=10)
    response = await client.put(
        f"/api/tasks/{task['id']}",
        json={"actualHours": 15, "status": "completed"},
        headers=headers,
    )
    assert response.status_code == 200, response.text

    response = await client.get("/api/users/stats", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["user"] == {"id": user["id"], "name": user["name"], "email": user["email"]}
    assert data["stats"]["totalEstimatedHours"] == 10
    assert data["stats"]["totalActualHours"] == 15
    assert data["stats"]["completedTasks"] == 1
    assert data["stats"]["productivityScore"] == 150


@pytest.mark.asyncio
async def test_stats_only_count_own_tasks(client, auth_headers, bob):
    _, bob_headers = bob
    await _create_task(client, auth_headers, title="Mine")
    await _create_task(client, bob_headers, title="Theirs")
    await _create_task(client, bob_headers, title="Theirs too")

    stats = (await client.get("/api/tasks/stats", headers=auth_headers)).json()["stats"]
    assert stats["totalTasks"] == 1


@pytest.mark.asyncio
async def test_category_stats(client, auth_headers):
    category = (
        await client.post("/api/categories", json={"name": "Errands"}, headers=auth_headers)
    ).json()
    await _create_task(client, auth_headers, title="A", category=category["id"], status="completed")
    await _create_task(client, auth_headers, title="B", category=category["id"])
    await _create_task(client, auth_headers, title="Elsewhere")

    response = await client.get(f"/api/categories/{category['id']}/stats", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["category"]["name"] == "Errands"
    assert set(data["category"]) == {"id", "name", "color", "icon"}
    assert data["stats"]["totalTasks"] == 2
    assert data["stats"]["completionRate"] == 50
    assert data["stats"]["avgCompletionTime"] >= 0
