# tests/test_api.py

from __future__ import annotations

from fastapi.testclient import TestClient

from .fakes import InMemorySnapshotRepo


def _new_queue(client: TestClient, title: str = "Deep Work", **extra) -> dict:
    resp = client.post("/api/queues", json={"title": title, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _new_task(client: TestClient, title: str = "Write report", **extra) -> dict:
    resp = client.post("/api/tasks", json={"title": title, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client: TestClient) -> None:
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_create_and_list(client: TestClient) -> None:
    queue = _new_queue(client)
    task = _new_task(client)

    assert queue["color"] == "#3B82F6"
    assert queue["taskIds"] == []
    assert queue["id"].startswith("q_")
    assert task == {
        "id": task["id"],
        "title": "Write report",
        "durationMinutes": 30,
        "status": "inbox",
        "assignedQueueId": None,
        "completedAt": None,
        "obsidianLink": None,
    }
    assert [q["id"] for q in client.get("/api/queues").json()] == [queue["id"]]
    assert [t["id"] for t in client.get("/api/tasks").json()] == [task["id"]]


def test_scenario_assign_complete_delete(client: TestClient) -> None:
    queue = _new_queue(client, "Deep Work", color="#3B82F6")
    resp = client.post(
        "/api/queue-templates",
        json={"queueId": queue["id"], "dayOfWeek": 1, "startTime": "09:00", "endTime": "11:00"},
    )
    assert resp.status_code == 201
    task = _new_task(client, "Write report", durationMinutes=60)

    # A
    resp = client.post(f"/api/queues/{queue['id']}/assign", json={"taskId": task["id"]})
    assert resp.status_code == 200
    assert resp.json()["queue"]["taskIds"] == [task["id"]]
    assert client.get(f"/api/queues/{queue['id']}").json()["taskIds"] == [task["id"]]
    assert client.get(f"/api/tasks/{task['id']}").json()["status"] == "assigned"
    assert client.get(f"/api/queues/{queue['id']}/load").json()["percentage"] == 50

    # B
    done = client.post(f"/api/tasks/{task['id']}/complete").json()
    assert done["status"] == "completed"
    assert done["completedAt"].endswith("Z")
    load = client.get(f"/api/queues/{queue['id']}/load").json()
    assert load["totalMinutes"] == 120
    assert load["percentage"] == 0
    assert load["status"] == "safe"

    # C
    assert client.delete(f"/api/queues/{queue['id']}").status_code == 204
    task_after = client.get(f"/api/tasks/{task['id']}").json()
    assert task_after["status"] == "inbox"
    assert task_after["assignedQueueId"] is None
    assert task_after["completedAt"] is None
    assert client.get("/api/queue-templates").json() == []


def test_scenario_empty_all(client: TestClient) -> None:
    qa = _new_queue(client, "A")
    qb = _new_queue(client, "B")
    tasks = [_new_task(client, f"task {i}") for i in range(3)]
    for t, q in zip(tasks, (qa, qa, qb)):
        client.post(f"/api/queues/{q['id']}/assign", json={"taskId": t["id"]})

    resp = client.post("/api/queues/empty-all")
    assert resp.status_code == 200
    assert resp.json()["message"] == "All queues emptied"

    assert all(t["status"] == "inbox" for t in client.get("/api/tasks").json())
    assert all(q["taskIds"] == [] for q in client.get("/api/queues").json())
    assert len(client.get("/api/tasks/inbox").json()) == 3


def test_reassign_and_unassign(client: TestClient) -> None:
    qa = _new_queue(client, "A")
    qb = _new_queue(client, "B")
    task = _new_task(client)

    client.post(f"/api/queues/{qa['id']}/assign", json={"taskId": task["id"]})
    body = client.post(f"/api/queues/{qb['id']}/assign", json={"taskId": task["id"]}).json()
    assert body["queue"]["taskIds"] == [task["id"]]
    assert client.get(f"/api/queues/{qa['id']}").json()["taskIds"] == []

    resp = client.post(f"/api/queues/{qa['id']}/unassign", json={"taskId": task["id"]})
    assert resp.status_code == 400

    body = client.post(f"/api/queues/{qb['id']}/unassign", json={"taskId": task["id"]}).json()
    assert body["task"]["status"] == "inbox"
    assert body["queue"]["taskIds"] == []


def test_uncomplete(client: TestClient) -> None:
    queue = _new_queue(client)
    task = _new_task(client)
    client.post(f"/api/queues/{queue['id']}/assign", json={"taskId": task["id"]})
    client.post(f"/api/tasks/{task['id']}/complete")

    body = client.post(f"/api/tasks/{task['id']}/uncomplete").json()
    assert body["status"] == "assigned"
    assert body["completedAt"] is None


def test_not_found_errors(client: TestClient) -> None:
    task = _new_task(client)

    assert client.get("/api/queues/q_nope").status_code == 404
    assert client.put("/api/queues/q_nope", json={"title": "x"}).status_code == 404
    assert client.delete("/api/queues/q_nope").status_code == 404
    resp = client.post("/api/queues/q_nope/assign", json={"taskId": task["id"]})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Queue not found"}

    queue = _new_queue(client)
    resp = client.post(f"/api/queues/{queue['id']}/assign", json={"taskId": "t_nope"})
    assert resp.json() == {"error": "Task not found"}
    assert client.delete("/api/tasks/t_nope").status_code == 404
    assert client.post("/api/tasks/t_nope/complete").status_code == 404
    assert client.put("/api/queue-templates/qt_nope", json={"dayOfWeek": 2}).status_code == 404
    assert client.delete("/api/queue-templates/qt_nope").status_code == 404
    resp = client.post(
        "/api/queue-templates",
        json={"queueId": "q_nope", "dayOfWeek": 1, "startTime": "09:00", "endTime": "11:00"},
    )
    assert resp.status_code == 404


def test_validation_errors(client: TestClient) -> None:
    queue = _new_queue(client)

    resp = client.post("/api/tasks", json={})
    assert resp.status_code == 400
    assert "error" in resp.json()

    assert client.post("/api/queues", json={"title": "x", "color": "blue"}).status_code == 400
    resp = client.post(
        "/api/queue-templates",
        json={"queueId": queue["id"], "dayOfWeek": 1, "startTime": "11:00", "endTime": "09:00"},
    )
    assert resp.status_code == 400
    assert client.post(f"/api/queues/{queue['id']}/assign", json={}).status_code == 400


def test_updates_ignore_lifecycle_fields(client: TestClient) -> None:
    queue = _new_queue(client)
    task = _new_task(client)

    body = client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Renamed", "durationMinutes": 45, "status": "completed", "assignedQueueId": queue["id"]},
    ).json()
    assert body["title"] == "Renamed"
    assert body["durationMinutes"] == 45
    assert body["status"] == "inbox"
    assert body["assignedQueueId"] is None

    body = client.put(f"/api/queues/{queue['id']}", json={"color": "#10B981", "taskIds": [task["id"]]}).json()
    assert body["color"] == "#10B981"
    assert body["taskIds"] == []


def test_task_obsidian_link_can_be_cleared(client: TestClient) -> None:
    task = _new_task(client, obsidianLink="obsidian://open?file=Note")
    assert task["obsidianLink"] == "obsidian://open?file=Note"

    body = client.put(f"/api/tasks/{task['id']}", json={"title": "Still here"}).json()
    assert body["obsidianLink"] == "obsidian://open?file=Note"

    body = client.put(f"/api/tasks/{task['id']}", json={"obsidianLink": None}).json()
    assert body["obsidianLink"] is None


def test_queue_template_update(client: TestClient) -> None:
    queue = _new_queue(client)
    template = client.post(
        "/api/queue-templates",
        json={"queueId": queue["id"], "dayOfWeek": 1, "startTime": "09:00", "endTime": "11:00"},
    ).json()

    body = client.put(f"/api/queue-templates/{template['id']}", json={"dayOfWeek": 3}).json()
    assert body["dayOfWeek"] == 3
    assert body["startTime"] == "09:00"

    resp = client.put(f"/api/queue-templates/{template['id']}", json={"queueId": "q_nope"})
    assert resp.status_code == 404
    assert client.delete(f"/api/queue-templates/{template['id']}").status_code == 204


def test_settings(client: TestClient) -> None:
    assert client.get("/api/settings").json()["language"] == "en"

    body = client.put("/api/settings", json={"language": "ko", "obsidianVaultPath": "~/vault"}).json()
    assert body == {"language": "ko", "obsidianVaultPath": "~/vault", "obsidianDefaultFolder": None}

    resp = client.put("/api/settings", json={"language": "fr"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Unsupported language"}
    assert client.get("/api/settings").json()["language"] == "ko"


def test_week_plan(client: TestClient) -> None:
    queue = _new_queue(client)
    for day, start, end in ((3, "14:00", "16:00"), (3, "09:00", "11:00"), (5, "09:00", "10:00")):
        client.post(
            "/api/queue-templates",
            json={"queueId": queue["id"], "dayOfWeek": day, "startTime": start, "endTime": end},
        )

    body = client.get("/api/week", params={"day": "2026-10-21"}).json()

    assert body["weekKey"] == "2026-W43"
    assert [d["date"] for d in body["days"]] == [
        "2026-10-19",
        "2026-10-20",
        "2026-10-21",
        "2026-10-22",
        "2026-10-23",
    ]
    wednesday = body["days"][2]
    assert wednesday["isToday"] is True
    assert [s["template"]["startTime"] for s in wednesday["slots"]] == ["09:00", "14:00"]
    assert body["days"][4]["slots"][0]["load"]["totalMinutes"] == 60


def test_failed_flush_returns_500_and_keeps_state(client: TestClient, repo: InMemorySnapshotRepo) -> None:
    repo.fail_saves = True
    resp = client.post("/api/tasks", json={"title": "lost"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Database error"}

    repo.fail_saves = False
    assert client.get("/api/tasks").json() == []
