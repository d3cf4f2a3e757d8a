# tests/test_json_repo.py

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from bium.cli.bootstrap import create_initial_state
from bium.core.errors import PersistenceError
from bium.core.models import Language, TaskStatus
from bium.core.store import SchedulingStore
from bium.storage.json_repo import JsonSnapshotRepo

from .fakes import assert_invariants


def test_missing_or_empty_file_loads_as_none(tmp_path: Path) -> None:
    repo = JsonSnapshotRepo(tmp_path / "db.json")
    assert repo.load() is None

    (tmp_path / "db.json").write_text("  \n", "utf-8")
    assert repo.load() is None


def test_save_then_load(tmp_path: Path, store: SchedulingStore) -> None:
    queue = store.create_queue("Deep Work")
    store.create_queue_template(queue.id, 3, "09:00", "11:00")
    task = store.create_task("Write report", 60, obsidian_link="obsidian://open?file=Report")
    store.assign_to_queue(task.id, queue.id)
    store.complete(task.id)
    store.update_settings(language="ja")

    repo = JsonSnapshotRepo(tmp_path / "data" / "db.json")
    repo.save(store.snapshot())

    assert not (tmp_path / "data" / "db.tmp").exists()
    raw = json.loads((tmp_path / "data" / "db.json").read_text("utf-8"))
    assert set(raw) == {"queues", "queueTemplates", "tasks", "settings"}
    assert raw["queues"][0]["tasks"] == [task.id]
    assert raw["tasks"][0]["completedAt"] is not None

    loaded = SchedulingStore.from_snapshot(repo.load())
    assert loaded.get_task(task.id).status is TaskStatus.COMPLETED
    assert loaded.get_task(task.id).obsidian_link == "obsidian://open?file=Report"
    assert loaded.task_ids(queue.id) == [task.id]
    assert loaded.get_settings().language is Language.JA
    assert_invariants(loaded)


def test_corrupt_file_raises_persistence_error(tmp_path: Path) -> None:
    path = tmp_path / "db.json"
    path.write_text("{not json", "utf-8")
    with pytest.raises(PersistenceError):
        JsonSnapshotRepo(path).load()

    path.write_text("[1, 2, 3]", "utf-8")
    with pytest.raises(PersistenceError):
        JsonSnapshotRepo(path).load()

    path.write_text(json.dumps({"queues": 5, "queueTemplates": [], "tasks": []}), "utf-8")
    with pytest.raises(PersistenceError, match="queues must be a list"):
        JsonSnapshotRepo(path).load()

    path.write_text(json.dumps({"queues": [], "tasks": "t_1"}), "utf-8")
    with pytest.raises(PersistenceError, match="tasks must be a list"):
        JsonSnapshotRepo(path).load()


def test_unwritable_location_raises_persistence_error(tmp_path: Path, store: SchedulingStore) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", "utf-8")
    with pytest.raises(PersistenceError):
        JsonSnapshotRepo(blocker / "db.json").save(store.snapshot())


def test_inconsistent_file_is_repaired_on_load(tmp_path: Path) -> None:
    path = tmp_path / "db.json"
    path.write_text(
        json.dumps(
            {
                "queues": [{"id": "q_a", "title": "A", "color": "#3B82F6", "tasks": ["t_2", "t_ghost"]}],
                "queueTemplates": [
                    {"id": "qt_1", "queueId": "q_a", "dayOfWeek": 1, "startTime": "09:00", "endTime": "11:00"},
                    {"id": "qt_2", "queueId": "q_gone", "dayOfWeek": 2, "startTime": "09:00", "endTime": "11:00"},
                ],
                "tasks": [
                    {"id": "t_1", "title": "x", "durationMinutes": 30, "status": "assigned", "assignedQueueId": "q_a"},
                    {"id": "t_2", "title": "y", "durationMinutes": 30, "status": "inbox", "assignedQueueId": None},
                    {"id": "t_3", "title": "z", "status": "completed", "assignedQueueId": "q_gone",
                     "completedAt": "2025-01-01T00:00:00.000Z"},
                ],
            }
        ),
        "utf-8",
    )

    store = SchedulingStore.from_snapshot(JsonSnapshotRepo(path).load())

    assert store.task_ids("q_a") == ["t_1"]
    assert [qt.id for qt in store.list_queue_templates()] == ["qt_1"]
    assert store.get_task("t_3").status is TaskStatus.INBOX
    assert store.get_task("t_3").completed_at is None
    assert store.get_settings().language is Language.EN
    assert_invariants(store)


def test_first_start_seeds_demo_data(tmp_path: Path) -> None:
    settings = SimpleNamespace(
        data_dir=tmp_path,
        db_path=tmp_path / "db.json",
        seed_defaults=True,
        week_convention="monday",
    )

    state = create_initial_state(settings=settings)

    assert (tmp_path / "db.json").exists()
    with state.read() as store:
        assert [q.title for q in store.list_queues()] == ["Deep Work", "Admin", "Creative"]
        assert len(store.list_queue_templates()) == 6
        assert len(store.list_inbox_tasks()) == 5
        assert_invariants(store)

    # second start reads the file instead of seeding again
    with state.transaction() as store:
        store.create_task("kept across restarts")
    again = create_initial_state(settings=settings)
    with again.read() as store:
        assert len(store.list_tasks()) == 6


def test_duplicate_ids_and_bad_durations_are_repaired_on_load(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "db.json"
    path.write_text(
        json.dumps(
            {
                "queues": [
                    {"id": "q_a", "title": "A", "color": "#3B82F6", "tasks": ["t_1"]},
                    {"id": "q_a", "title": "A again", "color": "#10B981", "tasks": []},
                ],
                "queueTemplates": [
                    {"id": "qt_1", "queueId": "q_a", "dayOfWeek": 1, "startTime": "09:00", "endTime": "11:00"},
                    {"id": "qt_1", "queueId": "q_a", "dayOfWeek": 2, "startTime": "09:00", "endTime": "11:00"},
                ],
                "tasks": [
                    {"id": "t_1", "title": "first", "durationMinutes": 30, "status": "assigned", "assignedQueueId": "q_a"},
                    {"id": "t_1", "title": "second", "durationMinutes": -20, "status": "inbox"},
                ],
            }
        ),
        "utf-8",
    )

    with caplog.at_level("WARNING"):
        store = SchedulingStore.from_snapshot(JsonSnapshotRepo(path).load())

    assert [q.title for q in store.list_queues()] == ["A"]
    assert sorted(qt.day_of_week for qt in store.list_queue_templates()) == [1, 2]

    tasks = {t.title: t for t in store.list_tasks()}
    assert set(tasks) == {"first", "second"}
    assert tasks["first"].id == "t_1"
    assert tasks["second"].id != "t_1"
    assert tasks["second"].duration_minutes == 30
    assert store.task_ids("q_a") == ["t_1"]
    assert "Duplicate stored id t_1" in caplog.text
    assert "Dropping queue 'A again'" in caplog.text
    assert_invariants(store)
