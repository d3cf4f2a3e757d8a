# src/bium/core/models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_COLOR = "#3B82F6"
DEFAULT_TASK_MINUTES = 30


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    inbox -> assigned -> completed, and back. `assignedQueueId` is set for
    assigned and completed tasks, `completedAt` only for completed ones.
    """

    INBOX = "inbox"
    ASSIGNED = "assigned"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.INBOX
        try:
            return cls(raw)
        except ValueError:
            return cls.INBOX


class Language(StrEnum):
    KO = "ko"
    EN = "en"
    JA = "ja"
    ZH = "zh"


class WeekConvention(StrEnum):
    """
    How `QueueTemplate.day_of_week` is numbered.

    monday: 1=Monday .. 5=Friday (working week only)
    sunday: 0=Sunday .. 6=Saturday
    """

    MONDAY = "monday"
    SUNDAY = "sunday"

    @property
    def days(self) -> range:
        if self is WeekConvention.SUNDAY:
            return range(0, 7)
        return range(1, 6)


@dataclass(slots=True)
class Queue:
    id: str
    title: str
    color: str = DEFAULT_QUEUE_COLOR

    def to_dict(self, task_ids: list[str]) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "color": self.color, "taskIds": list(task_ids)}


@dataclass(slots=True)
class QueueTemplate:
    id: str
    queue_id: str
    day_of_week: int
    start_time: str
    end_time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "queueId": self.queue_id,
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueueTemplate:
        return cls(
            id=str(data["id"]),
            queue_id=str(data["queueId"]),
            day_of_week=int(data.get("dayOfWeek") or 0),
            start_time=str(data.get("startTime") or "00:00"),
            end_time=str(data.get("endTime") or "00:00"),
        )


@dataclass(slots=True)
class Task:
    id: str
    title: str
    duration_minutes: int = DEFAULT_TASK_MINUTES
    status: TaskStatus = TaskStatus.INBOX
    assigned_queue_id: str | None = None
    completed_at: str | None = None  # ISO-8601, UTC
    obsidian_link: str | None = None  # opaque, never validated

    @property
    def is_active(self) -> bool:
        """Counts against capacity (completed tasks free their time)."""
        return self.status is not TaskStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "durationMinutes": self.duration_minutes,
            "status": self.status.value,
            "assignedQueueId": self.assigned_queue_id,
            "completedAt": self.completed_at,
            "obsidianLink": self.obsidian_link,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        minutes = int(data.get("durationMinutes") or DEFAULT_TASK_MINUTES)
        if minutes <= 0:
            logger.warning("Task %s has durationMinutes=%d; using %d.", data["id"], minutes, DEFAULT_TASK_MINUTES)
            minutes = DEFAULT_TASK_MINUTES
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            duration_minutes=minutes,
            status=TaskStatus.from_raw(data.get("status")),
            assigned_queue_id=data.get("assignedQueueId") or None,
            completed_at=data.get("completedAt") or None,
            obsidian_link=data.get("obsidianLink") or None,
        )


@dataclass(slots=True)
class AppSettings:
    """The single process-wide settings record (not to be confused with config.Settings)."""

    language: Language = Language.EN
    obsidian_vault_path: str | None = None
    obsidian_default_folder: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language.value,
            "obsidianVaultPath": self.obsidian_vault_path,
            "obsidianDefaultFolder": self.obsidian_default_folder,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AppSettings:
        if not isinstance(data, dict):
            return cls()
        try:
            language = Language(data.get("language") or Language.EN)
        except ValueError:
            logger.warning("Unsupported language %r in stored settings; using en.", data.get("language"))
            language = Language.EN
        return cls(
            language=language,
            obsidian_vault_path=data.get("obsidianVaultPath") or None,
            obsidian_default_folder=data.get("obsidianDefaultFolder") or None,
        )


def _collection(data: dict[str, Any], key: str) -> list[Any]:
    """A top-level array of the stored document; missing or null is empty."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return value


@dataclass(slots=True)
class Snapshot:
    """
    Whole application state, as loaded from / saved to storage.

    The on-disk layout keeps a `tasks` id array on every queue; it is written
    for readers of the file but derived from `Task.assigned_queue_id` on load.
    """

    queues: list[Queue] = field(default_factory=list)
    queue_templates: list[QueueTemplate] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)

    def copy(self) -> Snapshot:
        return Snapshot(
            queues=[replace(q) for q in self.queues],
            queue_templates=[replace(qt) for qt in self.queue_templates],
            tasks=[replace(t) for t in self.tasks],
            settings=replace(self.settings),
        )

    def to_dict(self) -> dict[str, Any]:
        queues: list[dict[str, Any]] = []
        for q in self.queues:
            ids = [t.id for t in self.tasks if t.assigned_queue_id == q.id]
            queues.append({"id": q.id, "title": q.title, "color": q.color, "tasks": ids})
        return {
            "queues": queues,
            "queueTemplates": [qt.to_dict() for qt in self.queue_templates],
            "tasks": [t.to_dict() for t in self.tasks],
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """
        Parse a stored document. Malformed entries are skipped (and logged);
        a missing collection is treated as empty, one that is not an array
        raises ValueError.
        """
        if not isinstance(data, dict):
            raise ValueError("snapshot document must be a JSON object")

        snap = cls(settings=AppSettings.from_dict(data.get("settings")))
        stored_members: dict[str, set[str]] = {}

        for raw in _collection(data, "queues"):
            if not isinstance(raw, dict) or not raw.get("id"):
                logger.warning("Skipping malformed queue entry: %r", raw)
                continue
            snap.queues.append(
                Queue(
                    id=str(raw["id"]),
                    title=str(raw.get("title") or ""),
                    color=str(raw.get("color") or DEFAULT_QUEUE_COLOR),
                )
            )
            members = raw.get("tasks") if isinstance(raw.get("tasks"), list) else []
            stored_members[str(raw["id"])] = {str(m) for m in members}

        for raw in _collection(data, "queueTemplates"):
            try:
                snap.queue_templates.append(QueueTemplate.from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed queue template entry: %r", raw)

        for raw in _collection(data, "tasks"):
            try:
                snap.tasks.append(Task.from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task entry: %r", raw)

        for queue_id, members in stored_members.items():
            derived = {t.id for t in snap.tasks if t.assigned_queue_id == queue_id}
            if members != derived:
                logger.warning(
                    "Queue %s stored task ids disagree with task assignments (stored=%d derived=%d); "
                    "using task assignments.",
                    queue_id,
                    len(members),
                    len(derived),
                )
        return snap
