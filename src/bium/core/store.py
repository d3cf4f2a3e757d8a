# src/bium/core/store.py

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Set
from datetime import datetime, timezone
from typing import Any

from .capacity import QueueLoad, compute_load, duration_minutes, is_hhmm, queue_total_minutes
from .errors import NotFound, ValidationError
from .models import (
    DEFAULT_QUEUE_COLOR,
    DEFAULT_TASK_MINUTES,
    AppSettings,
    Language,
    Queue,
    QueueTemplate,
    Snapshot,
    Task,
    TaskStatus,
    WeekConvention,
)

logger = logging.getLogger(__name__)

_UNSET: Any = object()

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _random_suffix() -> str:
    return uuid.uuid4().hex[:8]


class SchedulingStore:
    """
    In-memory store of queues, queue templates and tasks.

    All lifecycle changes (status / assigned queue / completion time) go through
    assign_to_queue, unassign_from_queue, complete, uncomplete and
    empty_all_queues. Queue membership is derived from `Task.assigned_queue_id`
    and never stored, so a queue's task ids always agree with its tasks.

    Every operation validates and looks up everything it needs before the first
    write, so a raised NotFound / ValidationError leaves the store untouched.

    Not thread-safe on its own: callers serialize access (see AppState.lock).
    """

    def __init__(
        self,
        *,
        convention: WeekConvention = WeekConvention.MONDAY,
        clock: Callable[[], str] = _utc_now_iso,
        id_suffix: Callable[[], str] = _random_suffix,
    ) -> None:
        self.convention = WeekConvention(convention)
        self._clock = clock
        self._id_suffix = id_suffix

        self._queues: dict[str, Queue] = {}
        self._templates: dict[str, QueueTemplate] = {}
        self._tasks: dict[str, Task] = {}
        self._settings = AppSettings()

    # ---- snapshots ----

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot, **kwargs: Any) -> SchedulingStore:
        store = cls(**kwargs)
        store.restore(snapshot)
        return store

    def snapshot(self) -> Snapshot:
        """Detached copy of the current state."""
        return Snapshot(
            queues=list(self._queues.values()),
            queue_templates=list(self._templates.values()),
            tasks=list(self._tasks.values()),
            settings=self._settings,
        ).copy()

    def restore(self, snapshot: Snapshot) -> None:
        """
        Replace the whole state with `snapshot`.

        Stored data that breaks the referential rules is repaired, not rejected:
        templates of unknown queues are dropped, tasks of unknown queues go back
        to the inbox, and status / queue / completion fields are made consistent.
        A repeated queue id keeps its first queue; repeated template and task ids
        get fresh ids so no entry is lost.
        """
        snap = snapshot.copy()

        self._queues = {}
        for q in snap.queues:
            if q.id in self._queues:
                logger.warning("Dropping queue %r with duplicate id %s", q.title, q.id)
                continue
            self._queues[q.id] = q

        stored_template_ids = {qt.id for qt in snap.queue_templates}
        self._templates = {}
        for qt in snap.queue_templates:
            if qt.queue_id not in self._queues:
                logger.warning("Dropping template %s of unknown queue %s", qt.id, qt.queue_id)
                continue
            if qt.id in self._templates:
                qt.id = self._fresh_loaded_id("qt", qt.id, self._templates, stored_template_ids)
            self._templates[qt.id] = qt

        stored_task_ids = {t.id for t in snap.tasks}
        self._tasks = {}
        for t in snap.tasks:
            self._normalize_loaded_task(t)
            if t.id in self._tasks:
                t.id = self._fresh_loaded_id("t", t.id, self._tasks, stored_task_ids)
            self._tasks[t.id] = t

        self._settings = snap.settings
        logger.debug(
            "Store restored queues=%d templates=%d tasks=%d",
            len(self._queues),
            len(self._templates),
            len(self._tasks),
        )

    def _normalize_loaded_task(self, t: Task) -> None:
        if t.assigned_queue_id is not None and t.assigned_queue_id not in self._queues:
            logger.warning("Task %s points at unknown queue %s; moving to inbox", t.id, t.assigned_queue_id)
            t.assigned_queue_id = None

        if t.assigned_queue_id is None:
            if t.status is not TaskStatus.INBOX or t.completed_at is not None:
                logger.warning("Task %s has no queue but status=%s; moving to inbox", t.id, t.status)
            t.status = TaskStatus.INBOX
            t.completed_at = None
        elif t.status is TaskStatus.COMPLETED:
            if t.completed_at is None:
                t.completed_at = self._clock()
        else:
            t.status = TaskStatus.ASSIGNED
            t.completed_at = None

    def _new_id(self, prefix: str, taken: dict[str, Any], reserved: Set[str] = frozenset()) -> str:
        while True:
            candidate = f"{prefix}_{self._id_suffix()}"
            if candidate not in taken and candidate not in reserved:
                return candidate

    def _fresh_loaded_id(self, prefix: str, old_id: str, taken: dict[str, Any], reserved: Set[str]) -> str:
        new_id = self._new_id(prefix, taken, reserved)
        logger.warning("Duplicate stored id %s; renamed to %s", old_id, new_id)
        return new_id

    # ---- validation ----

    @staticmethod
    def _clean_title(title: Any) -> str:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("title is required")
        return title.strip()

    @staticmethod
    def _clean_color(color: Any) -> str:
        if not isinstance(color, str) or not _COLOR_RE.match(color):
            raise ValidationError(f"invalid color: {color!r} (expected #RRGGBB)")
        return color

    @staticmethod
    def _clean_duration(minutes: Any) -> int:
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise ValidationError(f"durationMinutes must be a positive integer, got {minutes!r}")
        return minutes

    def _clean_day(self, day: Any) -> int:
        if isinstance(day, bool) or not isinstance(day, int) or day not in self.convention.days:
            days = self.convention.days
            raise ValidationError(f"dayOfWeek must be in {days.start}..{days.stop - 1}, got {day!r}")
        return day

    @staticmethod
    def _clean_time_range(start: Any, end: Any) -> tuple[str, str]:
        for value in (start, end):
            if not is_hhmm(value):
                raise ValidationError(f"invalid time: {value!r} (expected HH:MM)")
        if not start < end:
            raise ValidationError(f"startTime must be before endTime ({start} >= {end})")
        return start, end

    # ---- queues ----

    def list_queues(self) -> list[Queue]:
        return list(self._queues.values())

    def get_queue(self, queue_id: str) -> Queue:
        queue = self._queues.get(queue_id)
        if queue is None:
            raise NotFound("Queue", queue_id)
        return queue

    def task_ids(self, queue_id: str) -> list[str]:
        """Ids of the tasks assigned to `queue_id` (completed ones included)."""
        return [t.id for t in self._tasks.values() if t.assigned_queue_id == queue_id]

    def queue_payload(self, queue: Queue) -> dict[str, Any]:
        return queue.to_dict(self.task_ids(queue.id))

    def create_queue(self, title: str, color: str | None = None) -> Queue:
        queue = Queue(
            id=self._new_id("q", self._queues),
            title=self._clean_title(title),
            color=self._clean_color(color) if color else DEFAULT_QUEUE_COLOR,
        )
        self._queues[queue.id] = queue
        logger.info("Queue created id=%s title=%r", queue.id, queue.title)
        return queue

    def update_queue(self, queue_id: str, *, title: Any = _UNSET, color: Any = _UNSET) -> Queue:
        queue = self.get_queue(queue_id)
        new_title = queue.title if title is _UNSET else self._clean_title(title)
        new_color = queue.color if color is _UNSET else self._clean_color(color)

        queue.title = new_title
        queue.color = new_color
        return queue

    def delete_queue(self, queue_id: str) -> None:
        """Remove a queue, its time slots, and send its tasks back to the inbox."""
        self.get_queue(queue_id)

        dropped = [qt.id for qt in self._templates.values() if qt.queue_id == queue_id]
        for template_id in dropped:
            del self._templates[template_id]

        released = 0
        for t in self._tasks.values():
            if t.assigned_queue_id == queue_id:
                self._move_to_inbox(t)
                released += 1

        del self._queues[queue_id]
        logger.info("Queue deleted id=%s templates=%d tasks_released=%d", queue_id, len(dropped), released)

    # ---- queue templates ----

    def list_queue_templates(self) -> list[QueueTemplate]:
        return list(self._templates.values())

    def get_queue_template(self, template_id: str) -> QueueTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFound("Queue template", template_id)
        return template

    def templates_for_queue(self, queue_id: str) -> list[QueueTemplate]:
        return [qt for qt in self._templates.values() if qt.queue_id == queue_id]

    def create_queue_template(
        self, queue_id: str, day_of_week: int, start_time: str, end_time: str
    ) -> QueueTemplate:
        """Place a queue on a weekly slot. Overlapping slots are allowed."""
        self.get_queue(queue_id)
        day = self._clean_day(day_of_week)
        start, end = self._clean_time_range(start_time, end_time)

        template = QueueTemplate(
            id=self._new_id("qt", self._templates),
            queue_id=queue_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
        )
        self._templates[template.id] = template
        logger.info("Queue template created id=%s queue=%s day=%s %s-%s", template.id, queue_id, day, start, end)
        return template

    def update_queue_template(
        self,
        template_id: str,
        *,
        queue_id: Any = _UNSET,
        day_of_week: Any = _UNSET,
        start_time: Any = _UNSET,
        end_time: Any = _UNSET,
    ) -> QueueTemplate:
        template = self.get_queue_template(template_id)

        new_queue_id = template.queue_id if queue_id is _UNSET else self.get_queue(queue_id).id
        new_day = template.day_of_week if day_of_week is _UNSET else self._clean_day(day_of_week)
        new_start, new_end = self._clean_time_range(
            template.start_time if start_time is _UNSET else start_time,
            template.end_time if end_time is _UNSET else end_time,
        )

        template.queue_id = new_queue_id
        template.day_of_week = new_day
        template.start_time = new_start
        template.end_time = new_end
        return template

    def delete_queue_template(self, template_id: str) -> None:
        self.get_queue_template(template_id)
        del self._templates[template_id]
        logger.info("Queue template deleted id=%s", template_id)

    # ---- tasks ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def list_inbox_tasks(self) -> list[Task]:
        return [t for t in self._tasks.values() if t.status is TaskStatus.INBOX]

    def tasks_for_queue(self, queue_id: str) -> list[Task]:
        return [t for t in self._tasks.values() if t.assigned_queue_id == queue_id]

    def get_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFound("Task", task_id)
        return task

    def create_task(
        self,
        title: str,
        duration_minutes: int | None = None,
        obsidian_link: str | None = None,
    ) -> Task:
        task = Task(
            id=self._new_id("t", self._tasks),
            title=self._clean_title(title),
            duration_minutes=self._clean_duration(duration_minutes) if duration_minutes else DEFAULT_TASK_MINUTES,
            obsidian_link=obsidian_link or None,
        )
        self._tasks[task.id] = task
        logger.info("Task created id=%s minutes=%d", task.id, task.duration_minutes)
        return task

    def update_task(
        self,
        task_id: str,
        *,
        title: Any = _UNSET,
        duration_minutes: Any = _UNSET,
        obsidian_link: Any = _UNSET,
    ) -> Task:
        """Edit a task's details. Lifecycle fields are only changed by the transition methods."""
        task = self.get_task(task_id)
        new_title = task.title if title is _UNSET else self._clean_title(title)
        new_minutes = task.duration_minutes if duration_minutes is _UNSET else self._clean_duration(duration_minutes)
        new_link = task.obsidian_link if obsidian_link is _UNSET else (obsidian_link or None)

        task.title = new_title
        task.duration_minutes = new_minutes
        task.obsidian_link = new_link
        return task

    def delete_task(self, task_id: str) -> None:
        self.get_task(task_id)
        del self._tasks[task_id]
        logger.info("Task deleted id=%s", task_id)

    # ---- lifecycle transitions ----

    @staticmethod
    def _move_to_inbox(task: Task) -> None:
        task.status = TaskStatus.INBOX
        task.assigned_queue_id = None
        task.completed_at = None

    def assign_to_queue(self, task_id: str, queue_id: str) -> tuple[Queue, Task]:
        """
        Put a task into a queue. A task already in another queue is moved
        (it ends up in exactly one queue). A completed task becomes active again.
        """
        queue = self.get_queue(queue_id)
        task = self.get_task(task_id)

        previous = task.assigned_queue_id
        # Membership is derived from this field, so re-pointing it is the whole move.
        task.assigned_queue_id = queue.id
        task.status = TaskStatus.ASSIGNED
        task.completed_at = None
        logger.info("Task %s assigned to queue %s (previous=%s)", task.id, queue.id, previous)
        return queue, task

    def unassign_from_queue(self, task_id: str, queue_id: str) -> tuple[Queue, Task]:
        """
        Send a task back to the inbox. Also valid for a completed task, which
        loses its completion time in the same step.
        """
        queue = self.get_queue(queue_id)
        task = self.get_task(task_id)
        if task.assigned_queue_id != queue.id:
            raise ValidationError(f"task {task.id} is not in queue {queue.id}")

        self._move_to_inbox(task)
        logger.info("Task %s unassigned from queue %s", task.id, queue.id)
        return queue, task

    def complete(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        if task.status is TaskStatus.COMPLETED:
            return task
        if task.assigned_queue_id is None:
            raise ValidationError(f"task {task.id} must be assigned to a queue before completing")

        task.status = TaskStatus.COMPLETED
        task.completed_at = self._clock()
        logger.info("Task %s completed at %s", task.id, task.completed_at)
        return task

    def uncomplete(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        if task.status is not TaskStatus.COMPLETED:
            return task

        task.status = TaskStatus.ASSIGNED if task.assigned_queue_id else TaskStatus.INBOX
        task.completed_at = None
        logger.info("Task %s uncompleted -> %s", task.id, task.status)
        return task

    def empty_all_queues(self) -> int:
        """Move every assigned or completed task back to the inbox. Returns how many moved."""
        moved = 0
        for t in self._tasks.values():
            if t.status is not TaskStatus.INBOX:
                self._move_to_inbox(t)
                moved += 1
        logger.info("All queues emptied (tasks_moved=%d)", moved)
        return moved

    # ---- capacity ----

    def queue_load(self, queue_id: str) -> QueueLoad:
        """Load of a queue against its slot capacity (first template, or the default)."""
        self.get_queue(queue_id)
        total = queue_total_minutes(self.templates_for_queue(queue_id))
        return compute_load(queue_id, self.tasks_for_queue(queue_id), total)

    def slot_load(self, template_id: str) -> QueueLoad:
        """Load of a template's queue against that template's own time range."""
        template = self.get_queue_template(template_id)
        total = duration_minutes(template.start_time, template.end_time)
        return compute_load(template.queue_id, self.tasks_for_queue(template.queue_id), total)

    # ---- settings ----

    def get_settings(self) -> AppSettings:
        return self._settings

    def update_settings(
        self,
        *,
        language: Any = _UNSET,
        obsidian_vault_path: Any = _UNSET,
        obsidian_default_folder: Any = _UNSET,
    ) -> AppSettings:
        settings = self._settings
        new_language = settings.language
        if language is not _UNSET and language:
            try:
                new_language = Language(language)
            except ValueError:
                raise ValidationError("Unsupported language") from None

        settings.language = new_language
        if obsidian_vault_path is not _UNSET:
            settings.obsidian_vault_path = obsidian_vault_path or None
        if obsidian_default_folder is not _UNSET:
            settings.obsidian_default_folder = obsidian_default_folder or None
        return settings

    # ---- diagnostics ----

    def invariant_violations(self) -> list[str]:
        """Human-readable list of broken state rules (empty when consistent)."""
        problems: list[str] = []
        for t in self._tasks.values():
            is_inbox = t.status is TaskStatus.INBOX
            if is_inbox != (t.assigned_queue_id is None):
                problems.append(f"task {t.id}: status {t.status} disagrees with assignedQueueId")
            if is_inbox and t.completed_at is not None:
                problems.append(f"task {t.id}: inbox task has completedAt")
            if (t.status is TaskStatus.COMPLETED) != (t.completed_at is not None):
                problems.append(f"task {t.id}: completed status disagrees with completedAt")
            if t.assigned_queue_id is not None and t.assigned_queue_id not in self._queues:
                problems.append(f"task {t.id}: unknown queue {t.assigned_queue_id}")
        for qt in self._templates.values():
            if qt.queue_id not in self._queues:
                problems.append(f"template {qt.id}: unknown queue {qt.queue_id}")
        return problems
