# src/bium/core/capacity.py

"""
Capacity / duration math for time blocks.

Pure functions only. A queue's load is measured against the minutes of its
time slot; completed tasks stay attached to the queue but do not count.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .models import QueueTemplate, Task

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

SAFE_MAX_PERCENT = 70
WARNING_MAX_PERCENT = 100

# Capacity assumed for a queue that has no time slot yet.
DEFAULT_SLOT_MINUTES = 120


class FillStatus(StrEnum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


_FILL_COLORS = {
    FillStatus.SAFE: "#3B82F6",
    FillStatus.WARNING: "#F59E0B",
    FillStatus.DANGER: "#EF4444",
}


def is_hhmm(value: str) -> bool:
    return isinstance(value, str) and HHMM_RE.match(value) is not None


def _to_minutes(value: str) -> int:
    hours, _, minutes = value.partition(":")
    return int(hours) * 60 + int(minutes)


def duration_minutes(start: str, end: str) -> int:
    """
    Minutes between two zero-padded "HH:MM" strings.

    Not clamped: a misordered pair gives a negative number. Entry points
    validate `start < end` (string comparison is enough for zero-padded times).
    """
    return _to_minutes(end) - _to_minutes(start)


def fill_percentage(used_minutes: int, total_minutes: int) -> int:
    """Rounded used/total percentage (half-up); 0 for an empty slot."""
    if total_minutes == 0:
        return 0
    return math.floor(used_minutes / total_minutes * 100 + 0.5)


def fill_status(percentage: int) -> FillStatus:
    if percentage <= SAFE_MAX_PERCENT:
        return FillStatus.SAFE
    if percentage <= WARNING_MAX_PERCENT:
        return FillStatus.WARNING
    return FillStatus.DANGER


def fill_color(status: FillStatus) -> str:
    return _FILL_COLORS[status]


def buffer_minutes(used_minutes: int, total_minutes: int) -> int:
    return max(0, total_minutes - used_minutes)


def format_duration(minutes: int) -> str:
    """45 -> "45m", 120 -> "2h", 90 -> "1h 30m"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def used_minutes(tasks: Iterable[Task]) -> int:
    """Sum of durations of the tasks that still count against capacity."""
    return sum(t.duration_minutes for t in tasks if t.is_active)


def queue_total_minutes(templates: list[QueueTemplate]) -> int:
    """
    Slot capacity of a queue: the duration of its first time slot.
    Queues without any slot get DEFAULT_SLOT_MINUTES.
    """
    if not templates:
        return DEFAULT_SLOT_MINUTES
    first = templates[0]
    return duration_minutes(first.start_time, first.end_time)


@dataclass(frozen=True, slots=True)
class QueueLoad:
    queue_id: str
    total_minutes: int
    used_minutes: int
    buffer_minutes: int
    over_minutes: int
    percentage: int
    status: FillStatus
    active_tasks: list[Task] = field(default_factory=list)
    completed_tasks: list[Task] = field(default_factory=list)

    @property
    def color(self) -> str:
        return fill_color(self.status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "queueId": self.queue_id,
            "totalMinutes": self.total_minutes,
            "usedMinutes": self.used_minutes,
            "bufferMinutes": self.buffer_minutes,
            "overMinutes": self.over_minutes,
            "percentage": self.percentage,
            "status": self.status.value,
            "color": self.color,
            "activeTaskIds": [t.id for t in self.active_tasks],
            "completedTaskIds": [t.id for t in self.completed_tasks],
        }


def compute_load(queue_id: str, tasks: Iterable[Task], total_minutes: int) -> QueueLoad:
    """Load of one queue's tasks against `total_minutes` of slot time."""
    members = sorted(tasks, key=lambda t: t.title.casefold())
    active = [t for t in members if t.is_active]
    done = [t for t in members if not t.is_active]

    used = used_minutes(active)
    pct = fill_percentage(used, total_minutes)
    return QueueLoad(
        queue_id=queue_id,
        total_minutes=total_minutes,
        used_minutes=used,
        buffer_minutes=buffer_minutes(used, total_minutes),
        over_minutes=max(0, used - total_minutes),
        percentage=pct,
        status=fill_status(pct),
        active_tasks=active,
        completed_tasks=done,
    )
