# src/bium/core/week.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from .capacity import QueueLoad
from .models import Queue, QueueTemplate, WeekConvention

if TYPE_CHECKING:
    from .store import SchedulingStore

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True, slots=True)
class WeekDay:
    date: date
    day_of_week: int
    day_name: str
    is_today: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "dayOfWeek": self.day_of_week,
            "dayName": self.day_name,
            "isToday": self.is_today,
        }


def week_dates(today: date, convention: WeekConvention = WeekConvention.MONDAY) -> list[WeekDay]:
    """
    Days of the week containing `today`, numbered per `convention`.

    monday: Mon..Fri as 1..5 (a Sunday belongs to the week that just ended).
    sunday: Sun..Sat as 0..6.
    """
    if convention is WeekConvention.SUNDAY:
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        days = [start + timedelta(days=i) for i in range(7)]
        return [
            WeekDay(date=d, day_of_week=i, day_name=_DAY_NAMES[d.weekday()], is_today=d == today)
            for i, d in enumerate(days)
        ]

    monday = today - timedelta(days=today.weekday())
    return [
        WeekDay(
            date=monday + timedelta(days=i),
            day_of_week=i + 1,
            day_name=_DAY_NAMES[i],
            is_today=monday + timedelta(days=i) == today,
        )
        for i in range(5)
    ]


def current_week_key(today: date) -> str:
    """ISO week key, e.g. "2026-W43"."""
    year, week, _ = today.isocalendar()
    return f"{year}-W{week:02d}"


@dataclass(frozen=True, slots=True)
class PlanSlot:
    template: QueueTemplate
    queue: Queue
    load: QueueLoad

    def to_dict(self) -> dict[str, Any]:
        return {
            "template": self.template.to_dict(),
            "queue": {"id": self.queue.id, "title": self.queue.title, "color": self.queue.color},
            "load": self.load.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class PlanDay:
    day: WeekDay
    slots: list[PlanSlot]

    def to_dict(self) -> dict[str, Any]:
        return {**self.day.to_dict(), "slots": [s.to_dict() for s in self.slots]}


def build_week_plan(store: SchedulingStore, today: date) -> list[PlanDay]:
    """Lay every queue template into its day of the current week, earliest slot first."""
    plan: list[PlanDay] = []
    templates = store.list_queue_templates()
    for day in week_dates(today, store.convention):
        day_templates = sorted(
            (qt for qt in templates if qt.day_of_week == day.day_of_week),
            key=lambda qt: qt.start_time,
        )
        slots = [
            PlanSlot(template=qt, queue=store.get_queue(qt.queue_id), load=store.slot_load(qt.id))
            for qt in day_templates
        ]
        plan.append(PlanDay(day=day, slots=slots))
    return plan
