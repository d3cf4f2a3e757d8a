# src/bium/storage/seed.py

"""Demo data written on first start (when no db.json exists yet)."""

from __future__ import annotations

from ..core.models import AppSettings, Queue, QueueTemplate, Snapshot, Task


def default_snapshot() -> Snapshot:
    return Snapshot(
        queues=[
            Queue(id="q_deepwork", title="Deep Work", color="#3B82F6"),
            Queue(id="q_admin", title="Admin", color="#10B981"),
            Queue(id="q_creative", title="Creative", color="#8B5CF6"),
        ],
        queue_templates=[
            # Deep Work: Mon / Wed / Fri mornings
            QueueTemplate(id="qt_001", queue_id="q_deepwork", day_of_week=1, start_time="09:00", end_time="11:00"),
            QueueTemplate(id="qt_002", queue_id="q_deepwork", day_of_week=3, start_time="09:00", end_time="11:00"),
            QueueTemplate(id="qt_003", queue_id="q_deepwork", day_of_week=5, start_time="09:00", end_time="11:00"),
            # Admin: Tue / Thu afternoons
            QueueTemplate(id="qt_004", queue_id="q_admin", day_of_week=2, start_time="14:00", end_time="16:00"),
            QueueTemplate(id="qt_005", queue_id="q_admin", day_of_week=4, start_time="14:00", end_time="16:00"),
            # Creative: Mon afternoon
            QueueTemplate(id="qt_006", queue_id="q_creative", day_of_week=1, start_time="14:00", end_time="16:00"),
        ],
        tasks=[
            Task(id="t_001", title="Write Blog Post", duration_minutes=60),
            Task(id="t_002", title="Prepare Presentation", duration_minutes=90),
            Task(id="t_003", title="Client Meeting Prep", duration_minutes=45),
            Task(id="t_004", title="Review Code", duration_minutes=30),
            Task(id="t_005", title="Email Cleanup", duration_minutes=30),
        ],
        settings=AppSettings(),
    )
