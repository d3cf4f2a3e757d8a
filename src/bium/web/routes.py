# src/bium/web/routes.py
import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Request, Response

from ..core.state import AppState
from ..core.week import build_week_plan, current_week_key
from .schemas import (
    QueueCreate,
    QueueTemplateCreate,
    QueueTemplateUpdate,
    QueueUpdate,
    SettingsUpdate,
    TaskCreate,
    TaskRef,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_state(request: Request) -> AppState:
    return request.app.state.bium


@router.get("/health")
def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ==================== QUEUES ====================


@router.get("/queues")
def list_queues(state: AppState = Depends(get_state)):
    with state.read() as store:
        return [store.queue_payload(q) for q in store.list_queues()]


@router.post("/queues", status_code=201)
def create_queue(body: QueueCreate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        queue = store.create_queue(body.title, body.color)
        return store.queue_payload(queue)


@router.post("/queues/empty-all")
def empty_all_queues(state: AppState = Depends(get_state)):
    """Move every assigned or completed task back to the inbox."""
    with state.transaction() as store:
        moved = store.empty_all_queues()
    return {"message": "All queues emptied", "moved": moved}


@router.get("/queues/{queue_id}")
def get_queue(queue_id: str, state: AppState = Depends(get_state)):
    with state.read() as store:
        return store.queue_payload(store.get_queue(queue_id))


@router.put("/queues/{queue_id}")
def update_queue(queue_id: str, body: QueueUpdate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        queue = store.update_queue(queue_id, **body.patch())
        return store.queue_payload(queue)


@router.delete("/queues/{queue_id}", status_code=204)
def delete_queue(queue_id: str, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        store.delete_queue(queue_id)
    return Response(status_code=204)


@router.get("/queues/{queue_id}/load")
def queue_load(queue_id: str, state: AppState = Depends(get_state)):
    """Capacity report: active minutes against the queue's slot length."""
    with state.read() as store:
        return store.queue_load(queue_id).to_dict()


@router.post("/queues/{queue_id}/assign")
def assign_task(queue_id: str, body: TaskRef, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        queue, task = store.assign_to_queue(body.task_id, queue_id)
        return {"queue": store.queue_payload(queue), "task": task.to_dict()}


@router.post("/queues/{queue_id}/unassign")
def unassign_task(queue_id: str, body: TaskRef, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        queue, task = store.unassign_from_queue(body.task_id, queue_id)
        return {"queue": store.queue_payload(queue), "task": task.to_dict()}


# ==================== QUEUE TEMPLATES ====================


@router.get("/queue-templates")
def list_queue_templates(state: AppState = Depends(get_state)):
    with state.read() as store:
        return [qt.to_dict() for qt in store.list_queue_templates()]


@router.post("/queue-templates", status_code=201)
def create_queue_template(body: QueueTemplateCreate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        template = store.create_queue_template(body.queue_id, body.day_of_week, body.start_time, body.end_time)
        return template.to_dict()


@router.put("/queue-templates/{template_id}")
def update_queue_template(template_id: str, body: QueueTemplateUpdate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        return store.update_queue_template(template_id, **body.patch()).to_dict()


@router.delete("/queue-templates/{template_id}", status_code=204)
def delete_queue_template(template_id: str, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        store.delete_queue_template(template_id)
    return Response(status_code=204)


# ==================== TASKS ====================


@router.get("/tasks")
def list_tasks(state: AppState = Depends(get_state)):
    with state.read() as store:
        return [t.to_dict() for t in store.list_tasks()]


@router.get("/tasks/inbox")
def list_inbox_tasks(state: AppState = Depends(get_state)):
    with state.read() as store:
        return [t.to_dict() for t in store.list_inbox_tasks()]


@router.post("/tasks", status_code=201)
def create_task(body: TaskCreate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        return store.create_task(body.title, body.duration_minutes, body.obsidian_link).to_dict()


@router.get("/tasks/{task_id}")
def get_task(task_id: str, state: AppState = Depends(get_state)):
    with state.read() as store:
        return store.get_task(task_id).to_dict()


@router.put("/tasks/{task_id}")
def update_task(task_id: str, body: TaskUpdate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        return store.update_task(task_id, **body.patch()).to_dict()


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: str, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        store.delete_task(task_id)
    return Response(status_code=204)


@router.post("/tasks/{task_id}/complete")
def complete_task(task_id: str, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        return store.complete(task_id).to_dict()


@router.post("/tasks/{task_id}/uncomplete")
def uncomplete_task(task_id: str, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        return store.uncomplete(task_id).to_dict()


# ==================== WEEK PLAN ====================


@router.get("/week")
def week_plan(day: date | None = None, state: AppState = Depends(get_state)):
    """Templates of the week containing `day` (default: today), with slot loads."""
    today = day or date.today()
    with state.read() as store:
        plan = build_week_plan(store, today)
        return {"weekKey": current_week_key(today), "days": [d.to_dict() for d in plan]}


# ==================== SETTINGS ====================


@router.get("/settings")
def get_settings(state: AppState = Depends(get_state)):
    with state.read() as store:
        return store.get_settings().to_dict()


@router.put("/settings")
def update_settings(body: SettingsUpdate, state: AppState = Depends(get_state)):
    with state.transaction() as store:
        return store.update_settings(**body.patch()).to_dict()
