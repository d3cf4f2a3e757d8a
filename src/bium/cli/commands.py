# src/bium/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import date
from typing import cast

from ..core.capacity import format_duration
from ..core.errors import NotFound, ValidationError
from ..core.models import Task
from ..core.state import AppState
from ..core.week import build_week_plan, current_week_key

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console shell (/help, /inbox, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Store errors (unknown id, bad input) become the reply text.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (NotFound, ValidationError) as e:
            logger.debug("Command /%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _task_line(t: Task) -> str:
    mark = "x" if t.completed_at else " "
    return f"  [{mark}] {t.id}  {t.title} ({format_duration(t.duration_minutes)})"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    with state.read() as store:
        n_queues = len(store.list_queues())
        n_templates = len(store.list_queue_templates())
        n_tasks = len(store.list_tasks())
        n_inbox = len(store.list_inbox_tasks())
        language = store.get_settings().language
    data = getattr(state.settings, "db_path", "?")
    return (
        "Status:\n"
        f"  Queues: {n_queues} ({n_templates} weekly slots)\n"
        f"  Tasks: {n_tasks} ({n_inbox} in inbox)\n"
        f"  Language: {language}\n"
        f"  Data file: {data}"
    )


def cmd_inbox(state: AppState, args: list[str]) -> str:
    with state.read() as store:
        tasks = store.list_inbox_tasks()
    if not tasks:
        return "Inbox is empty."
    return "\n".join(["Inbox:", *(_task_line(t) for t in tasks)])


def cmd_queues(state: AppState, args: list[str]) -> str:
    with state.read() as store:
        queues = store.list_queues()
        if not queues:
            return "No queues defined. Use /newq <title> to create one."
        lines = ["Queues:"]
        for q in queues:
            load = store.queue_load(q.id)
            lines.append(
                f"  {q.id}  {q.title} {q.color}  "
                f"{format_duration(load.used_minutes)} / {format_duration(load.total_minutes)} "
                f"({load.percentage}% {load.status})"
            )
            lines.extend(_task_line(t) for t in load.active_tasks + load.completed_tasks)
    return "\n".join(lines)


def capture_task(state: AppState, title: str, minutes: int | None = None) -> str:
    """Put `title` into the inbox as-is (plain console lines land here too)."""
    with state.transaction() as store:
        task = store.create_task(title, minutes)
    return f"Added {task.id}: {task.title} ({format_duration(task.duration_minutes)})"


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title...>            -> new inbox task (30m)
    /add <minutes> <title...>  -> new inbox task with a duration
    """
    minutes: int | None = None
    if args and args[0].isdigit():
        minutes = int(args[0])
        args = args[1:]
    if not args:
        return "Usage: /add [minutes] <title>"

    return capture_task(state, " ".join(args), minutes)


def cmd_newq(state: AppState, args: list[str]) -> str:
    """
    /newq <title...>          -> new queue (default color)
    /newq #RRGGBB <title...>  -> new queue with a color
    """
    color: str | None = None
    if args and args[0].startswith("#"):
        color = args[0]
        args = args[1:]
    if not args:
        return "Usage: /newq [#RRGGBB] <title>"

    with state.transaction() as store:
        queue = store.create_queue(" ".join(args), color)
    return f"Created queue {queue.id}: {queue.title} {queue.color}"


def cmd_assign(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /assign <task_id> <queue_id>"
    with state.transaction() as store:
        queue, task = store.assign_to_queue(args[0], args[1])
    return f"{task.title} -> {queue.title}"


def cmd_unassign(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /unassign <task_id>"
    with state.transaction() as store:
        task = store.get_task(args[0])
        if task.assigned_queue_id is None:
            return f"{task.title} is already in the inbox."
        _, task = store.unassign_from_queue(task.id, task.assigned_queue_id)
    return f"{task.title} -> inbox"


def cmd_done(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /done <task_id>"
    with state.transaction() as store:
        task = store.complete(args[0])
    return f"Completed: {task.title}"


def cmd_undone(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /undone <task_id>"
    with state.transaction() as store:
        task = store.uncomplete(args[0])
    return f"Reopened: {task.title} ({task.status})"


def cmd_rm(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /rm <task_id>"
    with state.transaction() as store:
        store.delete_task(args[0])
    return f"Deleted task {args[0]}."


def cmd_empty(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if args != ["yes"]:
        return "This moves every queued task back to the inbox. Confirm with: /empty yes"
    if emit:
        emit("Emptying all queues...")
    with state.transaction() as store:
        moved = store.empty_all_queues()
    return f"All queues emptied ({moved} tasks back in the inbox)."


def cmd_load(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /load <queue_id>"
    with state.read() as store:
        queue = store.get_queue(args[0])
        load = store.queue_load(queue.id)
    lines = [
        f"{queue.title}: {format_duration(load.used_minutes)} of {format_duration(load.total_minutes)}"
        f" ({load.percentage}% {load.status})",
        f"  Buffer: {format_duration(load.buffer_minutes)}",
    ]
    if load.over_minutes:
        lines.append(f"  Over by: {format_duration(load.over_minutes)}")
    lines.append(f"  Active: {len(load.active_tasks)}, completed: {len(load.completed_tasks)}")
    return "\n".join(lines)


def cmd_week(state: AppState, args: list[str]) -> str:
    today = date.today()
    with state.read() as store:
        plan = build_week_plan(store, today)
    lines = [f"Week {current_week_key(today)}:"]
    for day in plan:
        marker = " (today)" if day.day.is_today else ""
        lines.append(f"  {day.day.day_name} {day.day.date.isoformat()}{marker}")
        if not day.slots:
            lines.append("    -")
        for slot in day.slots:
            lines.append(
                f"    {slot.template.start_time}-{slot.template.end_time}  {slot.queue.title}  "
                f"{slot.load.percentage}% {slot.load.status}"
            )
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show totals and the data file.")
registry.register("inbox", cmd_inbox, help_text="List inbox tasks.", aliases=["i"])
registry.register("queues", cmd_queues, help_text="List queues with their load.", aliases=["q"])
registry.register("add", cmd_add, help_text="Capture a task: /add [minutes] <title>.")
registry.register("newq", cmd_newq, help_text="Create a queue: /newq [#RRGGBB] <title>.")
registry.register("assign", cmd_assign, help_text="Assign: /assign <task_id> <queue_id>.")
registry.register("unassign", cmd_unassign, help_text="Back to inbox: /unassign <task_id>.")
registry.register("done", cmd_done, help_text="Complete a task: /done <task_id>.")
registry.register("undone", cmd_undone, help_text="Reopen a task: /undone <task_id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <task_id>.")
registry.register("empty", cmd_empty, help_text="Move all queued tasks back to the inbox: /empty yes.")
registry.register("load", cmd_load, help_text="Capacity of a queue: /load <queue_id>.")
registry.register("week", cmd_week, help_text="Show this week's time blocks.", aliases=["w"])
