# src/weekly_planner/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Sequence
from typing import cast

from ..core.state import AppState
from ..planner.confirm import ConfirmAction
from ..planner.models import WEEKDAYS, Weekday
from .render import render_daily, render_document, render_global, render_routines

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

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
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve(items: Sequence, ref: str):
    """Find an item by 1-based list position or by id."""
    ref = ref.strip()
    if ref.isdigit():
        idx = int(ref)
        if 1 <= idx <= len(items):
            return items[idx - 1]
    for item in items:
        if item.id == ref:
            return item
    return None


def _parse_day(raw: str) -> Weekday | None:
    # Typed input is forgiving; the store itself only takes canonical names.
    try:
        return Weekday.parse(raw.strip().lower())
    except ValueError:
        return None


_DAYS_HINT = ", ".join(d.value for d in WEEKDAYS)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    session = state.session
    doc = state.store.document
    daily_total = sum(len(v) for v in doc.daily_tasks.values())
    return (
        "Status:\n"
        f"  User: {session.user_id if session else '-'} "
        f"({session.method.value if session else 'signed out'})\n"
        f"  Document: {state.store.key or '-'}\n"
        f"  Items: {len(doc.global_tasks)} weekly, {daily_total} daily, {len(doc.routines)} routines\n"
        f"  Pending writes: {state.store.pending_writes}\n"
        f"  Confirmation pending: {'yes' if state.gate.is_pending else 'no'}\n"
        f"  Last notice: {state.last_notice or '-'}"
    )


def cmd_show(state: AppState, args: list[str]) -> str:
    doc = state.store.document
    if not args:
        return render_document(doc)
    views = {"global": render_global, "daily": render_daily, "routines": render_routines}
    view = views.get(args[0].lower())
    if view is None:
        return "Usage: /show [global|daily|routines]"
    return view(doc)


def cmd_add(state: AppState, args: list[str]) -> str:
    task = state.store.add_global_task(" ".join(args))
    if task is None:
        return "Usage: /add <text>"
    return f"Added: {task.text}"


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <n|id>"
    task = _resolve(state.store.global_tasks, args[0])
    if task is None or not state.store.toggle_global_task(task.id):
        return f"No weekly task {args[0]}."
    return f"{'Reopened' if task.completed else 'Done'}: {task.text}"


def cmd_del(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <n|id>"
    task = _resolve(state.store.global_tasks, args[0])
    if task is None or not state.store.delete_global_task(task.id):
        return f"No weekly task {args[0]}."
    return f"Deleted: {task.text}"


def cmd_day(state: AppState, args: list[str]) -> str:
    """
    /day <weekday> add <text>
    /day <weekday> toggle <n|id>
    /day <weekday> del <n|id>
    """
    usage = "Usage: /day <weekday> add <text> | toggle <n|id> | del <n|id>"
    if len(args) < 3:
        return usage

    day = _parse_day(args[0])
    if day is None:
        return f"Unknown weekday: {args[0]}. Use one of: {_DAYS_HINT}."

    sub, rest = args[1].lower(), args[2:]
    store = state.store

    if sub == "add":
        task = store.add_daily_task(day, " ".join(rest))
        return f"Added to {day.value}: {task.text}" if task else usage

    task = _resolve(store.daily_tasks[day], rest[0])
    if task is None:
        return f"No task {rest[0]} on {day.value}."

    if sub == "toggle":
        store.toggle_daily_task(day, task.id)
        return f"{'Reopened' if task.completed else 'Done'}: {task.text}"
    if sub in ("del", "delete", "rm"):
        store.delete_daily_task(day, task.id)
        return f"Deleted from {day.value}: {task.text}"
    return usage


def cmd_routine(state: AppState, args: list[str]) -> str:
    """
    /routine add <text>
    /routine toggle <n|id> <weekday>
    /routine del <n|id>
    """
    usage = "Usage: /routine add <text> | toggle <n|id> <weekday> | del <n|id>"
    if len(args) < 2:
        return usage

    sub, rest = args[0].lower(), args[1:]
    store = state.store

    if sub == "add":
        routine = store.add_routine(" ".join(rest))
        return f"Routine added: {routine.text}" if routine else usage

    routine = _resolve(store.routines, rest[0])
    if routine is None:
        return f"No routine {rest[0]}."

    if sub == "toggle":
        if len(rest) < 2:
            return usage
        day = _parse_day(rest[1])
        if day is None:
            return f"Unknown weekday: {rest[1]}. Use one of: {_DAYS_HINT}."
        store.toggle_routine_completion(routine.id, day)
        mark = "unchecked" if routine.completion[day] else "checked"
        return f"{routine.text}: {day.value} {mark}."
    if sub in ("del", "delete", "rm"):
        store.delete_routine(routine.id)
        return f"Routine deleted: {routine.text}"
    return usage


def cmd_reset(state: AppState, args: list[str]) -> str:
    pending = state.gate.request(ConfirmAction.RESET_ALL)
    return f"{pending.message}\nType /yes to confirm or /no to cancel."


def cmd_yes(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    pending = state.gate.pending
    if pending is None:
        return "Nothing to confirm."
    if emit:
        emit(f"Running {pending.action.value}...")
    state.gate.confirm()
    return "Done."


def cmd_no(state: AppState, args: list[str]) -> str:
    return "Cancelled." if state.gate.cancel() else "Nothing to cancel."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show user, document key and sync status.")
registry.register("show", cmd_show, help_text="Show tasks: /show [global|daily|routines].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a weekly task: /add <text>.")
registry.register("toggle", cmd_toggle, help_text="Toggle a weekly task: /toggle <n|id>.")
registry.register("del", cmd_del, help_text="Delete a weekly task: /del <n|id>.", aliases=["rm"])
registry.register(
    "day", cmd_day, help_text="Daily tasks: /day <weekday> add <text> | toggle <n> | del <n>."
)
registry.register(
    "routine",
    cmd_routine,
    help_text="Routines: /routine add <text> | toggle <n> <weekday> | del <n>.",
)
registry.register("reset", cmd_reset, help_text="Erase everything (asks for confirmation).")
registry.register("yes", cmd_yes, help_text="Confirm the pending action.", aliases=["y"])
registry.register("no", cmd_no, help_text="Cancel the pending action.", aliases=["n"])
