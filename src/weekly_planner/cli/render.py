# src/weekly_planner/cli/render.py

"""Plain-text views of a UserDocument for the console."""

from __future__ import annotations

from ..planner.models import WEEKDAYS, RoutineEntry, Task, UserDocument, Weekday

DAY_LABELS: dict[Weekday, str] = {
    Weekday.MONDAY: "Monday",
    Weekday.TUESDAY: "Tuesday",
    Weekday.WEDNESDAY: "Wednesday",
    Weekday.THURSDAY: "Thursday",
    Weekday.FRIDAY: "Friday",
    Weekday.SATURDAY: "Saturday",
    Weekday.SUNDAY: "Sunday",
}


def _task_lines(tasks: tuple[Task, ...], empty: str, indent: str = "  ") -> list[str]:
    if not tasks:
        return [f"{indent}{empty}"]
    return [
        f"{indent}{i}. [{'x' if t.completed else ' '}] {t.text}" for i, t in enumerate(tasks, start=1)
    ]


def render_global(doc: UserDocument) -> str:
    lines = ["Weekly tasks:"]
    lines += _task_lines(doc.global_tasks, "No weekly tasks yet.")
    return "\n".join(lines)


def render_daily(doc: UserDocument) -> str:
    lines = ["Daily tasks:"]
    for day in WEEKDAYS:
        lines.append(f"  {DAY_LABELS[day]}:")
        lines += _task_lines(doc.daily_tasks[day], "No tasks for this day.", indent="    ")
    return "\n".join(lines)


def _routine_row(i: int, routine: RoutineEntry) -> str:
    marks = " ".join("x" if routine.completion[day] else "." for day in WEEKDAYS)
    return f"  {i}. {marks}  {routine.text}"


def render_routines(doc: UserDocument) -> str:
    lines = ["Routines:"]
    if not doc.routines:
        lines.append("  No routines yet.")
        return "\n".join(lines)
    header = " ".join(DAY_LABELS[day][0] for day in WEEKDAYS)
    lines.append(f"     {header}")
    lines += [_routine_row(i, r) for i, r in enumerate(doc.routines, start=1)]
    return "\n".join(lines)


def render_document(doc: UserDocument) -> str:
    return "\n\n".join([render_global(doc), render_daily(doc), render_routines(doc)])
