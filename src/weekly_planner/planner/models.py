# src/weekly_planner/planner/models.py

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

DEFAULT_APP_NAMESPACE = "default-app-id"


class Weekday(StrEnum):
    """Canonical weekday keys (order matters for rendering)."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def parse(cls, raw: str | Weekday) -> Weekday:
        """Exact canonical name only; no case folding or trimming."""
        if isinstance(raw, Weekday):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"not a weekday: {raw!r}") from None


WEEKDAYS: tuple[Weekday, ...] = tuple(Weekday)


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    text: str
    completed: bool = False

    def toggled(self) -> Task:
        return Task(id=self.id, text=self.text, completed=not self.completed)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        return cls(
            id=str(raw.get("id", "")),
            text=str(raw.get("text", "")),
            completed=bool(raw.get("completed", False)),
        )


Completion = Mapping[Weekday, bool]


def _frozen_completion(values: Mapping[Weekday, bool] | None = None) -> Completion:
    values = values or {}
    return MappingProxyType({day: bool(values.get(day, False)) for day in WEEKDAYS})


@dataclass(frozen=True, slots=True)
class RoutineEntry:
    """
    A recurring habit checked off per weekday.

    `completion` always carries exactly the 7 canonical days and is read-only.
    """

    id: str
    text: str
    completion: Completion = field(default_factory=_frozen_completion)

    def toggled(self, day: Weekday) -> RoutineEntry:
        completion = dict(self.completion)
        completion[day] = not completion[day]
        return RoutineEntry(id=self.id, text=self.text, completion=_frozen_completion(completion))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completion": {day.value: bool(self.completion[day]) for day in WEEKDAYS},
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RoutineEntry:
        stored = raw.get("completion")
        stored = stored if isinstance(stored, dict) else {}
        # Unknown keys are dropped, missing days default to False.
        completion = {day: bool(stored.get(day.value, False)) for day in WEEKDAYS}
        return cls(
            id=str(raw.get("id", "")),
            text=str(raw.get("text", "")),
            completion=_frozen_completion(completion),
        )


DailyTasks = Mapping[Weekday, tuple[Task, ...]]


def frozen_daily_tasks(buckets: Mapping[Weekday, tuple[Task, ...]] | None = None) -> DailyTasks:
    """Read-only mapping with all 7 weekday buckets; missing days are empty."""
    buckets = buckets or {}
    return MappingProxyType({day: tuple(buckets.get(day, ())) for day in WEEKDAYS})


def empty_daily_tasks() -> DailyTasks:
    return frozen_daily_tasks()


def _tasks_from_list(raw: Any) -> tuple[Task, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(Task.from_dict(item) for item in raw if isinstance(item, dict))


@dataclass(frozen=True, slots=True)
class UserDocument:
    """
    The single persisted snapshot of one user's data.

    Snapshots are never mutated in place: every edit builds a new document
    (dataclasses.replace) and the whole thing is written back.
    """

    global_tasks: tuple[Task, ...] = ()
    daily_tasks: DailyTasks = field(default_factory=empty_daily_tasks)
    routines: tuple[RoutineEntry, ...] = ()

    @classmethod
    def empty(cls) -> UserDocument:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return {
            "globalTasks": [t.to_dict() for t in self.global_tasks],
            "dailyTasks": {
                day.value: [t.to_dict() for t in self.daily_tasks[day]] for day in WEEKDAYS
            },
            "routines": [r.to_dict() for r in self.routines],
        }

    @classmethod
    def from_dict(cls, data: Any) -> UserDocument:
        """
        Build a document from stored data.

        Partial or malformed input never raises: absent fields fall back to
        their empty form, missing weekday buckets are filled in and
        non-object items are skipped.
        """
        if not isinstance(data, dict):
            return cls.empty()

        raw_daily = data.get("dailyTasks")
        raw_daily = raw_daily if isinstance(raw_daily, dict) else {}
        daily = {day: _tasks_from_list(raw_daily.get(day.value)) for day in WEEKDAYS}

        raw_routines = data.get("routines")
        routines: tuple[RoutineEntry, ...] = ()
        if isinstance(raw_routines, list):
            routines = tuple(
                RoutineEntry.from_dict(item) for item in raw_routines if isinstance(item, dict)
            )

        return cls(
            global_tasks=_tasks_from_list(data.get("globalTasks")),
            daily_tasks=frozen_daily_tasks(daily),
            routines=routines,
        )


@dataclass(frozen=True, slots=True)
class DocumentKey:
    """Fixed single-document-per-user location."""

    app_namespace: str
    user_id: str

    def __post_init__(self) -> None:
        if not self.app_namespace or not self.app_namespace.strip():
            raise ValueError("app_namespace is required")
        if not self.user_id or not self.user_id.strip():
            raise ValueError("user_id is required")
        for name, value in (("app_namespace", self.app_namespace), ("user_id", self.user_id)):
            if "/" in value:
                raise ValueError(f"{name} must not contain '/': {value!r}")

    @property
    def parts(self) -> tuple[str, ...]:
        return (
            "artifacts",
            self.app_namespace,
            "users",
            self.user_id,
            "tasksAndRoutines",
            "user_data",
        )

    @property
    def path(self) -> str:
        return "/".join(self.parts)

    def __str__(self) -> str:
        return self.path


class TimestampIdFactory:
    """
    Millisecond-timestamp ids, strictly increasing within the process.

    Two adds in the same millisecond get consecutive values instead of colliding.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            now_ms = time.time_ns() // 1_000_000
            self._last = max(now_ms, self._last + 1)
            return str(self._last)
