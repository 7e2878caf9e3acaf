# src/weekly_planner/planner/store.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace

from ..core.errors import SaveError
from ..core.ports import PersistenceGateway
from .models import (
    DailyTasks,
    DocumentKey,
    RoutineEntry,
    Task,
    TimestampIdFactory,
    UserDocument,
    Weekday,
    frozen_daily_tasks,
)

logger = logging.getLogger(__name__)

SaveErrorHandler = Callable[[SaveError], None]


class StateStore:
    """
    In-memory holder of the user's three collections.

    Every mutation:
    - builds a new immutable UserDocument,
    - makes it the current state (synchronously),
    - schedules a write of the *entire* document (fire-and-forget asyncio task).

    No-ops (blank text, unknown id) change nothing and write nothing.
    Failed writes are reported through on_save_error and are NOT rolled back.

    Known consistency gap: remote pushes (replace_all) are not serialized against
    in-flight writes. A push carrying an older snapshot can hide a local change
    until that change's own write echoes back. Last write wins.
    """

    def __init__(
        self,
        *,
        id_factory: Callable[[], str] | None = None,
        on_save_error: SaveErrorHandler | None = None,
    ) -> None:
        self._document = UserDocument.empty()
        self._new_id = id_factory or TimestampIdFactory()
        self.on_save_error = on_save_error
        self._gateway: PersistenceGateway | None = None
        self._key: DocumentKey | None = None
        self._pending: set[asyncio.Task[None]] = set()

    # ---- binding ----

    def bind(self, gateway: PersistenceGateway, key: DocumentKey) -> None:
        self._gateway = gateway
        self._key = key
        logger.debug("StateStore bound key=%s", key)

    def unbind(self) -> None:
        self._gateway = None
        self._key = None

    @property
    def key(self) -> DocumentKey | None:
        return self._key

    # ---- read access ----

    @property
    def document(self) -> UserDocument:
        return self._document

    @property
    def global_tasks(self) -> tuple[Task, ...]:
        return self._document.global_tasks

    @property
    def daily_tasks(self) -> DailyTasks:
        return self._document.daily_tasks

    @property
    def routines(self) -> tuple[RoutineEntry, ...]:
        return self._document.routines

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    # ---- global tasks ----

    def add_global_task(self, text: str) -> Task | None:
        text = (text or "").strip()
        if not text:
            return None
        task = Task(id=self._new_id(), text=text)
        self._commit(replace(self._document, global_tasks=(*self._document.global_tasks, task)))
        return task

    def toggle_global_task(self, task_id: str) -> bool:
        tasks = _toggle_task(self._document.global_tasks, task_id)
        if tasks is None:
            return False
        self._commit(replace(self._document, global_tasks=tasks))
        return True

    def delete_global_task(self, task_id: str) -> bool:
        tasks = _remove_one(self._document.global_tasks, task_id)
        if tasks is None:
            return False
        self._commit(replace(self._document, global_tasks=tasks))
        return True

    # ---- daily tasks ----

    def add_daily_task(self, day: str | Weekday, text: str) -> Task | None:
        wd = Weekday.parse(day)
        text = (text or "").strip()
        if not text:
            return None
        task = Task(id=self._new_id(), text=text)
        self._commit_day(wd, (*self._document.daily_tasks[wd], task))
        return task

    def toggle_daily_task(self, day: str | Weekday, task_id: str) -> bool:
        wd = Weekday.parse(day)
        tasks = _toggle_task(self._document.daily_tasks[wd], task_id)
        if tasks is None:
            return False
        self._commit_day(wd, tasks)
        return True

    def delete_daily_task(self, day: str | Weekday, task_id: str) -> bool:
        wd = Weekday.parse(day)
        tasks = _remove_one(self._document.daily_tasks[wd], task_id)
        if tasks is None:
            return False
        self._commit_day(wd, tasks)
        return True

    # ---- routines ----

    def add_routine(self, text: str) -> RoutineEntry | None:
        text = (text or "").strip()
        if not text:
            return None
        routine = RoutineEntry(id=self._new_id(), text=text)
        self._commit(replace(self._document, routines=(*self._document.routines, routine)))
        return routine

    def toggle_routine_completion(self, routine_id: str, day: str | Weekday) -> bool:
        wd = Weekday.parse(day)
        routines = list(self._document.routines)
        for i, routine in enumerate(routines):
            if routine.id == routine_id:
                routines[i] = routine.toggled(wd)
                self._commit(replace(self._document, routines=tuple(routines)))
                return True
        return False

    def delete_routine(self, routine_id: str) -> bool:
        routines = _remove_one(self._document.routines, routine_id)
        if routines is None:
            return False
        self._commit(replace(self._document, routines=routines))
        return True

    # ---- bulk ----

    def reset_all(self) -> None:
        """Wipe all three collections. Reached only through the ConfirmationGate."""
        logger.info("Resetting all collections key=%s", self._key)
        self._commit(UserDocument.empty())

    def replace_all(self, document: UserDocument) -> None:
        """Hydrate from a remote push. Never persists."""
        self._document = document

    async def flush(self) -> None:
        """Wait for writes that are still in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---- internals ----

    def _commit_day(self, day: Weekday, tasks: tuple[Task, ...]) -> None:
        daily = dict(self._document.daily_tasks)
        daily[day] = tasks
        self._commit(replace(self._document, daily_tasks=frozen_daily_tasks(daily)))

    def _commit(self, document: UserDocument) -> None:
        self._document = document
        self._persist(document)

    def _persist(self, document: UserDocument) -> None:
        gateway, key = self._gateway, self._key
        if gateway is None or key is None:
            logger.warning("Store not bound to a session; change kept in memory only.")
            return

        payload = document.to_dict()
        task = asyncio.get_running_loop().create_task(self._write(gateway, key, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, gateway: PersistenceGateway, key: DocumentKey, payload: dict) -> None:
        try:
            await gateway.write(key.path, payload)
            logger.debug("Document saved key=%s", key)
        except Exception as e:
            logger.exception("Error saving document key=%s", key)
            err = e if isinstance(e, SaveError) else SaveError()
            if self.on_save_error is not None:
                self.on_save_error(err)


def _toggle_task(tasks: tuple[Task, ...], task_id: str) -> tuple[Task, ...] | None:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return (*tasks[:i], task.toggled(), *tasks[i + 1 :])
    return None


def _remove_one(items, item_id: str):
    for i, item in enumerate(items):
        if item.id == item_id:
            return (*items[:i], *items[i + 1 :])
    return None
