# src/weekly_planner/planner/confirm.py

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class ConfirmAction(StrEnum):
    RESET_ALL = "reset_all"


DEFAULT_MESSAGES: dict[ConfirmAction, str] = {
    ConfirmAction.RESET_ALL: (
        "Are you sure you want to erase everything? This action cannot be undone."
    ),
}


@dataclass(frozen=True, slots=True)
class PendingConfirmation:
    action: ConfirmAction
    message: str


class ConfirmationGate:
    """
    Two-state machine in front of destructive actions.

        Idle --request--> Pending(action, message) --confirm/cancel--> Idle

    request() has no side effect; only confirm() runs the handler registered for
    the pending action. A new request while pending replaces the old one.
    """

    def __init__(self, handlers: Mapping[ConfirmAction, Callable[[], object]]) -> None:
        self._handlers = dict(handlers)
        self._pending: PendingConfirmation | None = None

    @property
    def pending(self) -> PendingConfirmation | None:
        return self._pending

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def request(self, action: ConfirmAction, message: str | None = None) -> PendingConfirmation:
        if action not in self._handlers:
            raise ValueError(f"no handler registered for {action!r}")
        if self._pending is not None:
            logger.debug("Replacing pending confirmation %s -> %s", self._pending.action, action)
        self._pending = PendingConfirmation(
            action=action,
            message=message or DEFAULT_MESSAGES.get(action, "Are you sure?"),
        )
        return self._pending

    def confirm(self) -> bool:
        pending = self._pending
        if pending is None:
            return False
        self._pending = None
        logger.info("Confirmed action=%s", pending.action.value)
        self._handlers[pending.action]()
        return True

    def cancel(self) -> bool:
        if self._pending is None:
            return False
        logger.debug("Cancelled action=%s", self._pending.action.value)
        self._pending = None
        return True
