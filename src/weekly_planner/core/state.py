# src/weekly_planner/core/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..auth.identity import IdentityBootstrap, Session
from ..planner.confirm import ConfirmationGate
from ..planner.store import StateStore
from ..planner.sync import DocumentSynchronizer
from .errors import AuthError, PlannerError, SaveError, SyncError
from .ports import IdentityProvider, PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """
    Per-run context shared by the connectors and commands.

    Built once by the composition root (cli/bootstrap.py); the session and the
    document subscription are scoped by `open_session` and released on exit.
    """

    # Store Settings on the state for easy access in other modules later.
    settings: Any

    gateway: PersistenceGateway
    identity: IdentityProvider
    bootstrap: IdentityBootstrap
    store: StateStore
    gate: ConfirmationGate
    synchronizer: DocumentSynchronizer

    session: Session | None = None

    # Auth/Sync failure: replaces the normal view.
    error: PlannerError | None = None
    # Save failure: shown once, then cleared.
    notice: str | None = None
    # Most recent notice, kept for /status after it has been shown.
    last_notice: str | None = None

    def report_error(self, err: PlannerError) -> None:
        if isinstance(err, (AuthError, SyncError)):
            self.error = err
        else:
            if not isinstance(err, SaveError):
                logger.warning("Unclassified planner error: %s", err)
            self.notice = self.last_notice = err.user_message

    def take_notice(self) -> str | None:
        notice, self.notice = self.notice, None
        return notice
