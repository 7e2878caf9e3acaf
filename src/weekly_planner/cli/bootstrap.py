# src/weekly_planner/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (SQLite gateway, local identity) into AppState,
- scopes a signed-in session: identity first, then the document subscription,
  and always releases the subscription on the way out.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from ..auth.identity import IdentityBootstrap
from ..auth.local_provider import LocalIdentityProvider
from ..config import get_settings
from ..core.errors import AuthError
from ..core.ports import IdentityProvider, PersistenceGateway
from ..core.state import AppState
from ..planner.confirm import ConfirmAction, ConfirmationGate
from ..planner.store import StateStore
from ..planner.sync import DocumentSynchronizer
from ..storage.sqlite_gateway import SqliteDocumentGateway

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.session_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    gateway: PersistenceGateway | None = None,
    identity: IdentityProvider | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and adapters injectable makes the app easier to test and avoids
    hidden global config reads. If settings is None, falls back to get_settings().
    Must be called from inside a running event loop when the SQLite gateway is used.
    """
    if settings is None:
        settings = get_settings()

    if gateway is None or identity is None:
        _ensure_local_dirs(settings)
    if gateway is None:
        gateway = SqliteDocumentGateway(
            settings.db_path, poll_interval=settings.poll_interval_seconds
        )
    if identity is None:
        identity = LocalIdentityProvider(settings.session_path, auth_secret=settings.auth_secret)

    store = StateStore()
    gate = ConfirmationGate({ConfirmAction.RESET_ALL: store.reset_all})
    synchronizer = DocumentSynchronizer(gateway, store, app_namespace=settings.app_namespace)

    state = AppState(
        settings=settings,
        gateway=gateway,
        identity=identity,
        bootstrap=IdentityBootstrap(identity, initial_auth_token=settings.initial_auth_token),
        store=store,
        gate=gate,
        synchronizer=synchronizer,
    )

    # Late wiring: both report into the state they belong to.
    store.on_save_error = state.report_error
    synchronizer.on_error = state.report_error
    return state


@contextlib.asynccontextmanager
async def open_session(state: AppState) -> AsyncIterator[AppState]:
    """
    Sign in, subscribe to the user document and wait for the first snapshot.

    AuthError is recorded on the state and re-raised (nothing to release yet).
    On exit the subscription is closed before pending writes are flushed, so no
    push can touch the store after the scope ends.
    """
    try:
        state.session = await state.bootstrap.establish()
    except AuthError as e:
        state.report_error(e)
        raise

    state.synchronizer.open(state.session)
    try:
        await state.synchronizer.wait_loaded()
        yield state
    finally:
        state.synchronizer.close()
        try:
            await state.synchronizer.flush()
            await state.store.flush()
        except Exception:
            logger.exception("Failed to flush pending writes.")
        logger.info("Session released user=%s", state.session.user_id)
