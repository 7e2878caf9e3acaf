# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from weekly_planner.cli.bootstrap import create_initial_state
from weekly_planner.core.state import AppState
from weekly_planner.planner.models import DocumentKey
from weekly_planner.planner.store import StateStore

from .fakes import FakeGateway, FakeIdentityProvider, counter_ids


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="weekly-planner-test",
        log_level="DEBUG",
        app_namespace="test-app",
        initial_auth_token=None,
        auth_secret="s3cret",
        data_dir=tmp_path,
        db_path=tmp_path / "documents.sqlite3",
        session_path=tmp_path / "session.json",
        poll_interval_seconds=0.0,
    )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def doc_key() -> DocumentKey:
    return DocumentKey("test-app", "u1")


@pytest.fixture()
def store(gateway: FakeGateway, doc_key: DocumentKey) -> StateStore:
    """StateStore bound to the in-memory gateway with deterministic ids."""
    s = StateStore(id_factory=counter_ids())
    s.bind(gateway, doc_key)
    return s


@pytest.fixture()
def state(settings: SimpleNamespace, gateway: FakeGateway) -> AppState:
    """AppState wired with fakes (no SQLite, no session file)."""
    return create_initial_state(
        settings=settings,
        gateway=gateway,
        identity=FakeIdentityProvider(anonymous_user="u1"),
    )
