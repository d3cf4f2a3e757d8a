# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from bium.cli.bootstrap import create_initial_state
from bium.core.models import WeekConvention
from bium.core.state import AppState
from bium.core.store import SchedulingStore
from bium.web.app import create_app

from .fakes import FixedClock, InMemorySnapshotRepo


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the web layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="bium-test",
        log_level="INFO",
        console_enabled=False,
        host="127.0.0.1",
        port=3000,
        cors_origins=["*"],
        week_convention=WeekConvention.MONDAY,
        seed_defaults=False,
        # Paths (tmp per test run)
        data_dir=tmp_path,
        db_path=tmp_path / "db.json",
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def store(clock: FixedClock) -> SchedulingStore:
    return SchedulingStore(clock=clock)


@pytest.fixture()
def repo() -> InMemorySnapshotRepo:
    return InMemorySnapshotRepo()


@pytest.fixture()
def state(settings: SimpleNamespace, repo: InMemorySnapshotRepo) -> AppState:
    """
    AppState wired with an in-memory repository.

    The store is real: its rules are what these tests are about.
    """
    return create_initial_state(settings=settings, repo=repo)


@pytest.fixture()
def client(state: AppState) -> TestClient:
    return TestClient(create_app(state))
