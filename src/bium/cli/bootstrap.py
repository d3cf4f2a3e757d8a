# src/bium/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- loads the stored snapshot (or seeds demo data on first start),
- wires the store and its JSON repository into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.models import Snapshot, WeekConvention
from ..core.ports import SnapshotRepo
from ..core.state import AppState
from ..core.store import SchedulingStore
from ..storage.json_repo import JsonSnapshotRepo
from ..storage.seed import default_snapshot

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def load_or_seed(repo: SnapshotRepo, *, seed_defaults: bool) -> Snapshot:
    """Stored snapshot, or a fresh one (demo data if enabled) written back immediately."""
    snapshot = repo.load()
    if snapshot is not None:
        return snapshot

    snapshot = default_snapshot() if seed_defaults else Snapshot()
    logger.info(
        "No stored data found; starting with %s.",
        "demo data" if seed_defaults else "an empty workspace",
    )
    repo.save(snapshot)
    return snapshot


def create_initial_state(*, settings=None, repo: SnapshotRepo | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if repo is None:
        _ensure_local_dirs(settings)
        repo = JsonSnapshotRepo(settings.db_path)

    snapshot = load_or_seed(repo, seed_defaults=bool(getattr(settings, "seed_defaults", True)))
    convention = WeekConvention(getattr(settings, "week_convention", WeekConvention.MONDAY))
    store = SchedulingStore.from_snapshot(snapshot, convention=convention)

    problems = store.invariant_violations()
    if problems:
        logger.warning("Stored data had %d consistency problems after repair: %s", len(problems), problems)

    return AppState(settings=settings, store=store, repo=repo)
