# src/bium/storage/json_repo.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from ..core.errors import PersistenceError
from ..core.models import Snapshot

logger = logging.getLogger(__name__)


class JsonSnapshotRepo:
    """
    Single-file JSON storage for the whole state.

    Writes go to a sibling temp file first and are moved into place with
    os.replace, so a crash mid-write never leaves a truncated db.json.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Snapshot | None:
        """Return the stored snapshot, or None if nothing has been saved yet."""
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text("utf-8")
        except OSError as exc:
            raise PersistenceError(f"cannot read {self._path}: {exc}") from exc
        if not raw.strip():
            return None
        try:
            snapshot = Snapshot.from_dict(json.loads(raw))
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"corrupt snapshot in {self._path}: {exc}") from exc

        logger.info(
            "Loaded snapshot from %s: queues=%d templates=%d tasks=%d",
            self._path,
            len(snapshot.queues),
            len(snapshot.queue_templates),
            len(snapshot.tasks),
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        tmp = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.error("Failed to save snapshot to %s: %s", self._path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise PersistenceError(f"cannot write {self._path}: {exc}") from exc
        logger.debug("Saved snapshot to %s", self._path)
