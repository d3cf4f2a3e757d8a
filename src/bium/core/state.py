# src/bium/core/state.py

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

from .ports import SnapshotRepo
from .store import SchedulingStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    store: SchedulingStore
    repo: SnapshotRepo

    # One writer at a time over the whole entity graph (HTTP handlers run in a thread pool).
    lock: threading.RLock = field(default_factory=threading.RLock)

    @contextlib.contextmanager
    def read(self) -> Iterator[SchedulingStore]:
        with self.lock:
            yield self.store

    @contextlib.contextmanager
    def transaction(self) -> Iterator[SchedulingStore]:
        """
        Run one mutating operation and flush the result.

        If the operation raises, or the flush fails, the in-memory state is
        restored to what it was before, so memory never runs ahead of disk.
        """
        with self.lock:
            before = self.store.snapshot()
            try:
                yield self.store
                self.repo.save(self.store.snapshot())
            except Exception:
                self.store.restore(before)
                logger.debug("Transaction rolled back.", exc_info=True)
                raise
