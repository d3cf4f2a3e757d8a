# src/bium/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store itself never touches storage; the composition root hands it a
snapshot at start and AppState pushes snapshots back after each change.
"""

from typing import Protocol

from .models import Snapshot


class SnapshotRepo(Protocol):
    """Whole-state storage. Implementations raise PersistenceError on I/O failure."""

    def load(self) -> Snapshot | None: ...

    def save(self, snapshot: Snapshot) -> None: ...
