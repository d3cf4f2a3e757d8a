# src/bium/core/errors.py

from __future__ import annotations


class BiumError(Exception):
    """Base class for errors raised by the scheduling core and its collaborators."""


class NotFound(BiumError):
    """A referenced queue / template / task id does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found")


class ValidationError(BiumError):
    """Input rejected before any mutation happened."""


class PersistenceError(BiumError):
    """Snapshot could not be read from or written to storage."""
