# src/bium/web/schemas.py
"""Request bodies accepted by the JSON API (camelCase on the wire)."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for request bodies: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    # Fields where an explicit null means "clear it"; elsewhere null means "leave as is".
    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    def patch(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        out: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is not None or name in self.nullable_fields:
                out[name] = value
        return out


class QueueCreate(ApiModel):
    title: str
    color: str | None = None


class QueueUpdate(ApiModel):
    title: str | None = None
    color: str | None = None


class TaskRef(ApiModel):
    task_id: str


class QueueTemplateCreate(ApiModel):
    queue_id: str
    day_of_week: int
    start_time: str
    end_time: str


class QueueTemplateUpdate(ApiModel):
    queue_id: str | None = None
    day_of_week: int | None = None
    start_time: str | None = None
    end_time: str | None = None


class TaskCreate(ApiModel):
    title: str
    duration_minutes: int | None = None
    obsidian_link: str | None = None


class TaskUpdate(ApiModel):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"obsidian_link"})

    title: str | None = None
    duration_minutes: int | None = None
    obsidian_link: str | None = None


class SettingsUpdate(ApiModel):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"obsidian_vault_path", "obsidian_default_folder"})

    language: str | None = None
    obsidian_vault_path: str | None = None
    obsidian_default_folder: str | None = None


__all__ = [
    "ApiModel",
    "QueueCreate",
    "QueueUpdate",
    "TaskRef",
    "QueueTemplateCreate",
    "QueueTemplateUpdate",
    "TaskCreate",
    "TaskUpdate",
    "SettingsUpdate",
]
