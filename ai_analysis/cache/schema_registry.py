"""Per-result-type schema versions for cached records.

Each result type has a current version and the model class that validates
it. Older cached payloads are upgraded by chaining registered migration
steps (``{from_version: fn(data) -> data}``); a payload whose version has no
path to the current one is treated as a miss.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Migration = Callable[[dict[str, Any]], dict[str, Any]]


@dataclass
class SchemaEntry:
    model: type[BaseModel]
    version: int = 1
    migrations: dict[int, Migration] = field(default_factory=dict)


class SchemaVersionRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, SchemaEntry] = {}

    def register(
        self,
        result_type: str,
        model: type[BaseModel],
        version: int = 1,
        migrations: dict[int, Migration] | None = None,
    ) -> None:
        self._entries[result_type] = SchemaEntry(model=model, version=version, migrations=dict(migrations or {}))

    def add_migration(self, result_type: str, from_version: int, fn: Migration) -> None:
        """Register the step that upgrades ``from_version`` → ``from_version + 1``."""
        self._entries[result_type].migrations[from_version] = fn

    def __contains__(self, result_type: str) -> bool:
        return result_type in self._entries

    def current_version(self, result_type: str) -> int:
        return self._entries[result_type].version

    def model(self, result_type: str) -> type[BaseModel]:
        return self._entries[result_type].model

    def upgrade(self, result_type: str, version: int, data: dict[str, Any]) -> dict[str, Any] | None:
        """Bring ``data`` from ``version`` to the current version, or None if impossible."""
        entry = self._entries.get(result_type)
        if entry is None or version > entry.version:
            return None
        while version < entry.version:
            step = entry.migrations.get(version)
            if step is None:
                logger.info("%s: no migration from schema v%d", result_type, version)
                return None
            data = step(dict(data))
            version += 1
        return data
