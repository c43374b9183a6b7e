from __future__ import annotations

from dataclasses import dataclass

DEFAULT_LIST_LIMIT = 50


@dataclass(frozen=True)
class TaskFilters:
    search: str | None = None
    limit: int = DEFAULT_LIST_LIMIT
