from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Union

REPEAT_MAX_LENGTH = 128


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    date: date
    title: str
    comment: str
    repeat: str


@dataclass(frozen=True)
class Retire:
    """The task had no repeat rule and is deleted on completion."""


@dataclass(frozen=True)
class Reschedule:
    """The task moves to ``date``; every other field stays as stored."""

    date: date


CompletionOutcome = Union[Retire, Reschedule]
