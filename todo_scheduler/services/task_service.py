from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Protocol

from todo_scheduler.domain.dates import format_date, parse_date
from todo_scheduler.domain.entities import (
    REPEAT_MAX_LENGTH,
    CompletionOutcome,
    Reschedule,
    Retire,
    TaskEntity,
)
from todo_scheduler.domain.errors import InvalidTask, TaskNotFound
from todo_scheduler.domain.filters import TaskFilters
from todo_scheduler.domain.rules import parse_rule
from todo_scheduler.services.recurrence import next_occurrence

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStore(Protocol):
    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]: ...

    def get_task(self, task_id: int) -> TaskEntity | None: ...

    def create_task(self, data: dict) -> TaskEntity: ...

    def update_task(self, task_id: int, data: dict) -> TaskEntity | None: ...

    def delete_task(self, task_id: int) -> bool: ...

    def complete_task(
        self, task_id: int, decide: Callable[[TaskEntity], CompletionOutcome]
    ) -> CompletionOutcome | None: ...


def decide_completion(now: date | datetime, anchor: date, repeat: str) -> CompletionOutcome:
    """Decide what marking a task done does to it.

    A task without a repeat rule is retired. Otherwise the stored rule is parsed
    again; a parse failure here means the stored row is corrupt, so the
    :class:`RuleError` is left to reach the caller.
    """
    if not repeat:
        return Retire()
    return Reschedule(next_occurrence(now, anchor, parse_rule(repeat)))


class TaskService:
    def __init__(self, repo: TaskStore, clock: Clock = utcnow) -> None:
        self._repo = repo
        self._clock = clock

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        return self._repo.list_tasks(filters)

    def get_task(self, task_id: int) -> TaskEntity:
        task = self._repo.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def add_task(self, date_text: str, title: str, comment: str = "", repeat: str = "") -> TaskEntity:
        data = self._normalize_data(date_text, title, comment, repeat)
        task = self._repo.create_task(data)
        logger.info("task %s added for %s", task.id, format_date(task.date))
        return task

    def update_task(
        self, task_id: int, date_text: str, title: str, comment: str = "", repeat: str = ""
    ) -> TaskEntity:
        data = self._normalize_data(date_text, title, comment, repeat)
        task = self._repo.update_task(task_id, data)
        if task is None:
            raise TaskNotFound(task_id)
        logger.info("task %s updated", task_id)
        return task

    def delete_task(self, task_id: int) -> None:
        if not self._repo.delete_task(task_id):
            raise TaskNotFound(task_id)
        logger.info("task %s deleted", task_id)

    def complete_task(self, task_id: int) -> CompletionOutcome:
        now = self._clock()
        outcome = self._repo.complete_task(
            task_id, lambda task: decide_completion(now, task.date, task.repeat)
        )
        if outcome is None:
            raise TaskNotFound(task_id)
        if isinstance(outcome, Reschedule):
            logger.info("task %s rescheduled to %s", task_id, format_date(outcome.date))
        else:
            logger.info("task %s retired", task_id)
        return outcome

    def _normalize_data(self, date_text: str, title: str, comment: str, repeat: str) -> dict:
        if not title or not title.strip():
            raise InvalidTask("title", "title is required")
        repeat = repeat or ""
        if len(repeat) > REPEAT_MAX_LENGTH:
            raise InvalidTask("repeat", f"repeat rule is longer than {REPEAT_MAX_LENGTH} characters")

        now = self._clock()
        today = now.date()
        anchor = parse_date(date_text) if date_text else today
        if repeat:
            task_date = next_occurrence(now, anchor, parse_rule(repeat))
        elif anchor < today:
            task_date = today
        else:
            task_date = anchor
        return {
            "date": task_date,
            "title": title,
            "comment": comment or "",
            "repeat": repeat,
        }
