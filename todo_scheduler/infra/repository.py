from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import sessionmaker

from todo_scheduler.domain.dates import format_date, parse_date, parse_search_date
from todo_scheduler.domain.entities import CompletionOutcome, Retire, TaskEntity
from todo_scheduler.domain.errors import TaskConflict
from todo_scheduler.domain.filters import TaskFilters

from .models import TaskModel

logger = logging.getLogger(__name__)


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        date=parse_date(model.date),
        title=model.title,
        comment=model.comment or "",
        repeat=model.repeat or "",
    )


def _to_columns(data: dict) -> dict:
    columns = dict(data)
    if "date" in columns:
        columns["date"] = format_date(columns["date"])
    return columns


def _apply_filters(stmt, filters: TaskFilters) -> object:
    if filters.search:
        on_date = parse_search_date(filters.search)
        if on_date is not None:
            stmt = stmt.where(TaskModel.date == format_date(on_date))
        else:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(
                or_(
                    TaskModel.title.ilike(pattern),
                    TaskModel.comment.ilike(pattern),
                )
            )
    return stmt


class TaskRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = select(TaskModel)
            stmt = _apply_filters(stmt, filters)
            stmt = stmt.order_by(TaskModel.date.asc(), TaskModel.id.asc()).limit(filters.limit)
            return [_to_entity(task) for task in session.scalars(stmt)]

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def create_task(self, data: dict) -> TaskEntity:
        with self._session_factory() as session:
            task = TaskModel(**_to_columns(data))
            session.add(task)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None

            for key, value in _to_columns(data).items():
                setattr(task, key, value)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def delete_task(self, task_id: int) -> bool:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return False
            session.delete(task)
            session.commit()
            return True

    def complete_task(
        self, task_id: int, decide: Callable[[TaskEntity], CompletionOutcome]
    ) -> Optional[CompletionOutcome]:
        """Read, decide and write one task inside a single transaction.

        The row is locked where the backend supports ``FOR UPDATE``; the write is
        additionally guarded on the date that was read, so a completion that
        lost a race raises :class:`TaskConflict` instead of overwriting.
        """
        with self._session_factory() as session, session.begin():
            stmt = select(TaskModel).where(TaskModel.id == task_id).with_for_update()
            task = session.scalars(stmt).first()
            if task is None:
                return None

            read_date = task.date
            outcome = decide(_to_entity(task))
            guard = (TaskModel.id == task_id, TaskModel.date == read_date)
            if isinstance(outcome, Retire):
                stmt = delete(TaskModel).where(*guard)
            else:
                stmt = update(TaskModel).where(*guard).values(date=format_date(outcome.date))
            result = session.execute(stmt.execution_options(synchronize_session=False))
            if result.rowcount != 1:
                logger.warning("task %s changed while being completed", task_id)
                raise TaskConflict(task_id)
            return outcome
