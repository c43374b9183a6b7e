from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Integer, String, Text

from todo_scheduler.domain.entities import REPEAT_MAX_LENGTH

from .db import Base


class TaskModel(Base):
    __tablename__ = "scheduler"
    __table_args__ = (
        CheckConstraint(f"length(repeat) <= {REPEAT_MAX_LENGTH}", name="ck_scheduler_repeat_length"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(8), nullable=False, index=True)
    title = Column(Text, nullable=False)
    comment = Column(Text, nullable=False, default="")
    repeat = Column(String(REPEAT_MAX_LENGTH), nullable=False, default="")
