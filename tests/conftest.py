"""Shared pytest fixtures: a throwaway SQLite database per test."""
from __future__ import annotations

import pytest

from todo_scheduler.infra.db import create_session_factory, init_db


@pytest.fixture
def session_factory(tmp_path):
    engine, factory = create_session_factory(f"sqlite:///{tmp_path / 'scheduler.db'}")
    init_db(engine)
    yield factory
    engine.dispose()
