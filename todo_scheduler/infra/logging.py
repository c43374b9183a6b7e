from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from todo_scheduler.config import SETTINGS


def resolve_log_dir(log_dir: str) -> Path:
    # relative to the working directory, like the default database file
    path = Path(log_dir).expanduser()
    return path if path.is_absolute() else Path.cwd() / path


def setup_logging() -> None:
    log_dir = resolve_log_dir(SETTINGS.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "scheduler.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    # the console is shared with command output; keep it to problems
    console_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        level=SETTINGS.log_level.upper(),
        handlers=[file_handler, console_handler],
    )
