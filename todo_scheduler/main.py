from __future__ import annotations

import functools
import json
import logging

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from todo_scheduler.domain.dates import format_date, parse_date
from todo_scheduler.domain.entities import Reschedule, TaskEntity
from todo_scheduler.domain.errors import SchedulerError
from todo_scheduler.domain.filters import TaskFilters
from todo_scheduler.infra.db import create_session_factory, init_db
from todo_scheduler.infra.logging import setup_logging
from todo_scheduler.infra.repository import TaskRepository
from todo_scheduler.services.recurrence import next_date
from todo_scheduler.services.task_service import TaskService

logger = logging.getLogger(__name__)


def _task_to_json(task: TaskEntity) -> dict:
    return {
        "id": str(task.id),
        "date": format_date(task.date),
        "title": task.title,
        "comment": task.comment,
        "repeat": task.repeat,
    }


def _reports_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SchedulerError as exc:
            logger.warning("%s failed: %s", func.__name__, exc)
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.option("--database-url", help="SQLAlchemy URL; overrides DATABASE_URL and TODO_DBFILE.")
@click.pass_context
def cli(ctx, database_url):
    """Personal task scheduler with recurring tasks."""
    ctx.ensure_object(dict)
    ctx.obj.setdefault("DATABASE_URL", database_url)


def _service(ctx) -> TaskService:
    """Build the store on first use, so pure commands never touch the database."""
    if "SERVICE" not in ctx.obj:
        engine, session_factory = create_session_factory(ctx.obj.get("DATABASE_URL"))
        init_db(engine)
        ctx.find_root().call_on_close(engine.dispose)
        ctx.obj["SERVICE"] = TaskService(TaskRepository(session_factory))
    return ctx.obj["SERVICE"]


@cli.command()
@click.option("--now", "now_text", required=True, help="Reference date, YYYYMMDD.")
@click.option("--date", "date_text", required=True, help="Anchor date, YYYYMMDD.")
@click.option("--repeat", required=True, help="Repeat rule, e.g. 'd 7' or 'm 1,-1'.")
@_reports_errors
def nextdate(now_text, date_text, repeat):
    """Print the next date a rule produces after NOW."""
    click.echo(next_date(parse_date(now_text), date_text, repeat))


@cli.command()
@click.argument("title")
@click.option("--date", "date_text", default="", help="YYYYMMDD; defaults to today.")
@click.option("--comment", default="")
@click.option("--repeat", default="", help="Repeat rule; empty for a one-off task.")
@click.pass_context
@_reports_errors
def add(ctx, title, date_text, comment, repeat):
    """Add a task and print its id."""
    task = _service(ctx).add_task(date_text, title, comment, repeat)
    click.echo(task.id)


@cli.command()
@click.argument("task_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print the task as JSON.")
@click.pass_context
@_reports_errors
def show(ctx, task_id, as_json):
    """Show one task."""
    task = _service(ctx).get_task(task_id)
    if as_json:
        click.echo(json.dumps(_task_to_json(task), ensure_ascii=False))
        return
    console = Console()
    console.print(f"[bold]{escape(task.title)}[/bold] ({task.id})")
    console.print(f"date:    {format_date(task.date)}")
    console.print(f"repeat:  {task.repeat or '-'}")
    if task.comment:
        console.print(f"comment: {escape(task.comment)}")


@cli.command()
@click.argument("task_id", type=int)
@click.option("--date", "date_text", help="YYYYMMDD.")
@click.option("--title")
@click.option("--comment")
@click.option("--repeat")
@click.pass_context
@_reports_errors
def edit(ctx, task_id, date_text, title, comment, repeat):
    """Replace a task's fields; omitted options keep their stored value."""
    service = _service(ctx)
    current = service.get_task(task_id)
    service.update_task(
        task_id,
        date_text if date_text is not None else format_date(current.date),
        title if title is not None else current.title,
        comment if comment is not None else current.comment,
        repeat if repeat is not None else current.repeat,
    )


@cli.command()
@click.argument("task_id", type=int)
@click.pass_context
@_reports_errors
def delete(ctx, task_id):
    """Delete a task."""
    _service(ctx).delete_task(task_id)


@cli.command("list")
@click.option("--search", default="", help="Text in title or comment, or a date as DD.MM.YYYY.")
@click.option("--json", "as_json", is_flag=True, help="Print {\"tasks\": [...]} instead of a table.")
@click.pass_context
@_reports_errors
def list_tasks(ctx, search, as_json):
    """List up to 50 tasks by ascending date."""
    tasks = _service(ctx).list_tasks(TaskFilters(search=search or None))
    if as_json:
        click.echo(json.dumps({"tasks": [_task_to_json(task) for task in tasks]}, ensure_ascii=False))
        return

    table = Table(title="Tasks")
    table.add_column("ID", justify="right")
    table.add_column("Date")
    table.add_column("Title")
    table.add_column("Repeat")
    table.add_column("Comment")
    for task in tasks:
        table.add_row(
            str(task.id), format_date(task.date), escape(task.title), task.repeat, escape(task.comment)
        )
    Console().print(table)


@cli.command()
@click.argument("task_id", type=int)
@click.pass_context
@_reports_errors
def done(ctx, task_id):
    """Mark a task done: one-off tasks are deleted, recurring ones move forward."""
    outcome = _service(ctx).complete_task(task_id)
    if isinstance(outcome, Reschedule):
        click.echo(f"rescheduled to {format_date(outcome.date)}")
    else:
        click.echo("retired")


def main() -> None:
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
