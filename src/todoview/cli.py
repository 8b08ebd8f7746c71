"""todoview CLI module.

Typer-based CLI application entry point.
Subcommand groups: config
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Annotated, Optional

import typer

from todoview import __version__
from todoview import config
from todoview.logging_setup import setup_logging
from todoview.storage import TodoFile
from todoview.todotxt import CONTEXT_TAG, PROJECT_TAG, Task, is_valid_tag

logger = logging.getLogger(__name__)

# Main application
app = typer.Typer(
    name="todoview",
    help="Browse, filter and complete tasks in a todo.txt file",
    no_args_is_help=True,
)

config_app = typer.Typer(
    name="config",
    help="Configuration commands",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")


class GlobalContext:
    """Holds global options for commands."""

    def __init__(self) -> None:
        self.file: str | None = None
        self.json_output: bool = False


# Global context instance
_context = GlobalContext()


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"todoview version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    file: Annotated[
        Optional[str],
        typer.Option(
            "--file",
            "-f",
            help="Specify the todo.txt file path",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output in JSON format",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging on stderr",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """todoview - browse and filter a todo.txt file."""
    _context.file = file
    _context.json_output = json_output
    setup_logging(verbose)


def _echo_json(data: object) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False))


def _open_todo_file() -> TodoFile:
    """Resolve the todo.txt file, exiting if it does not exist."""
    todo_path = config.resolve(_context.file).todo_file
    todo_file = TodoFile(todo_path)

    if not todo_file.exists():
        typer.echo(f"No tasks found ({todo_path} does not exist)", err=True)
        raise typer.Exit(code=1)

    return todo_file


def _load_task(todo_file: TodoFile, index: int) -> Task:
    tasks = todo_file.read_tasks()
    if index < 0 or index >= len(tasks):
        typer.echo(f"No task at index {index}", err=True)
        raise typer.Exit(code=1)
    return tasks[index]


# ===== task commands =====


@app.command("list")
def task_list(
    filters: Annotated[
        Optional[list[str]],
        typer.Argument(help="Only show tasks carrying all these +project/@context tags"),
    ] = None,
    done: Annotated[
        bool,
        typer.Option("--done", "-d", help="Show only completed tasks"),
    ] = False,
    pending: Annotated[
        bool,
        typer.Option("--pending", "-p", help="Show only incomplete tasks"),
    ] = False,
) -> None:
    """List tasks with their line index, in file order."""
    filters = filters or []
    for tag in filters:
        if not is_valid_tag(tag):
            logger.debug("Rejected filter %r", tag)
            typer.echo(f"Bad tag: {tag}", err=True)
            raise typer.Exit(code=2)

    todo_file = _open_todo_file()

    selected = []
    for index, task in todo_file.filter_tasks(filters):
        if not task.text.strip():
            continue
        if done and not task.done:
            continue
        if pending and task.done:
            continue
        selected.append((index, task))

    if _context.json_output:
        _echo_json([{"index": index, **task.to_dict()} for index, task in selected])
    else:
        for index, task in selected:
            typer.echo(f"{index:5d}. {task}")


@app.command("show")
def task_show(
    index: Annotated[int, typer.Argument(help="Zero-based line index")],
) -> None:
    """Show the parsed fields of one task."""
    task = _load_task(_open_todo_file(), index)
    data = task.to_dict()

    if _context.json_output:
        _echo_json({"index": index, **data})
        return

    typer.echo(f"Text: {data['text']}")
    typer.echo(f"Done: {'Yes' if data['done'] else 'No'}")
    for label, key in (
        ("Completed", "completion_date"),
        ("Priority", "priority"),
        ("Created", "creation_date"),
    ):
        if data[key]:
            typer.echo(f"{label}: {data[key]}")
    if data["projects"]:
        typer.echo(f"Projects: {' '.join(data['projects'])}")
    if data["contexts"]:
        typer.echo(f"Contexts: {' '.join(data['contexts'])}")
    for key, value in data["keywords"].items():
        typer.echo(f"{key}: {value}")


@app.command("add")
def task_add(
    text: Annotated[str, typer.Argument(help="Task line to append")],
) -> None:
    """Append a task line to the file."""
    todo_file = TodoFile(config.resolve(_context.file).todo_file)

    task = Task(text.strip())
    todo_file.append_task(task)

    if _context.json_output:
        _echo_json({"added": task.to_line(), "file": str(todo_file.path)})
    else:
        typer.echo(f"Added: {task}")


@app.command("done")
def task_done(
    index: Annotated[int, typer.Argument(help="Zero-based line index")],
) -> None:
    """Mark the task at INDEX as complete."""
    todo_file = _open_todo_file()

    try:
        task = todo_file.complete_task(index)
    except IndexError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    if _context.json_output:
        _echo_json({"index": index, "completed": task.to_line()})
    else:
        typer.echo(f"Done: {task}")


@app.command("tags")
def task_tags(
    contexts: Annotated[
        bool,
        typer.Option("--contexts", "-c", help="List @contexts instead of +projects"),
    ] = False,
) -> None:
    """List the tags used in the file with their task counts."""
    marker = CONTEXT_TAG if contexts else PROJECT_TAG
    counts: Counter[str] = Counter()
    for task in _open_todo_file().read_tasks():
        counts.update(set(task.tags(marker)))

    if _context.json_output:
        _echo_json(dict(sorted(counts.items())))
    else:
        for tag, count in sorted(counts.items()):
            typer.echo(f"{tag} ({count})")


# ===== config subcommands =====


@config_app.command("path")
def config_path() -> None:
    """Show the resolved todo.txt path."""
    settings = config.resolve(_context.file)
    exists = settings.todo_file.exists()

    if _context.json_output:
        _echo_json(
            {
                "path": str(settings.todo_file),
                "source": settings.source,
                "source_description": settings.describe_source(),
                "exists": exists,
            }
        )
    else:
        typer.echo(f"Path: {settings.todo_file}")
        typer.echo(f"Source: {settings.describe_source()}")
        typer.echo(f"Exists: {'Yes' if exists else 'No'}")


@config_app.command("set-path")
def config_set_path(
    path: Annotated[
        Path,
        typer.Argument(help="Path to set as default todo.txt"),
    ],
) -> None:
    """Save the default todo.txt path to the config file."""
    abs_path = path.expanduser().resolve()
    config_file = config.save_todo_file(abs_path)

    if _context.json_output:
        _echo_json({"path": str(abs_path), "config_file": str(config_file)})
    else:
        typer.echo(f"Configuration saved: {abs_path}")
        typer.echo(f"Config file: {config_file}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
