"""Storage module for todo.txt file operations.

Provides atomic writes and file locking for safe concurrent access.
"""

import logging
import os
import sys
import tempfile
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Generator, Iterable, TextIO

from todoview.todotxt import Clock, Task

logger = logging.getLogger(__name__)

# Platform-specific file locking
if sys.platform == "win32":
    import msvcrt

    def _lock_file(f) -> None:
        """Lock a file on Windows."""
        msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock_file(f) -> None:
        """Unlock a file on Windows."""
        try:
            f.seek(0)
            msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
        except OSError:
            pass
else:
    import fcntl

    def _lock_file(f) -> None:
        """Lock a file on Unix systems."""
        fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _unlock_file(f) -> None:
        """Unlock a file on Unix systems."""
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)


@contextmanager
def file_lock(path: Path) -> Generator[None, None, None]:
    """Context manager for acquiring a file lock.

    Best-effort locking: continues even if lock acquisition fails.

    Args:
        path: Path to the file to lock.
    """
    lock_path = path.with_suffix(path.suffix + ".lock")
    lock_file = None

    try:
        lock_file = open(lock_path, "w", encoding="utf-8")
        try:
            _lock_file(lock_file)
        except OSError:
            logger.debug("Could not lock %s, continuing unlocked", lock_path)

        yield

    finally:
        if lock_file:
            try:
                _unlock_file(lock_file)
            except (OSError, ValueError):
                pass
            lock_file.close()
            try:
                lock_path.unlink()
            except OSError:
                pass


def read_file(stream: Iterable[str]) -> list[Task]:
    """Parse every line of a stream into a Task.

    Trailing "\\r\\n" or "\\n" is stripped from each line. Blank lines
    become empty tasks, so a task's index is its line number.
    """
    return [Task(line.rstrip("\r\n")) for line in stream]


def write_file(tasks: Iterable[Task], stream: TextIO) -> int:
    """Write tasks to a stream, one line each.

    Returns:
        The number of characters written.
    """
    total = 0
    for task in tasks:
        total += stream.write(task.to_line() + "\n")
    return total


class TodoFile:
    """Manages reading and writing of a todo.txt file.

    Attributes:
        path: Path to the todo.txt file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def read_lines(self) -> list[str]:
        """Read all lines from the file.

        Only "\\n" ends a line; a lone "\\r" stays part of the text.

        Returns:
            List of lines without trailing newlines.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        with open(self.path, "r", encoding="utf-8", newline="\n") as f:
            lines = [line.rstrip("\r\n") for line in f]
        logger.debug("Read %d lines from %s", len(lines), self.path)
        return lines

    def read_tasks(self) -> list[Task]:
        """Read and parse all tasks from the file, blank lines included.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        return [Task(line) for line in self.read_lines()]

    def write_lines(self, lines: list[str]) -> None:
        """Atomically write lines to the file.

        Uses a temporary file and rename for atomicity.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=".todoview_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, self.path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Wrote %d lines to %s", len(lines), self.path)

    def write_tasks(self, tasks: list[Task]) -> None:
        self.write_lines([task.to_line() for task in tasks])

    def append_task(self, task: Task) -> None:
        """Append a single task to the file.

        Creates the file if it doesn't exist.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with file_lock(self.path):
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(task.to_line() + "\n")
                f.flush()
                os.fsync(f.fileno())
        logger.debug("Appended %r to %s", task.to_line(), self.path)

    def complete_task(self, index: int, clock: Clock = date.today) -> Task:
        """Mark the task at the given index as complete.

        A task that is already done is returned unchanged and the file is
        not rewritten.

        Args:
            index: Zero-based line index.
            clock: Source of the completion date.

        Raises:
            IndexError: If the index is out of range.
        """
        with file_lock(self.path):
            tasks = self.read_tasks()
            if index < 0 or index >= len(tasks):
                raise IndexError(
                    f"Line index {index} out of range (0-{len(tasks) - 1})"
                )

            task = tasks[index]
            if task.done:
                return task
            task.complete(clock)
            self.write_tasks(tasks)

            return task

    def filter_tasks(self, filters: Iterable[str]) -> list[tuple[int, Task]]:
        """Find the tasks carrying every one of the filter tags.

        Returns:
            List of (index, Task) in file order.
        """
        filters = list(filters)
        return [
            (index, task)
            for index, task in enumerate(self.read_tasks())
            if all(task.has_tag(tag) for tag in filters)
        ]
