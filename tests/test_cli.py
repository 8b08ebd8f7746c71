"""Command line tests."""

import json
from datetime import date
from pathlib import Path

import pytest
from typer.testing import CliRunner

from todoview import __version__
from todoview.cli import app

runner = CliRunner()


@pytest.fixture
def todo_file(tmp_path: Path) -> Path:
    path = tmp_path / "todo.txt"
    path.write_text(
        "(A) 2024-01-15 call mom @phone\n"
        "\n"
        "x 2024-01-02 pay rent +home\n"
        "paint fence +home @garden due:2024-06-01\n",
        encoding="utf-8",
    )
    return path


class TestList:
    """Tests for todoview list."""

    def test_list_all(self, todo_file: Path) -> None:
        """Non-blank lines are listed with their index."""
        result = runner.invoke(app, ["--file", str(todo_file), "list"])

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "    0. (A) 2024-01-15 call mom @phone",
            "    2. x 2024-01-02 pay rent +home",
            "    3. paint fence +home @garden due:2024-06-01",
        ]

    def test_list_with_filters(self, todo_file: Path) -> None:
        """Tag filters narrow the listing."""
        result = runner.invoke(
            app, ["--file", str(todo_file), "list", "+home", "@garden"]
        )

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "    3. paint fence +home @garden due:2024-06-01"
        ]

    def test_list_pending(self, todo_file: Path) -> None:
        """--pending hides completed tasks."""
        result = runner.invoke(app, ["--file", str(todo_file), "list", "--pending"])

        assert result.exit_code == 0
        assert "pay rent" not in result.stdout
        assert "call mom" in result.stdout

    def test_list_done(self, todo_file: Path) -> None:
        """--done shows only completed tasks."""
        result = runner.invoke(app, ["--file", str(todo_file), "list", "--done"])

        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["    2. x 2024-01-02 pay rent +home"]

    def test_list_bad_tag(self, todo_file: Path) -> None:
        """A filter that is not a tag exits with status 2."""
        result = runner.invoke(app, ["--file", str(todo_file), "list", "home"])

        assert result.exit_code == 2
        assert "Bad tag: home" in result.output

    def test_list_json(self, todo_file: Path) -> None:
        """--json lists parsed fields with the index."""
        result = runner.invoke(
            app, ["--file", str(todo_file), "--json", "list", "@phone"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data) == 1
        assert data[0]["index"] == 0
        assert data[0]["priority"] == "A"
        assert data[0]["creation_date"] == "2024-01-15"
        assert data[0]["contexts"] == ["@phone"]

    def test_list_missing_file(self, tmp_path: Path) -> None:
        """A missing file exits with status 1."""
        result = runner.invoke(
            app, ["--file", str(tmp_path / "missing.txt"), "list"]
        )

        assert result.exit_code == 1
        assert "No tasks found" in result.output


class TestShow:
    """Tests for todoview show."""

    def test_show(self, todo_file: Path) -> None:
        """show prints the parsed fields of one task."""
        result = runner.invoke(app, ["--file", str(todo_file), "show", "3"])

        assert result.exit_code == 0
        assert "Done: No" in result.stdout
        assert "Projects: +home" in result.stdout
        assert "Contexts: @garden" in result.stdout
        assert "due: 2024-06-01" in result.stdout

    def test_show_json(self, todo_file: Path) -> None:
        """show --json includes the completion date."""
        result = runner.invoke(
            app, ["--file", str(todo_file), "--json", "show", "2"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["done"] is True
        assert data["completion_date"] == "2024-01-02"

    def test_show_out_of_range(self, todo_file: Path) -> None:
        """show rejects an index past the end."""
        result = runner.invoke(app, ["--file", str(todo_file), "show", "9"])

        assert result.exit_code == 1
        assert "No task at index 9" in result.output


class TestAdd:
    """Tests for todoview add."""

    def test_add_appends(self, todo_file: Path) -> None:
        """add appends the line to the file."""
        result = runner.invoke(
            app, ["--file", str(todo_file), "add", "(B) water plants +garden"]
        )

        assert result.exit_code == 0
        assert "Added: (B) water plants +garden" in result.stdout
        lines = todo_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 5
        assert lines[-1] == "(B) water plants +garden"

    def test_add_replaces_newlines(self, tmp_path: Path) -> None:
        """Newlines in added text become spaces."""
        path = tmp_path / "todo.txt"

        result = runner.invoke(app, ["--file", str(path), "add", "two\nlines"])

        assert result.exit_code == 0
        assert path.read_text(encoding="utf-8") == "two lines\n"


class TestDone:
    """Tests for todoview done."""

    def test_done_marks_line(self, todo_file: Path) -> None:
        """done completes the chosen line with today's date."""
        result = runner.invoke(app, ["--file", str(todo_file), "done", "3"])

        assert result.exit_code == 0
        today = date.today().isoformat()
        lines = todo_file.read_text(encoding="utf-8").splitlines()
        assert lines[3] == f"x {today} paint fence +home @garden due:2024-06-01"
        assert lines[0] == "(A) 2024-01-15 call mom @phone"
        assert f"Done: x {today}" in result.stdout

    def test_done_already_done(self, todo_file: Path) -> None:
        """done on a completed task reports it unchanged."""
        result = runner.invoke(app, ["--file", str(todo_file), "done", "2"])

        assert result.exit_code == 0
        assert "Done: x 2024-01-02 pay rent +home" in result.stdout

    def test_done_out_of_range(self, todo_file: Path) -> None:
        """done rejects an index past the end."""
        result = runner.invoke(app, ["--file", str(todo_file), "done", "12"])

        assert result.exit_code == 1
        assert "out of range" in result.output


class TestTags:
    """Tests for todoview tags."""

    def test_projects(self, todo_file: Path) -> None:
        """tags counts the tasks carrying each project."""
        result = runner.invoke(app, ["--file", str(todo_file), "tags"])

        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["+home (2)"]

    def test_contexts_json(self, todo_file: Path) -> None:
        """tags --contexts --json maps contexts to counts."""
        result = runner.invoke(
            app, ["--file", str(todo_file), "--json", "tags", "--contexts"]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"@garden": 1, "@phone": 1}


class TestVersion:
    """Tests for --version."""

    def test_version(self) -> None:
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestLogging:
    """Tests for --verbose."""

    def test_verbose_logs_to_stderr(self, todo_file: Path) -> None:
        """--verbose sends debug logs to stderr."""
        result = runner.invoke(app, ["--file", str(todo_file), "--verbose", "list"])

        assert result.exit_code == 0
        assert "Read 4 lines" in result.output
