"""Where todoview finds its todo.txt file.

The path comes from the first of these that is set:

1. the --file option
2. the TODOVIEW_FILE environment variable
3. the ``todo_file`` key of ``todoview/config.toml`` in the user config dir
4. ./todo.txt when present, otherwise ~/todo.txt

A relative ``todo_file`` in config.toml is taken relative to the config
file itself, so the config dir can be synced along with the list.
"""

import json
import logging
import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

ENV_VAR_NAME = "TODOVIEW_FILE"
CONFIG_KEY = "todo_file"

SOURCE_CLI = "cli"
SOURCE_ENV = "env"
SOURCE_CONFIG = "config"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class Settings:
    """The resolved todo.txt location and where it came from."""

    todo_file: Path
    source: str
    config_file: Path

    def describe_source(self) -> str:
        if self.source == SOURCE_CLI:
            return "CLI option (--file)"
        if self.source == SOURCE_ENV:
            return f"Environment variable ({ENV_VAR_NAME})"
        if self.source == SOURCE_CONFIG:
            return f"Config file ({self.config_file})"
        return "Default"


def config_file_path(environ: Mapping[str, str] = os.environ) -> Path:
    """Return the path of config.toml for this platform."""
    if sys.platform == "win32" and environ.get("APPDATA"):
        base = Path(environ["APPDATA"])
    elif sys.platform != "win32" and environ.get("XDG_CONFIG_HOME"):
        base = Path(environ["XDG_CONFIG_HOME"])
    else:
        base = Path.home() / ".config"
    return base / "todoview" / "config.toml"


def load_config(path: Path) -> dict[str, Any]:
    """Read a config.toml, treating a missing or broken file as empty."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}


def resolve(
    cli_path: str | None = None, environ: Mapping[str, str] = os.environ
) -> Settings:
    """Work out which todo.txt file to use."""
    config_file = config_file_path(environ)

    if cli_path is not None:
        todo_file, source = Path(cli_path).expanduser(), SOURCE_CLI
    elif environ.get(ENV_VAR_NAME):
        todo_file, source = Path(environ[ENV_VAR_NAME]).expanduser(), SOURCE_ENV
    elif configured := load_config(config_file).get(CONFIG_KEY):
        todo_file = config_file.parent / Path(str(configured)).expanduser()
        source = SOURCE_CONFIG
    elif Path("todo.txt").exists():
        todo_file, source = Path("todo.txt"), SOURCE_DEFAULT
    else:
        todo_file, source = Path.home() / "todo.txt", SOURCE_DEFAULT

    settings = Settings(todo_file.resolve(), source, config_file)
    logger.debug("Using %s (from %s)", settings.todo_file, settings.source)
    return settings


def save_todo_file(todo_file: Path, environ: Mapping[str, str] = os.environ) -> Path:
    """Store todo_file as the configured default.

    Returns:
        The config file that was written.
    """
    config_file = config_file_path(environ)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    # A JSON string literal is also a valid TOML basic string.
    config_file.write_text(
        f"{CONFIG_KEY} = {json.dumps(str(todo_file))}\n", encoding="utf-8"
    )
    logger.debug("Saved %s to %s", todo_file, config_file)
    return config_file
