"""
User preferences and logging setup
==================================
The config file is a JSON object stored in the per-OS configuration
directory. It is created with defaults on first run and loaded thereafter.
A broken or unwritable config never stops the program: it falls back to
the built-in defaults and logs a warning.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

from platformdirs import user_config_dir, user_log_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError

APP_NAME = "exhaust"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "exhaust.log"

logger = logging.getLogger(__name__)


def _default_launcher() -> str:
    if sys.platform == "darwin":
        return "open"
    if sys.platform == "win32":
        return "explorer"
    return "xdg-open"


class Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    items_per_line: int = Field(default=5, ge=1)
    show_usage: bool = True
    pretty_printing: bool = False
    launcher: str = Field(default_factory=_default_launcher)


def default_config_path() -> str:
    return os.path.join(user_config_dir(APP_NAME), CONFIG_FILENAME)


def default_log_path() -> str:
    return os.path.join(user_log_dir(APP_NAME), LOG_FILENAME)


def save_config(config: Config, filepath: str) -> None:
    """Write config as pretty-printed JSON, creating the directory if needed."""
    dir_part = os.path.dirname(filepath)
    if dir_part:
        os.makedirs(dir_part, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)


def load_config(filepath: Optional[str] = None) -> Config:
    """Load the config at ``filepath``, creating it with defaults when missing."""
    filepath = filepath or default_config_path()
    if not os.path.isfile(filepath):
        config = Config()
        try:
            save_config(config, filepath)
            logger.info("Created default config at %s", filepath)
        except OSError as exc:
            logger.warning("Could not write default config to %s: %s", filepath, exc)
        return config

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        return Config.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Config %s unusable, using defaults: %s", filepath, exc)
        return Config()


def setup_logging(log_file: Optional[str] = None, level: str = "WARNING") -> None:
    """Send log records to a file; the terminal is owned by the TUI."""
    log_file = log_file or default_log_path()
    handlers = []
    try:
        dir_part = os.path.dirname(log_file)
        if dir_part:
            os.makedirs(dir_part, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError:
        handlers.append(logging.NullHandler())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
