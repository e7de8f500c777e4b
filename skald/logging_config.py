"""Logging setup for Skald entry points.

The library itself only creates module loggers; applications opt in by
calling log_init(). Configuration is a dictConfig document in JSON.
"""

import json
import logging.config
import os
from importlib import resources
from typing import Any

LEVEL_ENV = "SKALD_LOG_LEVEL"
CONFIG_ENV = "LOG_CONFIG"


def _load_config(log_config_path: str | None) -> dict[str, Any]:
    path = log_config_path or os.environ.get(CONFIG_ENV)
    if path:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    return json.loads(resources.files("skald").joinpath("logging.json").read_text(encoding="utf-8"))


def log_init(log_config_path: str | None = None, level: str | None = None) -> None:
    """Apply a logging configuration.

    The document comes from ``log_config_path``, else the file named by
    LOG_CONFIG, else the packaged logging.json. ``level`` (or
    SKALD_LOG_LEVEL) then overrides the level of the ``skald`` logger.
    """
    config = _load_config(log_config_path)
    level = level or os.environ.get(LEVEL_ENV)
    if level:
        config.setdefault("loggers", {}).setdefault("skald", {})["level"] = level.upper()
    logging.config.dictConfig(config)
