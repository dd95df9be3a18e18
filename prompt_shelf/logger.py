#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ Logging
===============================================================================

All package modules log through children of the "prompt_shelf" logger:

    from prompt_shelf import get_logger
    log = get_logger(__name__)

Only the root project logger owns handlers, and they are attached once.
Rendered prompts go to stdout without passing through logging, so log lines
(stderr) never mix with the output.

Environment
-----------
    PROMPT_SHELF_LOG_LVL   – console level (DEBUG / INFO / WARNING / … or numeric)
    PROMPT_SHELF_LOG_JSON  – truthy → JSON lines on the console
    PROMPT_SHELF_LOG_DIR   – also write DEBUG logs to DIR/prompt_shelf.log
                             (rotated at midnight, 7 files kept)
"""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import List, Mapping, Optional

_ROOT_LOGGER_NAME = "prompt_shelf"

LOG_FILENAME = "prompt_shelf.log"
FORMAT = "%(asctime)s | %(name)s | %(levelname)-8s | %(message)s"
DTFMT = "%Y-%m-%d %H:%M:%S"


def _is_truthy(val: str | None) -> bool:
    """Return True if *val* represents a truthy setting."""
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "yes", "on", "y", "t"}


def _parse_level(val: str | None, default: int = logging.INFO) -> int:
    """
    Parse a level given as a name ("INFO") or an integer ("20").
    Falls back to *default* on invalid input.
    """
    if val is None:
        return default
    s = val.strip()
    if not s:
        return default
    if s.isdigit():
        return int(s)
    # getLevelName maps known names to ints and unknown ones to "Level X".
    level = logging.getLevelName(s.upper())
    return level if isinstance(level, int) else default


@dataclass(frozen=True)
class LogSettings:
    console_level: int = logging.INFO
    json_console: bool = False
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] = os.environ) -> "LogSettings":
        raw_dir = (env.get("PROMPT_SHELF_LOG_DIR") or "").strip()
        return cls(
            console_level=_parse_level(env.get("PROMPT_SHELF_LOG_LVL")),
            json_console=_is_truthy(env.get("PROMPT_SHELF_LOG_JSON")),
            log_dir=Path(raw_dir).expanduser() if raw_dir else None,
        )


class _JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S%z", time.localtime(record.created)),
            "name": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def _make_file_handler(log_dir: Path) -> Optional[logging.Handler]:
    """DEBUG‑level handler on LOG_FILENAME; None if the file cannot be opened."""
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = TimedRotatingFileHandler(
            filename=log_dir / LOG_FILENAME,
            when="midnight",
            backupCount=7,
            encoding="utf-8",
        )
    except OSError:
        return None
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(fmt=FORMAT, datefmt=DTFMT))
    return fh


def _build_handlers(settings: LogSettings) -> List[logging.Handler]:
    console = logging.StreamHandler()
    console.setLevel(settings.console_level)
    console.setFormatter(
        _JsonFormatter() if settings.json_console else logging.Formatter(fmt=FORMAT, datefmt=DTFMT)
    )
    handlers: List[logging.Handler] = [console]
    if settings.log_dir is not None:
        fh = _make_file_handler(settings.log_dir)
        if fh is not None:
            handlers.append(fh)
    return handlers


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return the root project logger (*name* None) or a child that propagates
    to it. The root's handlers are built from the environment on first call.
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)

    if not root.handlers:
        settings = LogSettings.from_env()
        root.setLevel(logging.DEBUG)
        for handler in _build_handlers(settings):
            root.addHandler(handler)
        root.propagate = False
        if settings.log_dir is not None and len(root.handlers) == 1:
            root.warning("Cannot write logs to %s; logging to stderr only", settings.log_dir)

    if name is None or name == _ROOT_LOGGER_NAME:
        return root

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    return logger
