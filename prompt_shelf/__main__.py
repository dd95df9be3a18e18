#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ Module Entry Point  (python -m prompt_shelf)
===============================================================================

Canonical invocation:
    python -m prompt_shelf [<cli args>]

What this does
--------------
* Handles a fast `--version` path without importing the CLI.
* Logs a concise startup banner (version, Python, platform) at DEBUG level,
  so stdout stays reserved for rendered prompts.
* Delegates everything else to `prompt_shelf.cli:main`, so
  `python -m prompt_shelf` and the `prompt-shelf` console script behave
  identically.
"""
from __future__ import annotations

import argparse
import platform
import sys
from importlib.metadata import PackageNotFoundError, version as _pkg_version


def _parse_cli(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    """
    Extract global flags (currently just --version) and leave the rest
    for the real CLI to parse.
    """
    parser = argparse.ArgumentParser(
        prog="python -m prompt_shelf",
        add_help=False,  # The CLI provides full usage/help.
        allow_abbrev=False,
    )
    parser.add_argument("--version", action="store_true")
    return parser.parse_known_args(argv)


def _resolve_version() -> str:
    """
    Resolve the installed package version **without importing** the CLI.
    """
    try:
        return _pkg_version("prompt-shelf")
    except PackageNotFoundError:
        from prompt_shelf import __version__

        return __version__


def _log_banner(version: str) -> None:
    from prompt_shelf import get_logger

    get_logger(__name__).debug(
        "Prompt‑Shelf %s  |  Python %s  |  %s",
        version,
        platform.python_version(),
        platform.platform(),
    )


def main() -> None:
    """
    Top‑level dispatcher for `python -m prompt_shelf`.
    """
    args, remaining = _parse_cli(sys.argv[1:])

    if args.version:
        print(_resolve_version())
        sys.exit(0)

    _log_banner(_resolve_version())

    from prompt_shelf.cli import main as cli_main

    sys.exit(cli_main(remaining))


if __name__ == "__main__":
    main()
