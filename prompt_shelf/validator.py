#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ JSON‑Schema Validation (catalogs & bindings)
===============================================================================

Purpose
-------
Validate the two JSON documents Prompt‑Shelf reads from disk against the
schemas bundled with the package:

* `catalog.json` – describes the templates of a directory
  (`prompt_shelf/catalog_schema.json`)
* bindings files – `{"name": "value", …}` passed to `render --bindings`
  (`prompt_shelf/bindings_schema.json`)

Public API
----------
* `validate_catalog(payload: str | bytes | dict) -> dict`
* `validate_bindings(payload: str | bytes | dict) -> dict[str, str]`
    - Return the parsed JSON object on success
    - Raise `jsonschema.ValidationError` on schema violations
    - Raise `json.JSONDecodeError` on malformed JSON
    - Raise `ValueError` on extra catalog guards (duplicates, unsafe paths)
* `is_safe_rel_posix(path: str) -> bool` – catalog path guard
* `pretty_pointer(exc) -> str` – readable location of a schema failure
* `load_schema(kind) -> dict` – bundled schema ("catalog" or "bindings")

Design notes
------------
* Schemas are loaded **once** at import time via `importlib.resources` and
  checked with `Draft7Validator.check_schema`.
* Extra catalog guards go beyond the schema:
    - `file` must be a safe relative **POSIX** path ending in `.md`
      (no abs/backslashes/.., no drive letters, no './' prefix).
    - identifiers must be unique.
"""
from __future__ import annotations

import copy
import json
import re
from importlib import resources
from pathlib import PurePosixPath
from typing import Any, Dict

from jsonschema import Draft7Validator, ValidationError

from prompt_shelf import get_logger

log = get_logger(__name__)

SCHEMA_FILES: Dict[str, str] = {
    "catalog": "catalog_schema.json",
    "bindings": "bindings_schema.json",
}


# -----------------------------------------------------------------------------
# Load schemas at import‑time
# -----------------------------------------------------------------------------
def _read_schema(filename: str) -> Dict[str, Any]:
    """
    Load a bundled schema from the installed package.

    Raises
    ------
    SystemExit
        If the schema cannot be located or decoded (broken install).
    """
    try:
        with resources.files("prompt_shelf").joinpath(filename).open(encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:  # pragma: no cover
        log.critical("%s not found inside package: %s", filename, exc)
        raise SystemExit(1) from exc
    except json.JSONDecodeError as exc:  # pragma: no cover
        log.critical("%s is invalid JSON: %s", filename, exc)
        raise SystemExit(1) from exc


_SCHEMAS: Dict[str, Dict[str, Any]] = {kind: _read_schema(fn) for kind, fn in SCHEMA_FILES.items()}

for _kind, _schema in _SCHEMAS.items():
    Draft7Validator.check_schema(_schema)

_VALIDATORS: Dict[str, Draft7Validator] = {
    kind: Draft7Validator(schema) for kind, schema in _SCHEMAS.items()
}

_DRIVE_PREFIX_RE = re.compile(r"^[A-Za-z]:")


def load_schema(kind: str) -> Dict[str, Any]:
    """Return a copy of the bundled schema for *kind* ("catalog" / "bindings")."""
    try:
        return copy.deepcopy(_SCHEMAS[kind])
    except KeyError:
        raise ValueError(
            f"Unknown schema {kind!r} (expected one of: {', '.join(sorted(_SCHEMAS))})"
        ) from None


def pretty_pointer(exc: ValidationError) -> str:
    """
    Human‑friendly location of the failing field (JSON Pointer‑ish).
    """
    if not exc.path:
        return "$"
    return ".".join(["$", *(str(p) for p in exc.path)])


def is_safe_rel_posix(path: str) -> bool:
    """
    Path guard for catalog entries.

    Rules:
      - POSIX separators only, no backslashes
      - not absolute, no Windows drive letters
      - no parent traversal ('..')
      - no redundant segments ('a//b', 'a/./b', './a'), no trailing '/'
    """
    if not isinstance(path, str) or not path.strip():
        return False

    raw = path.strip()
    if "\\" in raw or raw.startswith("/") or _DRIVE_PREFIX_RE.match(raw):
        return False
    if ".." in raw.split("/"):
        return False

    # Normalisation must be stable (rejects './x', 'a//b', 'a/./b', trailing '/')
    p = PurePosixPath(raw)
    if str(p) != raw:
        return False
    return all(seg for seg in p.parts)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ValueError(msg)


def _decode(payload: str | bytes | Dict[str, Any]) -> Any:
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        return json.loads(payload)
    if isinstance(payload, dict):
        return payload
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def _catalog_checks(data: Dict[str, Any]) -> None:
    """Runtime checks complementing the catalog schema."""
    seen: set[str] = set()
    for entry in data["templates"]:
        ident = entry["id"]
        _require(ident not in seen, f"Duplicate template id {ident!r} in catalog.")
        seen.add(ident)

        file = entry["file"]
        _require(is_safe_rel_posix(file), f"Unsafe/non‑POSIX 'file' for {ident!r}: {file!r}.")
        _require(file.endswith(".md"), f"Template file for {ident!r} must be Markdown (.md): {file!r}.")


# =============================================================================
# Public API
# =============================================================================
def validate_catalog(payload: str | bytes | Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a catalog document against the bundled schema and extra guards.

    Raises
    ------
    jsonschema.ValidationError
        If the catalog is invalid per JSON‑Schema.
    json.JSONDecodeError
        If *payload* is not valid JSON.
    ValueError
        If ids repeat or a file path is unsafe.
    """
    data = _decode(payload)
    _VALIDATORS["catalog"].validate(data)
    _catalog_checks(data)
    log.debug("Catalog validated (%d templates)", len(data["templates"]))
    return data


def validate_bindings(payload: str | bytes | Dict[str, Any]) -> Dict[str, str]:
    """
    Validate a bindings document (flat object of string values).

    Raises
    ------
    jsonschema.ValidationError
        If a name is malformed or a value is not a string.
    json.JSONDecodeError
        If *payload* is not valid JSON.
    """
    data = _decode(payload)
    _VALIDATORS["bindings"].validate(data)
    log.debug("Bindings validated (%d names)", len(data))
    return data


__all__ = [
    "SCHEMA_FILES",
    "is_safe_rel_posix",
    "load_schema",
    "pretty_pointer",
    "validate_bindings",
    "validate_catalog",
]
