#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ Template Store
===============================================================================

Purpose
-------
Hold the prompt documents available to one process as an **immutable**
mapping identifier → `Template`. A store is built once (from a directory, the
bundled documents, or an in‑memory mapping) and only read afterwards, so it can
be shared by any number of callers without locking.

Directory layout
----------------
    <dir>/
      catalog.json        optional; validated against catalog_schema.json
      godoc-func.md
      unit-test.md
      …

* With `catalog.json`: each entry names its `id`, `file`, and optionally a
  `description` and `defaults` for placeholders.
* Without it: every `*.md` file becomes a template whose identifier is the
  file stem (no description, no defaults).

Bodies are read as UTF‑8 and normalised to LF line endings.

Usage
-----
    from prompt_shelf.store import load_store

    store = load_store()                 # bundled documents
    tpl = store.get("godoc-func")
    print(sorted(tpl.placeholders))
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Union

from jsonschema import ValidationError

from prompt_shelf import get_logger
from prompt_shelf.resolver import find_placeholders
from prompt_shelf.validator import pretty_pointer, validate_catalog

log = get_logger(__name__)

CATALOG_FILENAME = "catalog.json"
TEMPLATE_SUFFIX = ".md"

# Same rule as the catalog schema's "id" pattern.
IDENTIFIER_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


# =============================================================================
# Errors
# =============================================================================
class TemplateNotFound(KeyError):
    """Raised when an identifier has no template in the store."""

    def __init__(self, identifier: str, available: Sequence[str] = ()) -> None:
        super().__init__(identifier)
        self.identifier = identifier
        self.available = tuple(available)

    def __str__(self) -> str:
        return f"No template named {self.identifier!r}"


class TemplateLoadError(ValueError):
    """Raised when a template directory or catalog cannot be loaded."""


# =============================================================================
# Template
# =============================================================================
@dataclass(frozen=True)
class Template:
    """
    A static prompt document.

    `placeholders` is derived from `body` when not supplied. `defaults` is
    stored as a read‑only mapping. `source` records where the body came from
    and does not take part in equality.
    """

    identifier: str
    body: str
    placeholders: FrozenSet[str] = frozenset()
    description: str = ""
    defaults: Mapping[str, str] = field(default_factory=dict)
    source: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.placeholders:
            object.__setattr__(self, "placeholders", find_placeholders(self.body))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    # Explicit: the generated hash would choke on the mappingproxy field.
    def __hash__(self) -> int:
        return hash(
            (self.identifier, self.body, self.description, tuple(sorted(self.defaults.items())))
        )

    @property
    def required(self) -> FrozenSet[str]:
        """Placeholders without a default (a binding is expected for each)."""
        return frozenset(p for p in self.placeholders if p not in self.defaults)


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


# =============================================================================
# Store
# =============================================================================
class TemplateStore:
    """
    Read‑only collection of templates keyed by identifier.

    Construct through `from_directory`, `bundled` or `from_mapping`; the
    instance offers no way to add or replace templates afterwards.
    """

    def __init__(self, templates: Sequence[Template] = ()) -> None:
        by_id: Dict[str, Template] = {}
        for tpl in templates:
            if not IDENTIFIER_RE.match(tpl.identifier):
                raise TemplateLoadError(
                    f"Invalid template identifier {tpl.identifier!r} (lowercase letters, digits and '-')"
                )
            if tpl.identifier in by_id:
                raise TemplateLoadError(f"Duplicate template identifier {tpl.identifier!r}")
            by_id[tpl.identifier] = tpl
        self._templates: Mapping[str, Template] = MappingProxyType(
            {k: by_id[k] for k in sorted(by_id)}
        )

    # ── lookup ───────────────────────────────────────────────────────────────
    def get(self, identifier: str) -> Template:
        """Return the template for *identifier* or raise `TemplateNotFound`."""
        try:
            return self._templates[identifier]
        except KeyError:
            raise TemplateNotFound(identifier, self.identifiers()) from None

    def identifiers(self) -> List[str]:
        return list(self._templates)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._templates

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TemplateStore):
            return NotImplemented
        return dict(self._templates) == dict(other._templates)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TemplateStore({', '.join(self._templates)})"

    # ── constructors ─────────────────────────────────────────────────────────
    @classmethod
    def from_mapping(cls, bodies: Mapping[str, str]) -> "TemplateStore":
        """Build a store from ``{identifier: body}`` (no descriptions or defaults)."""
        return cls([Template(identifier=k, body=_normalize(v)) for k, v in bodies.items()])

    @classmethod
    def from_directory(cls, directory: Union[str, Path]) -> "TemplateStore":
        """
        Load every template under *directory*.

        Raises
        ------
        TemplateLoadError
            Missing directory, invalid catalog, missing/undecodable file.
        """
        root = Path(directory).expanduser()
        if not root.is_dir():
            raise TemplateLoadError(f"Template directory not found: {root}")
        store = cls(_load_tree(root, label=str(root)))
        log.debug("Loaded %d templates from %s", len(store), root)
        return store

    @classmethod
    def bundled(cls) -> "TemplateStore":
        """Load the prompt documents shipped inside the package."""
        root = resources.files("prompt_shelf").joinpath("templates")
        store = cls(_load_tree(root, label="<bundled>"))
        log.debug("Loaded %d bundled templates", len(store))
        return store


# =============================================================================
# Loading helpers
# =============================================================================
def _read_text(node: Traversable, label: str) -> str:
    try:
        return _normalize(node.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise TemplateLoadError(f"Template file not found: {label}/{node.name}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateLoadError(f"Cannot read {label}/{node.name}: {exc}") from exc


def _load_catalog(root: Traversable, label: str) -> Optional[dict]:
    node = root.joinpath(CATALOG_FILENAME)
    if not node.is_file():
        return None
    try:
        return validate_catalog(node.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise TemplateLoadError(
            f"Invalid {CATALOG_FILENAME} in {label} at {pretty_pointer(exc)}: {exc.message}"
        ) from exc
    except (OSError, ValueError) as exc:
        raise TemplateLoadError(f"Invalid {CATALOG_FILENAME} in {label}: {exc}") from exc


def _load_tree(root: Traversable, *, label: str) -> List[Template]:
    catalog = _load_catalog(root, label)
    if catalog is None:
        return _load_plain(root, label)

    templates: List[Template] = []
    for entry in catalog["templates"]:
        node = root
        for part in entry["file"].split("/"):
            node = node.joinpath(part)
        if not node.is_file():
            raise TemplateLoadError(
                f"Catalog entry {entry['id']!r} points at a missing file: {label}/{entry['file']}"
            )
        tpl = Template(
            identifier=entry["id"],
            body=_read_text(node, label),
            description=entry.get("description", ""),
            defaults=entry.get("defaults", {}),
            source=f"{label}/{entry['file']}",
        )
        stray = sorted(set(tpl.defaults) - tpl.placeholders)
        if stray:
            log.warning(
                "Template %r declares defaults for unknown placeholders: %s",
                tpl.identifier,
                ", ".join(stray),
            )
        templates.append(tpl)
    return templates


def _load_plain(root: Traversable, label: str) -> List[Template]:
    nodes = sorted(
        (n for n in root.iterdir() if n.is_file() and n.name.endswith(TEMPLATE_SUFFIX)),
        key=lambda n: n.name,
    )
    templates: List[Template] = []
    for n in nodes:
        identifier = n.name[: -len(TEMPLATE_SUFFIX)]
        if not IDENTIFIER_RE.match(identifier):
            log.warning("Skipping %s/%s: %r is not a valid template identifier", label, n.name, identifier)
            continue
        templates.append(Template(identifier=identifier, body=_read_text(n, label), source=f"{label}/{n.name}"))
    if not templates:
        log.warning("No %s templates found in %s", TEMPLATE_SUFFIX, label)
    return templates


def load_store(directory: Union[str, Path, None] = None) -> TemplateStore:
    """Load *directory* when given, the bundled documents otherwise."""
    if directory:
        return TemplateStore.from_directory(directory)
    return TemplateStore.bundled()


__all__ = [
    "CATALOG_FILENAME",
    "Template",
    "TemplateLoadError",
    "TemplateNotFound",
    "TemplateStore",
    "load_store",
]
