#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ Placeholder Resolver
===============================================================================

Purpose
-------
Turn a template body plus a binding map into the final prompt text.

Placeholder grammar
-------------------
A placeholder is a bracketed name, ``[name]``, where the name matches
``[A-Za-z_][A-Za-z0-9_-]*``. Markdown constructs that share the bracket
syntax are left alone:

  • escaped brackets          \\[name]
  • links / images            [text](url), ![alt](src), [text][ref]
  • reference definitions     [ref]: https://…   (at the start of a line)

Backslashes are counted: ``\\\\[name]`` is an escaped backslash followed by a
placeholder, so the placeholder is substituted and the backslash kept.

Substitution order
------------------
For each placeholder: the bound value, else the template's default, else the
empty string. The last case is reported as an `UnresolvedPlaceholder` (one per
distinct name). Bindings that name no declared placeholder are reported as
`UnusedBinding`. Substituted values are never rescanned, so a value that itself
contains ``[x]`` is emitted verbatim.

`render` is a pure function: it does not log and does not touch the template.
The selector is responsible for surfacing warnings.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from prompt_shelf.store import Template

PLACEHOLDER_NAME = r"[A-Za-z_][A-Za-z0-9_-]*"
PLACEHOLDER_NAME_RE = re.compile(rf"^{PLACEHOLDER_NAME}$")

# Lookbehind: image marker, or the second half of "[text][ref]".
# Lookahead: link target "(url)" or reference "[ref]".
# Backslash escapes are counted in _is_escaped.
_PLACEHOLDER_RE = re.compile(rf"(?<![!\]])\[({PLACEHOLDER_NAME})\](?![(\[])")


# =============================================================================
# Warning records & result
# =============================================================================
@dataclass(frozen=True)
class UnresolvedPlaceholder:
    """A placeholder that had neither a binding nor a default."""

    name: str

    def __str__(self) -> str:
        return f"placeholder [{self.name}] has no binding; substituted an empty string"


@dataclass(frozen=True)
class UnusedBinding:
    """A binding whose name is not a placeholder of the template."""

    name: str

    def __str__(self) -> str:
        return f"binding {self.name!r} does not match any placeholder"


RenderWarning = Union[UnresolvedPlaceholder, UnusedBinding]


@dataclass(frozen=True)
class Rendering:
    """Rendered text plus the non‑fatal conditions met along the way."""

    identifier: str
    text: str
    warnings: Tuple[RenderWarning, ...] = ()

    @property
    def unresolved(self) -> Tuple[str, ...]:
        return tuple(w.name for w in self.warnings if isinstance(w, UnresolvedPlaceholder))

    @property
    def unused(self) -> Tuple[str, ...]:
        return tuple(w.name for w in self.warnings if isinstance(w, UnusedBinding))


# =============================================================================
# Scanning
# =============================================================================
def _is_reference_definition(text: str, match: re.Match[str]) -> bool:
    """True for ``[ref]: url`` at the start of a line (up to 3 spaces indent)."""
    if not text.startswith(":", match.end()):
        return False
    line_start = text.rfind("\n", 0, match.start()) + 1
    prefix = text[line_start:match.start()]
    return len(prefix) <= 3 and not prefix.strip(" ")


def _is_escaped(text: str, match: re.Match[str]) -> bool:
    """True when an odd run of backslashes precedes the opening bracket."""
    start = match.start()
    run = start - len(text[:start].rstrip("\\"))
    return run % 2 == 1


def _iter_placeholders(text: str) -> Iterator[re.Match[str]]:
    for match in _PLACEHOLDER_RE.finditer(text):
        if _is_escaped(text, match) or _is_reference_definition(text, match):
            continue
        yield match


def find_placeholders(text: str) -> FrozenSet[str]:
    """Return the set of placeholder names referenced in *text*."""
    return frozenset(m.group(1) for m in _iter_placeholders(text))


def _ordered_placeholders(text: str) -> List[str]:
    seen: Dict[str, None] = {}
    for m in _iter_placeholders(text):
        seen.setdefault(m.group(1), None)
    return list(seen)


# =============================================================================
# Rendering
# =============================================================================
def _check_bindings(bindings: Mapping[str, str]) -> None:
    for key, value in bindings.items():
        if not isinstance(key, str):
            raise TypeError(f"Binding names must be strings, got {type(key).__name__}")
        if not isinstance(value, str):
            raise TypeError(
                f"Binding {key!r} must be a string, got {type(value).__name__}"
            )


def render(template: "Template", bindings: Optional[Mapping[str, str]] = None) -> Rendering:
    """
    Render *template* with *bindings*.

    Parameters
    ----------
    template : Template
        Template to render; only ``identifier``, ``body`` and ``defaults`` are read.
    bindings : Mapping[str, str] | None
        Placeholder name → replacement text.

    Returns
    -------
    Rendering
        ``text`` plus one `UnresolvedPlaceholder` per distinct missing name (in
        order of first appearance) followed by one `UnusedBinding` per extra
        binding (sorted by name).

    Raises
    ------
    TypeError
        If a binding name or value is not a string.
    """
    bindings = dict(bindings or {})
    _check_bindings(bindings)
    defaults = template.defaults
    body = template.body

    missing: List[str] = [
        name for name in _ordered_placeholders(body)
        if name not in bindings and name not in defaults
    ]

    pieces: List[str] = []
    pos = 0
    for m in _iter_placeholders(body):
        name = m.group(1)
        pieces.append(body[pos:m.start()])
        if name in bindings:
            pieces.append(bindings[name])
        else:
            pieces.append(defaults.get(name, ""))
        pos = m.end()
    pieces.append(body[pos:])

    declared = find_placeholders(body)
    warnings: List[RenderWarning] = [UnresolvedPlaceholder(n) for n in missing]
    warnings.extend(UnusedBinding(n) for n in sorted(set(bindings) - declared))

    return Rendering(identifier=template.identifier, text="".join(pieces), warnings=tuple(warnings))


def render_text(template: "Template", bindings: Optional[Mapping[str, str]] = None) -> str:
    """Shorthand for ``render(template, bindings).text``."""
    return render(template, bindings).text


__all__ = [
    "PLACEHOLDER_NAME_RE",
    "Rendering",
    "RenderWarning",
    "UnresolvedPlaceholder",
    "UnusedBinding",
    "find_placeholders",
    "render",
    "render_text",
]
