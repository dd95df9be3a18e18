#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ Selector
===============================================================================

Look up a template by identifier and render it:

    store = load_store()
    rendering = Selector(store).run("godoc-func", {"function": "ParseConfig"})
    print(rendering.text)

The selector owns no state besides the store it was given. Rendering warnings
are logged here (the resolver itself stays pure) and returned on the
`Rendering` so callers can aggregate them.
"""
from __future__ import annotations

from typing import Mapping, Optional, Sequence

from prompt_shelf import get_logger
from prompt_shelf.resolver import Rendering, render
from prompt_shelf.store import Template, TemplateStore

log = get_logger(__name__)


class UnresolvedPlaceholderError(ValueError):
    """Raised in strict mode when placeholders were left without a value."""

    def __init__(self, identifier: str, names: Sequence[str]) -> None:
        self.identifier = identifier
        self.names = tuple(names)
        super().__init__(
            f"Template {identifier!r} has unresolved placeholders: "
            + ", ".join(f"[{n}]" for n in self.names)
        )


class Selector:
    """Store lookup + placeholder rendering for one template store."""

    def __init__(self, store: TemplateStore) -> None:
        self.store = store

    def describe(self, identifier: str) -> Template:
        """Return the template for *identifier* (raises `TemplateNotFound`)."""
        return self.store.get(identifier)

    def run(
        self,
        identifier: str,
        bindings: Optional[Mapping[str, str]] = None,
        *,
        strict: bool = False,
    ) -> Rendering:
        """
        Render the template named *identifier* with *bindings*.

        Raises
        ------
        TemplateNotFound
            Unknown identifier; nothing is rendered.
        UnresolvedPlaceholderError
            Only with ``strict=True``, when a placeholder has no binding and
            no default.
        """
        template = self.store.get(identifier)
        rendering = render(template, bindings)

        if strict and rendering.unresolved:
            raise UnresolvedPlaceholderError(identifier, rendering.unresolved)

        for warning in rendering.warnings:
            log.warning("%s: %s", identifier, warning)
        log.debug(
            "Rendered %s (%d chars, %d warnings)",
            identifier,
            len(rendering.text),
            len(rendering.warnings),
        )
        return rendering


__all__ = ["Selector", "UnresolvedPlaceholderError"]
