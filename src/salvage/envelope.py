"""Envelope resolution: locate the generated payload inside a raw response.

The generation workflow wraps its answer in one of several shapes depending
on how the upstream node is configured:

- ``[{"output": [{"type": "message", "content": [{"type": "output_text", "text": "..."}]}]}]``
- ``[{"content": [{"text": "..."}]}]`` or ``[{"content": "..."}]``
- ``[{"text": "..."}]``
- ``{"output": "..."}`` or ``{"output": [...]}``
- ``{"content": "..."}`` or ``{"content": {...}}``

`resolve` walks these shapes with structural pattern matching, in a fixed
order, and returns the first acceptable text. Arrays are scanned in their
original order and the first match wins; there is no backtracking to a
"better" later match.
"""

from __future__ import annotations

import json
import logging
from typing import Any

log = logging.getLogger(__name__)

#: Untyped tree returned by the generation workflow.
RawResponse = dict[str, Any] | list[Any] | str | None


def _accept(value: Any) -> str | None:
    """Return ``value`` when it is a string with non-whitespace content."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _scan_chunks(chunks: list[Any], *, any_type: bool = False) -> str | None:
    """Return the text of the first textual chunk.

    A chunk is textual when its ``type`` is ``output_text`` or when it has no
    ``type`` at all but still carries a ``text`` field. With ``any_type``,
    every chunk carrying ``text`` counts, whatever its ``type``.
    """
    for chunk in chunks:
        match chunk:
            case {"type": "output_text", "text": text}:
                found = _accept(text)
            case {"type": str()} if not any_type:
                found = None
            case {"text": text}:
                found = _accept(text)
            case _:
                found = None
        if found is not None:
            return found
    return None


def _scan_output(items: list[Any]) -> str | None:
    """Scan an ``output`` list: each item's content chunks, then its own text."""
    for item in items:
        if not isinstance(item, dict):
            continue
        match item.get("content"):
            case list(chunks):
                found = _scan_chunks(chunks)
                if found is not None:
                    return found
            case _:
                pass
        found = _accept(item.get("text"))
        if found is not None:
            return found
    return None


def _resolve_first_item(first: Any) -> str | None:
    if not isinstance(first, dict):
        return None

    match first.get("output"):
        case list(items):
            found = _scan_output(items)
            if found is not None:
                return found
        case _:
            pass

    # A direct content list is not filtered by chunk type.
    match first.get("content"):
        case list(chunks):
            found = _scan_chunks(chunks, any_type=True)
            if found is not None:
                return found
        case str(text):
            found = _accept(text)
            if found is not None:
                return found
        case _:
            pass

    return _accept(first.get("text"))


def _resolve_object(raw: dict[str, Any]) -> str | None:
    match raw.get("output"):
        case str(text):
            found = _accept(text)
            if found is not None:
                return found
        case list(items):
            found = _scan_output(items)
            if found is not None:
                return found
        case _:
            pass

    # Last resort: a direct content field, serialized when structured.
    match raw.get("content"):
        case str(text):
            return _accept(text)
        case dict() as obj:
            return json.dumps(obj, ensure_ascii=False)
        case _:
            return None


def resolve(raw: RawResponse) -> str | None:
    """Locate the single text payload believed to hold the generated document.

    Args:
        raw: Deserialized workflow response of unknown shape.

    Returns:
        The candidate text (non-empty after trimming), or ``None`` when no
        plausible payload exists. Never fabricates a string.
    """
    match raw:
        case [first, *_]:
            found = _resolve_first_item(first)
        case dict():
            found = _resolve_object(raw)
        case str():
            found = _accept(raw)
        case _:
            found = None

    if found is None:
        log.debug("No payload found in %s response", type(raw).__name__)
    return found
