"""String sanitization for generated documents.

The generator routinely writes literal line breaks inside narrative string
values instead of ``\\n``. `sanitize` repairs exactly that: it escapes control
characters found inside string literals and leaves everything between tokens
alone, so pretty-printing whitespace survives untouched.
"""

from __future__ import annotations

import enum

_BOM = "\ufeff"
_FENCE = "```"
_JSON_FENCE = "```json"

_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


class _State(enum.Enum):
    OUTSIDE = enum.auto()
    INSIDE = enum.auto()
    #: Inside a literal, right after a backslash.
    ESCAPE = enum.auto()


def _step(state: _State, char: str) -> _State:
    if state is _State.OUTSIDE:
        return _State.INSIDE if char == '"' else _State.OUTSIDE
    if state is _State.ESCAPE:
        return _State.INSIDE
    if char == "\\":
        return _State.ESCAPE
    if char == '"':
        return _State.OUTSIDE
    return _State.INSIDE


def sanitize(text: str) -> str:
    """Escape raw control characters that occur inside string literals.

    A single left-to-right pass. An unescaped double quote toggles between
    outside and inside a literal; a backslash inside a literal escapes the
    next emitted character, so ``"\\\\"`` closes its string as JSON expects.
    Inside a literal, newline, carriage return and tab become their
    two-character escapes and any other code point below 0x20 is dropped.
    Outside a literal every character passes through.

    State advances over the *emitted* characters, which makes the function
    idempotent: ``sanitize(sanitize(x)) == sanitize(x)`` for every ``x``,
    and already-valid JSON comes back unchanged.

    Args:
        text: Text intended to be a JSON document.

    Returns:
        The repaired text.
    """
    out: list[str] = []
    state = _State.OUTSIDE

    for char in text:
        if state is not _State.OUTSIDE and ord(char) < 0x20:
            emitted = _ESCAPES.get(char, "")
        else:
            emitted = char
        for c in emitted:
            state = _step(state, c)
        out.append(emitted)

    return "".join(out)


def clean_payload(text: str) -> str:
    """Strip a byte-order mark and surrounding markdown code fences.

    Handles ```` ```json ```` and bare ```` ``` ```` openers and a trailing
    ```` ``` ```` closer. Text without fences is only trimmed.
    """
    cleaned = text.removeprefix(_BOM).strip()

    if cleaned.startswith(_JSON_FENCE):
        cleaned = cleaned[len(_JSON_FENCE) :]
    elif cleaned.startswith(_FENCE):
        cleaned = cleaned[len(_FENCE) :]
    if cleaned.endswith(_FENCE):
        cleaned = cleaned[: -len(_FENCE)]

    return cleaned.strip()
