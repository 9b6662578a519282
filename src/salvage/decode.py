"""Tiered decoding of candidate text into a flat field set.

`decode` walks a fixed chain of strategies and always returns a
`DecodeResult`:

1. ``strict`` - parse the text as-is.
2. ``sanitized`` - escape control characters inside string literals, reparse.
3. ``unwrapped`` - the document was serialized twice; unwrap the outer string.
4. ``extracted`` - regex search for each known field's local span.
5. ``empty`` - a placeholder record with only a title.

A later tier runs only when every earlier tier failed. The tier that
succeeded is part of the result, so callers can flag degraded decodes
without relying on log output.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from typing import TYPE_CHECKING, Any, Final, Literal

from salvage.config import PLACEHOLDER_TITLE
from salvage.sanitize import sanitize

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = logging.getLogger(__name__)

Tier = Literal["strict", "sanitized", "unwrapped", "extracted", "empty"]

TIERS: Final[tuple[Tier, ...]] = (
    "strict",
    "sanitized",
    "unwrapped",
    "extracted",
    "empty",
)

#: Scalar fields recovered by the extraction tier, in search order.
SCALAR_FIELDS: Final[tuple[str, ...]] = (
    "project_title",
    "project_description",
    "title",
    "subtitle",
    "author",
    "excerpt",
    "content",
    "category",
    "meta_title",
    "meta_description",
)

#: Array-of-string fields recovered by the extraction tier.
ARRAY_FIELDS: Final[tuple[str, ...]] = ("tags", "suggested_sections")

# A quoted JSON string body: any run of non-quote, non-backslash characters
# or backslash escapes. Raw newlines are allowed inside.
_STRING_BODY = r'((?:[^"\\]|\\.)*)'
# The same body, quoted and non-capturing, for skipping over whole strings.
_QUOTED = r'"(?:[^"\\]|\\.)*"'
_ELEMENT_RE = re.compile(rf'"{_STRING_BODY}"', re.DOTALL)
_UNESCAPE_RE = re.compile(r'\\(["\\/bfnrt]|u[0-9a-fA-F]{4})')
_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


def _scalar_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf'"{re.escape(name)}"\s*:\s*"{_STRING_BODY}"', re.DOTALL)


def _array_pattern(name: str) -> re.Pattern[str]:
    # Quoted elements are skipped whole, so a "]" inside one does not end the span.
    return re.compile(
        rf'"{re.escape(name)}"\s*:\s*\[((?:{_QUOTED}|[^\]"])*)\]', re.DOTALL
    )


_SCALAR_PATTERNS = {name: _scalar_pattern(name) for name in SCALAR_FIELDS}
_ARRAY_PATTERNS = {name: _array_pattern(name) for name in ARRAY_FIELDS}


@dataclasses.dataclass(frozen=True)
class DecodeResult:
    """Outcome of `decode`.

    Attributes:
        fields: The recovered flat field set.
        tier: Name of the tier that produced ``fields``.
        attempted: Tiers tried, in order, including the successful one.
        errors: Failure message per tier that was tried and failed.
    """

    fields: dict[str, Any]
    tier: Tier
    attempted: tuple[Tier, ...] = ()
    errors: Mapping[str, str] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate result invariants."""
        if self.tier not in TIERS:
            raise ValueError(f"Unknown decode tier: {self.tier!r}")
        if not isinstance(self.fields, dict):
            raise ValueError("fields must be a dict")

    @property
    def degraded(self) -> bool:
        """True when any tier other than a strict parse produced the fields."""
        return self.tier != "strict"

    @property
    def empty(self) -> bool:
        """True when nothing could be recovered and a placeholder was returned."""
        return self.tier == "empty"


class _TierFailed(ValueError):
    """A tier could not produce a field set."""


def _as_object(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise _TierFailed(f"Expected JSON object, got {type(value).__name__}")
    return value


def _parse_object(text: str) -> dict[str, Any]:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise _TierFailed(f"Invalid JSON: {e}") from e
    return _as_object(value)


def _unescape_token(match: re.Match[str]) -> str:
    token = match.group(1)
    if token.startswith("u"):
        return chr(int(token[1:], 16))
    return _UNESCAPES[token]


def _unescape(span: str) -> str:
    """Decode a string body the way a JSON parser would.

    Raw control characters are tolerated. A body with an invalid escape is
    decoded escape by escape and unknown escapes stay literal.
    """
    try:
        return json.loads(f'"{span}"', strict=False)
    except ValueError:
        return _UNESCAPE_RE.sub(_unescape_token, span)


def extract_fields(text: str) -> dict[str, Any]:
    """Recover known fields from text that does not parse as a whole.

    Each field only needs its own span to be well formed. When a field name
    occurs more than once, the first textual occurrence wins, even if it
    belongs to a nested object.

    Returns:
        The recovered fields; empty when none were found.
    """
    fields: dict[str, Any] = {}

    for name, pattern in _SCALAR_PATTERNS.items():
        match = pattern.search(text)
        if match:
            fields[name] = _unescape(match.group(1))

    for name, pattern in _ARRAY_PATTERNS.items():
        match = pattern.search(text)
        if match:
            items = [
                _unescape(item.group(1)) for item in _ELEMENT_RE.finditer(match.group(1))
            ]
            if items:
                fields[name] = items

    return fields


def decode(
    candidate: str | dict[str, Any],
    *,
    sanitizer: Callable[[str], str] = sanitize,
    placeholder_title: str = PLACEHOLDER_TITLE,
) -> DecodeResult:
    """Decode candidate text into a flat field set. Never raises.

    Args:
        candidate: Text believed to hold a JSON object. A mapping that was
            already decoded upstream is accepted as a strict result.
        sanitizer: Control-character repair applied from tier 2 on. Valid
            text never reaches it.
        placeholder_title: Title of the placeholder record returned when no
            tier recovers anything.

    Returns:
        `DecodeResult` naming the tier that succeeded.
    """
    if isinstance(candidate, dict):
        return DecodeResult(fields=dict(candidate), tier="strict", attempted=("strict",))

    text = candidate if isinstance(candidate, str) else str(candidate)
    attempted: list[Tier] = []
    errors: dict[str, str] = {}

    def _unwrap() -> dict[str, Any]:
        stripped = text.strip()
        if len(stripped) < 2 or not (stripped.startswith('"') and stripped.endswith('"')):
            raise _TierFailed("Not a quoted document")
        try:
            inner = json.loads(stripped)
        except (ValueError, RecursionError):
            try:
                inner = json.loads(sanitizer(stripped))
            except (ValueError, RecursionError) as e:
                raise _TierFailed(f"Outer string did not parse: {e}") from e
        if not isinstance(inner, str):
            raise _TierFailed(f"Outer value is {type(inner).__name__}, not a string")
        try:
            return _parse_object(inner)
        except _TierFailed:
            return _parse_object(sanitizer(inner))

    def _extract() -> dict[str, Any]:
        fields = extract_fields(text)
        if not fields:
            raise _TierFailed("No known fields found")
        return fields

    chain: tuple[tuple[Tier, Callable[[], dict[str, Any]]], ...] = (
        ("strict", lambda: _parse_object(text)),
        ("sanitized", lambda: _parse_object(sanitizer(text))),
        ("unwrapped", _unwrap),
        ("extracted", _extract),
    )

    for tier, attempt in chain:
        attempted.append(tier)
        try:
            fields = attempt()
        except _TierFailed as e:
            errors[tier] = str(e)
            log.debug("Decode tier %s failed: %s", tier, e)
            continue
        return DecodeResult(
            fields=fields, tier=tier, attempted=tuple(attempted), errors=errors
        )

    attempted.append("empty")
    return DecodeResult(
        fields={"title": placeholder_title},
        tier="empty",
        attempted=tuple(attempted),
        errors=errors,
    )
