"""Field projection: split a decoded field set into container and content records."""

from __future__ import annotations

from enum import Enum
import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from salvage.config import DEFAULT_AUTHOR, PLACEHOLDER_TITLE, UNTITLED_PROJECT

if TYPE_CHECKING:
    from collections.abc import Mapping

#: Fields that describe the container and never reach the content record.
CONTAINER_FIELDS = frozenset({"project_title", "project_description"})

#: Generated article payload; no fixed required set.
ContentRecord = dict[str, Any]


class Mode(str, Enum):
    """Which path the projection serves."""

    INGESTION = "ingestion"
    READ_ONLY = "read_only"


class ContainerRecord(BaseModel):
    """Short identifying fields of the project created on first ingestion."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""


class ArticleView(BaseModel):
    """Title card shown by the presentation layer for stored content."""

    model_config = ConfigDict(frozen=True)

    title: str = PLACEHOLDER_TITLE
    subtitle: str | None = None
    author: str = DEFAULT_AUTHOR
    excerpt: str | None = None


def _first_text(fields: Mapping[str, Any], *keys: str) -> str | None:
    """Return the first non-empty string value among ``keys``."""
    for key in keys:
        value = fields.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def project(
    fields: Mapping[str, Any],
    mode: Mode = Mode.INGESTION,
    *,
    default_author: str = DEFAULT_AUTHOR,
    untitled_project: str = UNTITLED_PROJECT,
) -> tuple[ContainerRecord | None, ContentRecord]:
    """Split ``fields`` into an optional container record and a content record.

    Title precedence is ``project_title``, then ``title``, then the untitled
    placeholder; description precedence is ``project_description``, then
    ``excerpt``, then the empty string. Missing or empty values fall through.

    The content record holds every field except the container fields, with
    ``author`` defaulted when the generator left it out. ``fields`` is not
    mutated.

    Args:
        fields: Flat field set produced by `decode`.
        mode: ``INGESTION`` builds the container; ``READ_ONLY`` re-renders
            stored content and returns ``None`` in its place.
        default_author: Attribution used when ``author`` is absent.
        untitled_project: Container title used when no title is present.

    Returns:
        ``(container, content)``.
    """
    content: ContentRecord = {
        key: value for key, value in fields.items() if key not in CONTAINER_FIELDS
    }
    if _first_text(content, "author") is None:
        content["author"] = default_author

    if Mode(mode) is Mode.READ_ONLY:
        return None, content

    container = ContainerRecord(
        title=_first_text(fields, "project_title", "title") or untitled_project,
        description=_first_text(fields, "project_description", "excerpt") or "",
    )
    return container, content


def serialize_content(content: Mapping[str, Any]) -> str:
    """Serialize a content record to the text blob handed to storage.

    Decoding the blob in read-only mode reproduces an equivalent record.
    """
    return json.dumps(dict(content), ensure_ascii=False)


def article_view(
    content: Mapping[str, Any],
    *,
    default_author: str = DEFAULT_AUTHOR,
    placeholder_title: str = PLACEHOLDER_TITLE,
) -> ArticleView:
    """Build the title card for a content record."""
    return ArticleView(
        title=_first_text(content, "title") or placeholder_title,
        subtitle=_first_text(content, "subtitle"),
        author=_first_text(content, "author") or default_author,
        excerpt=_first_text(content, "excerpt"),
    )
