"""Pipeline entry points: first ingestion and re-reading stored content.

Both paths share one decoder, so a blob that was broken at ingestion time is
handled identically when it is re-read for display months later.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal, TypedDict, cast

from salvage._dev_flags import RAW_PREVIEW_CHARS, dev_raw_preview_enabled
from salvage.config import Config
from salvage.decode import DecodeResult, Tier, decode
from salvage.envelope import resolve
from salvage.errors import EnvelopeNotFoundError
from salvage.projection import Mode, article_view, project, serialize_content
from salvage.sanitize import clean_payload

if TYPE_CHECKING:
    from salvage.envelope import RawResponse
    from salvage.projection import ContainerRecord

log = logging.getLogger(__name__)

Status = Literal["ok", "degraded", "empty"]


class IngestResult(TypedDict, total=False):
    """Records produced on the first-ingestion path.

    ``status`` is ``"ok"`` for a strict parse, ``"degraded"`` when a repair
    tier recovered the fields, and ``"empty"`` for the placeholder record.
    """

    status: Status
    tier: Tier
    #: ``{"title": ..., "description": ...}`` for the new project.
    container: dict[str, str]
    content: dict[str, Any]
    #: ``content`` serialized for storage.
    stored_content: str
    #: Keys: ``attempted``, ``errors`` and, when enabled, ``raw_preview``.
    diagnostics: dict[str, Any]


class RereadResult(TypedDict, total=False):
    """Content re-decoded from storage for display. Nothing is persisted."""

    status: Status
    tier: Tier
    content: dict[str, Any]
    #: Keys: ``title``, ``subtitle``, ``author``, ``excerpt``.
    view: dict[str, Any]
    diagnostics: dict[str, Any]


def _status(result: DecodeResult) -> Status:
    if result.empty:
        return "empty"
    return "degraded" if result.degraded else "ok"


def _diagnostics(result: DecodeResult, candidate: Any) -> dict[str, Any]:
    diagnostics: dict[str, Any] = {
        "attempted": list(result.attempted),
        "errors": dict(result.errors),
    }
    if dev_raw_preview_enabled() and isinstance(candidate, str):
        diagnostics["raw_preview"] = candidate[:RAW_PREVIEW_CHARS]
    return diagnostics


def _log_outcome(result: DecodeResult, *, path: str) -> None:
    if result.empty:
        log.warning(
            "%s: no fields recovered, using placeholder (attempted=%s)",
            path,
            ",".join(result.attempted),
        )
    elif result.degraded:
        log.info("%s: decoded via %s tier", path, result.tier)


def _decode_candidate(candidate: str | dict[str, Any], cfg: Config) -> DecodeResult:
    if isinstance(candidate, str) and cfg.strip_code_fences:
        candidate = clean_payload(candidate)
    return decode(candidate, placeholder_title=cfg.placeholder_title)


def _is_decoded_article(raw: RawResponse) -> bool:
    """True when the workflow already returned the article object itself."""
    return (
        isinstance(raw, dict)
        and "output" not in raw
        and isinstance(raw.get("title"), str)
        and bool(raw["title"])
    )


def ingest(raw: RawResponse, *, config: Config | None = None) -> IngestResult:
    """Turn a workflow response into container and content records.

    Args:
        raw: Deserialized workflow response. Empty bodies must be rejected by
            the caller before this point.
        config: Optional configuration; defaults apply when omitted.

    Returns:
        `IngestResult` with both records and decode diagnostics.

    Raises:
        EnvelopeNotFoundError: No payload could be located in ``raw``.
    """
    cfg = config if config is not None else Config(use_mock=True)

    candidate: str | dict[str, Any] | None = (
        cast("dict[str, Any]", raw) if _is_decoded_article(raw) else resolve(raw)
    )
    if candidate is None:
        raise EnvelopeNotFoundError(
            f"No generated payload found in {type(raw).__name__} workflow response",
            hint="The generation workflow returned no text output; retry the workflow.",
        )

    result = _decode_candidate(candidate, cfg)
    _log_outcome(result, path="ingest")

    container, content = project(
        result.fields,
        Mode.INGESTION,
        default_author=cfg.default_author,
        untitled_project=cfg.untitled_project,
    )
    return IngestResult(
        status=_status(result),
        tier=result.tier,
        container=cast("ContainerRecord", container).model_dump(),
        content=content,
        stored_content=serialize_content(content),
        diagnostics=_diagnostics(result, candidate),
    )


def reread(
    blob: str | dict[str, Any] | None, *, config: Config | None = None
) -> RereadResult:
    """Re-decode a stored content blob for display.

    Historical blobs written before repair existed may still be malformed;
    they go through the same decoder as fresh responses. Never raises for
    bad content: an unrecoverable blob renders as the placeholder.
    """
    cfg = config if config is not None else Config(use_mock=True)

    result = _decode_candidate(blob if blob is not None else "", cfg)
    _log_outcome(result, path="reread")

    _, content = project(
        result.fields, Mode.READ_ONLY, default_author=cfg.default_author
    )
    view = article_view(
        content,
        default_author=cfg.default_author,
        placeholder_title=cfg.placeholder_title,
    )

    return RereadResult(
        status=_status(result),
        tier=result.tier,
        content=content,
        view=view.model_dump(),
        diagnostics=_diagnostics(result, blob),
    )
