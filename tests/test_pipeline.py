"""Pipeline boundary tests: ingestion and re-read paths end to end.

Tests here exercise the full path from a raw workflow response to the
records handed to storage and to the presentation layer.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from salvage import Config, EnvelopeNotFoundError, ingest, reread
from tests.helpers import responses_envelope

pytestmark = pytest.mark.unit


# =============================================================================
# Ingestion
# =============================================================================


def test_nested_envelope_is_ingested_with_strict_parse() -> None:
    raw = [
        {
            "output": [
                {
                    "content": [
                        {
                            "type": "output_text",
                            "text": '{"title":"X","content":"body"}',
                        }
                    ]
                }
            ]
        }
    ]

    result = ingest(raw)

    assert result["status"] == "ok"
    assert result["tier"] == "strict"
    assert result["container"] == {"title": "X", "description": ""}
    assert result["content"] == {"title": "X", "content": "body", "author": "Diffuse.AI"}
    assert json.loads(result["stored_content"]) == result["content"]
    assert result["diagnostics"] == {"attempted": ["strict"], "errors": {}}


def test_full_article_is_split(article_envelope: list[dict[str, Any]]) -> None:
    result = ingest(article_envelope)

    assert result["container"] == {
        "title": "Town Hall Recap",
        "description": "Notes from the March town hall",
    }
    assert "project_title" not in result["content"]
    assert result["content"]["suggested_sections"] == ["Background", "The Vote"]


def test_literal_newlines_are_repaired_at_ingestion() -> None:
    raw = responses_envelope('{"title":"A","content":"Line1\nLine2"}')

    result = ingest(raw)

    assert result["status"] == "degraded"
    assert result["tier"] == "sanitized"
    assert result["content"]["content"] == "Line1\nLine2"


def test_code_fenced_payload() -> None:
    raw = {"output": '```json\n{"title": "Fenced"}\n```'}

    result = ingest(raw)

    assert result["tier"] == "strict"
    assert result["content"]["title"] == "Fenced"


def test_code_fences_kept_when_cleaning_disabled() -> None:
    raw = {"output": '```json\n{"title": "Fenced"}\n```'}

    result = ingest(raw, config=Config(use_mock=True, strip_code_fences=False))

    assert result["tier"] == "extracted"
    assert result["content"]["title"] == "Fenced"


def test_already_decoded_article_is_accepted() -> None:
    raw = {"project_title": "P", "title": "T", "content": "plain body"}

    result = ingest(raw)

    assert result["tier"] == "strict"
    assert result["container"]["title"] == "P"
    assert result["content"] == {"title": "T", "content": "plain body", "author": "Diffuse.AI"}


def test_unrecoverable_payload_yields_placeholder(caplog: pytest.LogCaptureFixture) -> None:
    raw = {"output": "I'm sorry, I can't help with that."}

    with caplog.at_level(logging.WARNING, logger="salvage"):
        result = ingest(raw)

    assert result["status"] == "empty"
    assert result["container"] == {"title": "Untitled", "description": ""}
    assert result["content"] == {"title": "Untitled", "author": "Diffuse.AI"}
    assert "placeholder" in caplog.text


@pytest.mark.parametrize("raw", [[], {}, [{"output": []}], None])
def test_missing_envelope_is_an_explicit_failure(raw: Any) -> None:
    with pytest.raises(EnvelopeNotFoundError) as exc:
        ingest(raw)

    assert exc.value.hint is not None


def test_config_defaults_flow_through() -> None:
    cfg = Config(use_mock=True, default_author="Newsroom", untitled_project="Draft")

    result = ingest({"output": '{"content": "body"}'}, config=cfg)

    assert result["container"]["title"] == "Draft"
    assert result["content"]["author"] == "Newsroom"


def test_raw_preview_attached_only_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    raw = {"output": '{"title": "X"}'}

    assert "raw_preview" not in ingest(raw)["diagnostics"]

    monkeypatch.setenv("SALVAGE_RAW_PREVIEW", "1")
    assert ingest(raw)["diagnostics"]["raw_preview"] == '{"title": "X"}'


# =============================================================================
# Re-read
# =============================================================================


def test_reread_stored_content() -> None:
    stored = ingest(responses_envelope('{"title": "X", "subtitle": "S"}'))["stored_content"]

    result = reread(stored)

    assert result["status"] == "ok"
    assert result["content"] == {"title": "X", "subtitle": "S", "author": "Diffuse.AI"}
    assert result["view"] == {
        "title": "X",
        "subtitle": "S",
        "author": "Diffuse.AI",
        "excerpt": None,
    }
    assert "container" not in result


def test_reread_historical_malformed_blob() -> None:
    """Blobs stored before repair existed decode the same way as fresh ones."""
    blob = '{"title":"Old","excerpt":"Line1\nLine2"}'

    result = reread(blob)

    assert result["tier"] == "sanitized"
    assert result["view"]["excerpt"] == "Line1\nLine2"
    assert result["content"]["author"] == "Diffuse.AI"


def test_reread_matches_ingestion_on_same_text() -> None:
    text = '{"title": "Hello World", "content": "x" TRUNCATED'

    ingested = ingest({"output": text})
    reread_result = reread(text)

    assert ingested["tier"] == reread_result["tier"] == "extracted"
    assert ingested["content"] == reread_result["content"]


@pytest.mark.parametrize("blob", [None, "", "not json"])
def test_reread_never_fails(blob: str | None) -> None:
    result = reread(blob)

    assert result["status"] == "empty"
    assert result["view"]["title"] == "Untitled"


_field_values = st.one_of(
    st.text(max_size=40),
    st.lists(st.text(max_size=12), max_size=4),
)


@given(
    st.dictionaries(
        st.sampled_from(
            ["title", "subtitle", "content", "excerpt", "category", "tags", "author"]
        ),
        _field_values,
        min_size=1,
    )
)
@settings(max_examples=100, deadline=None, derandomize=True)
def test_stored_content_round_trips(fields: dict[str, Any]) -> None:
    """Property: re-reading stored content reproduces the content record."""
    ingested = ingest({"output": json.dumps(fields)})

    result = reread(ingested["stored_content"])

    assert result["tier"] == "strict"
    assert result["content"] == ingested["content"]
