"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker handling,
and automatic skipping of live webhook tests. Fixtures here are autouse
unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import json
import logging
import os
from typing import Any

import pytest

from tests.helpers import responses_envelope

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_salvage_env(request, monkeypatch):
    """Clear SALVAGE_* env vars so each test starts from defaults.

    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("SALVAGE_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip live webhook tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


# =============================================================================
# Shared Data
# =============================================================================


@pytest.fixture
def article_fields() -> dict[str, Any]:
    """A complete flat field set as the generator produces it."""
    return {
        "project_title": "Town Hall Recap",
        "project_description": "Notes from the March town hall",
        "title": "Council Approves New Library",
        "subtitle": "Construction starts in spring",
        "content": "The council voted 7-2.\nWork begins in April.",
        "excerpt": "A new library is coming.",
        "category": "Local News",
        "tags": ["council", "library"],
        "suggested_sections": ["Background", "The Vote"],
        "meta_title": "New Library Approved",
        "meta_description": "Council approves library funding.",
    }


@pytest.fixture
def article_envelope(article_fields: dict[str, Any]) -> list[dict[str, Any]]:
    """The complete field set wrapped in a responses-style envelope."""
    return responses_envelope(json.dumps(article_fields))
