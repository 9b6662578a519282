"""Internal helpers for development-time feature flags.

Centralizes how opt-in debug toggles are read so semantics stay consistent
across the codebase.
"""

from __future__ import annotations

import os

__all__ = ["RAW_PREVIEW_CHARS", "dev_raw_preview_enabled"]

#: Characters of candidate text kept in a raw preview.
RAW_PREVIEW_CHARS = 500


def dev_raw_preview_enabled(*, override: bool | None = None) -> bool:
    """Return True when attaching raw candidate previews to diagnostics is enabled.

    Semantics:
    - If ``override`` is provided, it takes precedence.
    - Otherwise, returns True when the environment variable
      ``SALVAGE_RAW_PREVIEW`` is exactly ``"1"``.

    Notes:
    - Previews can contain user transcription text, so they stay off unless
      explicitly requested.
    """
    if override is not None:
        return bool(override)
    return os.getenv("SALVAGE_RAW_PREVIEW") == "1"
