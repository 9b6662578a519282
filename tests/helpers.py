"""Test helpers (small, reusable builders).

Keep this file tiny: it exists so suites share one picture of what the
workflow's envelopes look like.
"""

from __future__ import annotations

from typing import Any


def responses_envelope(text: str) -> list[dict[str, Any]]:
    """Wrap ``text`` the way the workflow does with output simplification off."""
    return [
        {
            "output": [
                {
                    "type": "message",
                    "content": [{"type": "output_text", "text": text}],
                }
            ]
        }
    ]


class CountingSanitizer:
    """Sanitizer double that records how often it ran."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls = 0

    def __call__(self, text: str) -> str:
        self.calls += 1
        return self.inner(text)
