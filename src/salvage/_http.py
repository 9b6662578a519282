"""Small HTTP-related constants shared across Salvage."""

from __future__ import annotations

# Retryable status codes shared by the workflow client and the retry loop.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})
