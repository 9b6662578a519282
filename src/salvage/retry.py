"""Retry rules for the generation workflow call.

Only the webhook POST is retried, and only for failures the workflow can
recover from on its own: overload, rate limiting, gateway errors and dropped
connections. An empty body or an unparseable one means the workflow ran and
produced nothing useful, so running it again is the caller's decision.
"""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import TYPE_CHECKING

from salvage._http import RETRYABLE_STATUS_CODES
from salvage.errors import ConfigurationError, EmptyResponseError, UpstreamError

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to re-run a failed workflow call.

    Generation runs are slow and expensive, so the default allows a single
    retry. ``max_elapsed_s`` bounds the total time spent across attempts;
    ``None`` removes the bound.
    """

    max_attempts: int = 2
    initial_delay_s: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay_s: float = 10.0
    jitter: bool = True
    max_elapsed_s: float | None = 60.0

    def __post_init__(self) -> None:
        invalid = [
            name
            for name, ok in (
                ("max_attempts", self.max_attempts >= 1),
                ("initial_delay_s", self.initial_delay_s >= 0),
                ("backoff_multiplier", self.backoff_multiplier > 0),
                ("max_delay_s", self.max_delay_s >= 0),
                ("max_elapsed_s", self.max_elapsed_s is None or self.max_elapsed_s >= 0),
            )
            if not ok
        ]
        if invalid:
            raise ConfigurationError(
                f"Invalid retry policy: {', '.join(invalid)}",
                hint="Use at least one attempt and non-negative delays; "
                "backoff_multiplier must be positive.",
            )

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry; one value per retry allowed.

        Waits grow by ``backoff_multiplier`` up to ``max_delay_s``. With
        ``jitter`` each wait is drawn uniformly from ``[0, wait]``.
        """
        wait = self.initial_delay_s
        for _ in range(self.max_attempts - 1):
            capped = min(wait, self.max_delay_s)
            yield random.uniform(0.0, capped) if self.jitter else capped  # noqa: S311
            wait *= self.backoff_multiplier


def is_retryable(exc: UpstreamError) -> bool:
    """Return True when a failed workflow call is worth repeating.

    An explicit ``retryable`` flag wins; otherwise the HTTP status decides.
    Empty bodies are never retried.
    """
    if isinstance(exc, EmptyResponseError):
        return False
    if exc.retryable is not None:
        return exc.retryable
    return exc.status_code in RETRYABLE_STATUS_CODES
