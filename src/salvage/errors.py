"""Exception hierarchy for Salvage."""

from __future__ import annotations


class SalvageError(Exception):
    """Base exception for all Salvage errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(SalvageError):
    """Configuration validation or resolution failed."""


class ValidationError(SalvageError):
    """Caller input was rejected before reaching the pipeline."""


class EnvelopeNotFoundError(SalvageError):
    """No text payload could be located in a raw response.

    This points at the generation collaborator misbehaving, not at a
    malformed payload, so it is never replaced by a placeholder record.
    """


class UpstreamError(SalvageError):
    """The generation workflow call failed.

    Carries retry metadata so the bounded retry loop can decide without
    substring matching.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        retryable: bool | None = None,
        status_code: int | None = None,
        retry_after_s: float | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.retryable = retryable
        self.status_code = status_code
        self.retry_after_s = retry_after_s
        self.phase = phase


class EmptyResponseError(UpstreamError):
    """The workflow answered with an empty or whitespace-only body."""

