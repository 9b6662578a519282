"""Configuration: frozen Config for the workflow client and the projector."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from urllib.parse import urlsplit

from dotenv import load_dotenv

from salvage.errors import ConfigurationError
from salvage.retry import RetryPolicy

load_dotenv()

_WEBHOOK_URL_ENV_VAR = "SALVAGE_WEBHOOK_URL"

DEFAULT_AUTHOR = "Diffuse.AI"
UNTITLED_PROJECT = "Untitled Project"
PLACEHOLDER_TITLE = "Untitled"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for Salvage.

    Only the workflow client needs a webhook URL; the decoding pipeline runs
    on defaults alone. The URL is auto-resolved from ``SALVAGE_WEBHOOK_URL``.

    Example:
        config = Config(use_mock=True)
        result = ingest(raw, config=config)
    """

    #: Auto-resolved from ``SALVAGE_WEBHOOK_URL`` when *None*.
    webhook_url: str | None = None
    use_mock: bool = False
    timeout_s: float = 120.0
    #: Attribution injected when the generator leaves ``author`` out.
    default_author: str = DEFAULT_AUTHOR
    untitled_project: str = UNTITLED_PROJECT
    placeholder_title: str = PLACEHOLDER_TITLE
    strip_code_fences: bool = True
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        """Auto-resolve the webhook URL and validate configuration."""
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="Generation runs can take minutes; use a generous timeout.",
            )
        for name in ("default_author", "untitled_project", "placeholder_title"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(
                    f"{name} must be a non-empty string, got {value!r}",
                    hint="Placeholders are shown to users in place of missing fields.",
                )

        if self.webhook_url is None and not self.use_mock:
            object.__setattr__(
                self, "webhook_url", os.environ.get(_WEBHOOK_URL_ENV_VAR) or None
            )

        if self.webhook_url is not None:
            parts = urlsplit(self.webhook_url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ConfigurationError(
                    f"Invalid webhook_url: {self.webhook_url!r}",
                    hint="Expected an absolute http(s) URL.",
                )

    def require_webhook_url(self) -> str:
        """Return the webhook URL or fail with an actionable hint."""
        if not self.webhook_url:
            raise ConfigurationError(
                "Webhook URL required for live workflow calls",
                hint=f"Set {_WEBHOOK_URL_ENV_VAR} environment variable, pass "
                "webhook_url=..., or use Config(use_mock=True).",
            )
        return self.webhook_url

    def __str__(self) -> str:
        """Return a developer-friendly representation without webhook secrets."""
        url = None
        if self.webhook_url:
            parts = urlsplit(self.webhook_url)
            url = f"{parts.scheme}://{parts.netloc}/[REDACTED]"
        return (
            f"Config(webhook_url={url!r}, use_mock={self.use_mock}, "
            f"timeout_s={self.timeout_s}, default_author={self.default_author!r})"
        )

    __repr__ = __str__
