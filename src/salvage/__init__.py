"""Salvage: recover structured article records from generated text.

Public API:
    - ingest(): First-ingestion path (container + content records)
    - reread(): Re-decode stored content for display
    - resolve(), sanitize(), decode(), project(): The pipeline stages
    - WorkflowClient: Async client for the generation webhook
    - Config: Configuration dataclass
"""

from __future__ import annotations

import logging

from salvage.config import Config
from salvage.decode import DecodeResult, decode, extract_fields
from salvage.envelope import RawResponse, resolve
from salvage.errors import (
    ConfigurationError,
    EmptyResponseError,
    EnvelopeNotFoundError,
    SalvageError,
    UpstreamError,
    ValidationError,
)
from salvage.pipeline import IngestResult, RereadResult, ingest, reread
from salvage.projection import (
    ArticleView,
    ContainerRecord,
    ContentRecord,
    Mode,
    article_view,
    project,
    serialize_content,
)
from salvage.retry import RetryPolicy
from salvage.sanitize import clean_payload, sanitize
from salvage.webhook import WorkflowClient, build_quick_payload, parse_raw_body

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("salvage-ai")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("salvage").addHandler(logging.NullHandler())

__all__ = [
    "ArticleView",
    "Config",
    "ConfigurationError",
    "ContainerRecord",
    "ContentRecord",
    "DecodeResult",
    "EmptyResponseError",
    "EnvelopeNotFoundError",
    "IngestResult",
    "Mode",
    "RawResponse",
    "RereadResult",
    "RetryPolicy",
    "SalvageError",
    "UpstreamError",
    "ValidationError",
    "WorkflowClient",
    "__version__",
    "article_view",
    "build_quick_payload",
    "clean_payload",
    "decode",
    "extract_fields",
    "ingest",
    "parse_raw_body",
    "project",
    "reread",
    "resolve",
    "sanitize",
    "serialize_content",
]
