"""Async client for the article generation workflow.

The workflow is an HTTP webhook that answers with an envelope of unknown
shape. This module owns the network hop only: it rejects empty bodies,
deserializes the response into a raw tree, and maps transport failures to
`UpstreamError` with retry metadata. Normalization happens in
`salvage.pipeline`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from salvage._http import RETRYABLE_STATUS_CODES
from salvage.config import Config
from salvage.errors import EmptyResponseError, UpstreamError, ValidationError
from salvage.pipeline import ingest
from salvage.retry import is_retryable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from salvage.envelope import RawResponse
    from salvage.pipeline import IngestResult

log = logging.getLogger(__name__)

_PREVIEW_CHARS = 500


def build_quick_payload(
    transcription: str, recording_title: str | None = None
) -> dict[str, Any]:
    """Build the quick-mode request body for a recording transcription."""
    if not isinstance(transcription, str) or not transcription.strip():
        raise ValidationError(
            "transcription is required",
            hint="Transcribe the recording before running the workflow.",
        )
    return {
        "mode": "quick",
        "recording_title": recording_title or "Recording",
        "transcription": transcription,
    }


def parse_raw_body(text: str) -> RawResponse:
    """Deserialize a workflow response body.

    Raises:
        EmptyResponseError: The body is empty or whitespace only.
        UpstreamError: The body is not JSON.
    """
    if not text or not text.strip():
        raise EmptyResponseError(
            "Workflow returned empty response",
            hint="Check the workflow's final node; it produced no output.",
            retryable=False,
            phase="parse",
        )
    try:
        return json.loads(text)
    except ValueError as e:
        raise UpstreamError(
            "Invalid workflow response format",
            hint="The webhook must respond with a JSON body.",
            retryable=False,
            phase="parse",
        ) from e


def _retry_after_s(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if not raw or not raw.strip():
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _status_error(response: httpx.Response) -> UpstreamError:
    status = response.status_code
    body = response.text[:_PREVIEW_CHARS]
    log.error("Workflow webhook error: %s %s", status, body)
    return UpstreamError(
        f"Workflow execution failed (status={status})",
        hint="Retry later." if status in RETRYABLE_STATUS_CODES else None,
        retryable=status in RETRYABLE_STATUS_CODES,
        status_code=status,
        retry_after_s=_retry_after_s(response),
        phase="generate",
    )


def _transport_error(exc: httpx.HTTPError) -> UpstreamError:
    # Timeouts and connection failures are TransportErrors; protocol misuse is not.
    retryable = isinstance(exc, httpx.TransportError)
    cause = str(exc)
    msg = "Workflow request failed"
    return UpstreamError(
        f"{msg}: {cause}" if cause else msg,
        retryable=retryable,
        phase="generate",
    )


def _mock_response(payload: Mapping[str, Any]) -> RawResponse:
    """Return a deterministic envelope shaped like the live workflow's."""
    title = str(payload.get("recording_title") or "Recording")
    transcription = str(payload.get("transcription") or "")
    article = {
        "project_title": title,
        "project_description": f"Article drafted from {title}",
        "title": title,
        "content": f"echo: {transcription[:100]}",
    }
    return [
        {
            "output": [
                {
                    "type": "message",
                    "content": [
                        {"type": "output_text", "text": json.dumps(article)}
                    ],
                }
            ]
        }
    ]


class WorkflowClient:
    """Calls the generation webhook with bounded retries.

    Args:
        config: Webhook URL, timeout and retry policy. ``use_mock`` skips the
            network and returns a canned envelope.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config if config is not None else Config()
        self._transport = transport

    async def generate(self, payload: Mapping[str, Any]) -> RawResponse:
        """POST ``payload`` to the webhook and return the deserialized body.

        Retryable failures are repeated under ``config.retry``; a
        ``Retry-After`` from the workflow stretches the wait, the elapsed
        budget shortens it.

        Raises:
            ConfigurationError: No webhook URL outside mock mode.
            UpstreamError: The last attempt failed, or the failure is final.
        """
        if self.config.use_mock:
            return _mock_response(payload)

        url = self.config.require_webhook_url()
        policy = self.config.retry
        deadline = (
            None
            if policy.max_elapsed_s is None
            else time.monotonic() + policy.max_elapsed_s
        )
        delays = policy.delays()
        attempt = 1

        while True:
            try:
                return await self._post_once(url, payload)
            except UpstreamError as e:
                delay = next(delays, None)
                if delay is None or not is_retryable(e):
                    raise
                if e.retry_after_s is not None:
                    delay = max(delay, e.retry_after_s)
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise
                    delay = min(delay, remaining)

                attempt += 1
                log.warning(
                    "Workflow call failed (%s); attempt %d/%d in %.1fs",
                    e,
                    attempt,
                    policy.max_attempts,
                    delay,
                )
                if delay > 0:
                    await asyncio.sleep(delay)

    async def _post_once(self, url: str, payload: Mapping[str, Any]) -> RawResponse:
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_s, transport=self._transport
            ) as client:
                response = await client.post(url, json=dict(payload))
        except httpx.HTTPError as e:
            raise _transport_error(e) from e

        if response.is_error:
            raise _status_error(response)

        text = response.text
        log.debug("Workflow raw response: %s", text[:_PREVIEW_CHARS])
        return parse_raw_body(text)

    async def run_quick(
        self, transcription: str, recording_title: str | None = None
    ) -> IngestResult:
        """Generate an article for a transcription and normalize the response.

        Raises:
            ValidationError: ``transcription`` is empty.
            UpstreamError: The workflow call failed or returned an empty body.
            EnvelopeNotFoundError: The response carried no payload.
        """
        payload = build_quick_payload(transcription, recording_title)
        raw = await self.generate(payload)
        return ingest(raw, config=self.config)
