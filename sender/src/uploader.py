"""
Single-shot batch uploader for posting daily entries to the sheet endpoint.

POSTs one Batch as JSON to the configured web app URL, following redirects
(the hosting platform answers through a redirect chain), and classifies the
outcome. There are no retries and no chunking: a failed run is simply run
again, which is safe because the endpoint upserts by date.

Response classification:
1. Body is a JSON object: its ``success`` flag decides. ``true`` is success;
   ``false`` or missing raises SubmissionRejectedError with the remote text.
2. Body is not JSON (e.g. an HTML redirect page): any 2xx is success; 405
   is a qualified success (data usually written, verify by hand); anything
   else raises TransportError with the status and a 500 character excerpt.

Operations:
- submit(batch): POST the batch and return a SubmitResult.

CHANGELOG:
- 2026-10-16: Post one Batch to the sheet endpoint with status classification
- 2026-02-14: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sender.src.errors import EmptyResultError, SubmissionRejectedError, TransportError
from sender.src.models import Batch, SubmitResult

logger = logging.getLogger(__name__)

BODY_EXCERPT_CHARS = 500
_REDIRECT_METHOD_NOT_ALLOWED = 405


class Uploader:
    """Posts a Batch to the sheet endpoint and classifies the answer.

    Args:
        webapp_url: Full URL of the sheet endpoint.
        timeout_s: Timeout for the request, in seconds.

    Usage::

        uploader = Uploader(webapp_url="https://script.example.com/exec")
        result = await uploader.submit(batch)
    """

    def __init__(self, webapp_url: str, timeout_s: float = 60.0) -> None:
        self._webapp_url = webapp_url
        self._timeout_s = timeout_s

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(self, batch: Batch) -> SubmitResult:
        """POST *batch* once and classify the response.

        Args:
            batch: Device, rate and entries to send.

        Returns:
            SubmitResult: ``success`` is always True; failures raise.

        Raises:
            EmptyResultError: The batch has no entries (nothing is sent).
            SubmissionRejectedError: The endpoint answered ``success: false``.
            TransportError: Network failure, or a non-JSON answer whose
                status is neither 2xx nor 405.
        """
        if not batch.entries:
            raise EmptyResultError("Refusing to submit a batch with no entries")

        payload = batch.model_dump(mode="json")
        logger.info(
            "Sending %d entries for device %s to sheet endpoint",
            len(batch.entries),
            batch.device_name,
        )

        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=self._timeout_s,
            ) as client:
                response = await client.post(self._webapp_url, json=payload)
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Failed to send HTTP request to sheet endpoint: {exc}"
            ) from exc

        return self._classify(response)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _classify(self, response: httpx.Response) -> SubmitResult:
        """Turn an HTTP response into a SubmitResult or raise."""
        status = response.status_code
        body = _parse_json_object(response)

        if body is not None:
            if body.get("success") is True:
                message = str(body.get("message") or "Data sent successfully")
                logger.info("Data sent successfully! Response: %s", body)
                return SubmitResult(
                    success=True,
                    message=message,
                    rows_added=_as_int(body.get("rows_added")),
                    status_code=status,
                )
            reason = body.get("message") or body.get("error") or "no message"
            raise SubmissionRejectedError(f"Failed to send data. Endpoint said: {reason}")

        if 200 <= status < 300:
            logger.info("Data sent successfully! (HTTP %d)", status)
            logger.info("Received non-JSON response, but HTTP status indicates success")
            return SubmitResult(
                success=True,
                message=f"HTTP {status} with non-JSON response",
                status_code=status,
            )

        if status == _REDIRECT_METHOD_NOT_ALLOWED:
            logger.warning("Data sent (HTTP 405 - Method Not Allowed on redirect)")
            logger.warning(
                "This is a known behavior of the redirect chain. "
                "Please verify data in spreadsheet."
            )
            return SubmitResult(
                success=True,
                message="HTTP 405 on redirect; verify data in spreadsheet",
                status_code=status,
                needs_verification=True,
            )

        excerpt = response.text[:BODY_EXCERPT_CHARS]
        raise TransportError(
            f"Failed to send data. HTTP {status}. Response: {excerpt}",
            status_code=status,
            body_excerpt=excerpt,
        )


def _parse_json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Return the body as a dict, or None when it is not a JSON object."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
