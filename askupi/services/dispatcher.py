"""Analysis request dispatcher: client side of the ``/api`` and ``/api/chat`` endpoints.

Uploads run under a CancelToken and resolve to Cancelled (never NetworkFailure) when the user aborts. Chat requests are not cancellable. There are no automatic retries; every failure ends the attempt.
"""

import asyncio
from typing import Any

import httpx

from askupi.core.errors import Cancelled, NetworkFailure, UploadInProgress
from askupi.core.models import Analysis, Message
from askupi.core.utils import get_logger
from askupi.services.intake import StatementFile

HTTP_CLIENT_CLOSED_REQUEST = 499

logger = get_logger("askupi.dispatcher")


class CancelToken:
    """One-shot abort signal for an in-flight upload."""

    def __init__(self) -> None:
        """Create an un-fired token."""
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token."""
        self._event.set()

    async def wait(self) -> None:
        """Block until the token fires."""
        await self._event.wait()


class UploadGuard:
    """Single-slot guard allowing one upload in flight."""

    def __init__(self) -> None:
        """Create a free guard."""
        self._held = False

    @property
    def held(self) -> bool:
        """Whether an upload currently holds the slot."""
        return self._held

    def acquire(self) -> None:
        """Take the slot or raise UploadInProgress."""
        if self._held:
            msg = "An analysis is already in progress"
            raise UploadInProgress(msg)
        self._held = True

    def release(self) -> None:
        """Free the slot."""
        self._held = False

    def __enter__(self) -> "UploadGuard":
        """Acquire the slot for the duration of a with-block."""
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Release the slot, whether or not the block raised."""
        self.release()


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Return the server's error message verbatim when present, else the fallback."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict) or not body.get("error"):
        return fallback
    message = str(body["error"])
    if body.get("details"):
        message = f"{message}: {body['details']}"
    return message


class AnalysisDispatcher:
    """Sends statements and chat turns to the analysis service."""

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout: float = 120.0) -> None:
        """Use the given client, or build one bound to base_url."""
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def analyze(self, file: StatementFile, cancel_token: CancelToken | None = None) -> Any:
        """Upload a statement and return the raw JSON body of the response."""
        token = cancel_token or CancelToken()
        if token.cancelled:
            msg = "Request cancelled by client"
            raise Cancelled(msg)
        files = {"file": (file.filename, file.data, file.content_type)}
        logger.info(f"Uploading {file.filename!r} ({file.size} bytes) to /api")
        request = asyncio.ensure_future(self.client.post("/api", files=files))
        cancel_wait = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({request, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_wait.cancel()
        if request not in done:
            request.cancel()
            try:
                await request
            except (asyncio.CancelledError, httpx.HTTPError):
                pass
            logger.info("Upload cancelled by client")
            msg = "Request cancelled by client"
            raise Cancelled(msg)
        try:
            response = request.result()
        except httpx.HTTPError as exc:
            logger.exception("Upload transport error")
            raise NetworkFailure(f"Upload failed: {exc}") from exc
        if response.status_code == HTTP_CLIENT_CLOSED_REQUEST:
            raise Cancelled(_error_message(response, "Request cancelled by client"))
        if not response.is_success:
            message = _error_message(response, f"Upload failed: {response.status_code}")
            logger.warning(f"Upload rejected with {response.status_code}: {message}")
            raise NetworkFailure(message, response.status_code)
        try:
            return response.json()
        except ValueError:
            # An unparseable body is handed over as text for the normalizer to judge.
            return response.text

    async def chat(self, messages: list[Message], analysis: Analysis) -> str:
        """Send the conversation so far and return the assistant's reply."""
        payload = {
            "messages": [m.model_dump(mode="json") for m in messages],
            "analysisData": analysis.model_dump(mode="json"),
        }
        try:
            response = await self.client.post("/api/chat", json=payload)
        except httpx.HTTPError as exc:
            logger.exception("Chat transport error")
            raise NetworkFailure(f"Chat failed: {exc}") from exc
        if not response.is_success:
            message = _error_message(response, f"API error: {response.status_code}")
            logger.warning(f"Chat rejected with {response.status_code}: {message}")
            raise NetworkFailure(message, response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkFailure("Chat response was not JSON", response.status_code) from exc
        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise NetworkFailure("Chat response had no text", response.status_code)
        return text
