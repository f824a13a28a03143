"""HTTP transport for MCP servers.

Outbound messages are POSTed to ``{base_url}/messages``; inbound messages
arrive on a Server-Sent Events stream opened with :meth:`HTTPTransport.open_stream`.
"""

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

import httpx

from .cancellation import CancellationController, IdleTimer
from .errors import (
    ConfigurationError,
    HTTPStatusError,
    NoResponseBodyError,
    NotStartedError,
)
from .stream import SSEDecoder, classify_payload
from .types import (
    HTTPTransportConfig,
    RawPayload,
    ResponseFormat,
    StructuredMessage,
)

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"

# Statuses that are successful but never carry a body to stream
_NO_BODY_STATUSES = (204, 205)


def _raise_for_status(response: httpx.Response) -> None:
    if not response.is_success:
        raise HTTPStatusError(response.status_code, response.reason_phrase)


def _resolve_endpoint(base_url: str) -> httpx.URL:
    """Build the send endpoint from the configured base URL."""
    try:
        url = httpx.URL(f"{base_url.rstrip('/')}{MESSAGES_PATH}")
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid base URL {base_url!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"Invalid base URL {base_url!r}: expected an absolute http(s) URL")
    return url


def _decode_body(response: httpx.Response, response_format: str) -> Any:
    if response_format == "text":
        return response.text
    if response_format == "binary":
        return response.content
    if response_format != "json":
        logger.debug("Unknown response format %r, decoding as JSON", response_format)
    return response.json()


async def _next_chunk(chunks: AsyncIterator[str]) -> str | None:
    """Read one chunk, mapping end of stream to None."""
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


class HTTPTransport:
    """Transport that talks JSON-RPC to an MCP server over HTTP.

    Hooks are plain attributes, set before calling :meth:`start`:

    - ``on_close()``: called on every :meth:`close`
    - ``on_error(exc)``: called before a failing :meth:`start` or :meth:`send`
      re-raises
    - ``on_message(message)``: called for each JSON-RPC message read by
      :meth:`open_stream`

    Only one cancellable operation (a :meth:`request` or an open stream) is
    tracked at a time; :meth:`close` aborts the most recently started one.
    """

    def __init__(self, config: HTTPTransportConfig | None = None) -> None:
        self._config = config or HTTPTransportConfig()
        self._controller = CancellationController()
        self._endpoint: httpx.URL | None = None

        self.on_close: Callable[[], None] | None = None
        self.on_error: Callable[[Exception], None] | None = None
        self.on_message: Callable[[dict[str, Any]], None] | None = None

    @property
    def config(self) -> HTTPTransportConfig:
        return self._config

    @property
    def endpoint(self) -> httpx.URL | None:
        """Resolved send endpoint, or None before :meth:`start`."""
        return self._endpoint

    def _client(self) -> httpx.AsyncClient:
        # Deadlines are enforced by the idle timer, not by httpx
        return httpx.AsyncClient(
            timeout=None,
            default_encoding="utf-8",
            follow_redirects=self._config.follow_redirects,
            max_redirects=self._config.max_redirects,
        )

    def _merge_headers(self, headers: Mapping[str, str] | None) -> httpx.Headers:
        merged = httpx.Headers(self._config.headers)
        if headers:
            merged.update(headers)
        return merged

    def _call_hook(self, name: str, hook: Callable[..., None] | None, *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception("Error in %s hook", name)

    async def start(self) -> None:
        """Resolve the endpoint that :meth:`send` posts to.

        Raises:
            ConfigurationError: If the base URL is not an absolute http(s) URL
        """
        try:
            self._endpoint = _resolve_endpoint(self._config.base_url)
        except ConfigurationError as e:
            self._call_hook("on_error", self.on_error, e)
            raise
        logger.info("HTTP transport started, sending to %s", self._endpoint)

    async def send(self, message: Any) -> None:
        """POST one JSON-RPC message to the endpoint.

        Raises:
            NotStartedError: If :meth:`start` has not resolved the endpoint
            HTTPStatusError: On a non-2xx response
            AbortedError: If the tracked operation is aborted mid-send
        """
        if self._endpoint is None:
            raise NotStartedError()

        headers = httpx.Headers({"Content-Type": "application/json"})
        headers.update(self._config.headers)
        scope = self._controller.current

        try:
            async with self._client() as client:
                post = client.post(self._endpoint, headers=headers, json=message)
                response = await (scope.guard(post) if scope is not None else post)
                _raise_for_status(response)
        except Exception as e:
            self._call_hook("on_error", self.on_error, e)
            raise

        logger.debug("Sent message to %s", self._endpoint)

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        timeout: float | None = None,
        response_format: ResponseFormat = "json",
    ) -> Any:
        """Send a single HTTP request and decode its response.

        Args:
            url: Request URL
            method: HTTP method
            headers: Per-call headers, overriding the configured defaults
            body: A str is sent as-is, anything else is JSON-encoded
            timeout: Seconds before the request is aborted (config default if None)
            response_format: "json", "text" or "binary"; anything else decodes as JSON

        Returns:
            Parsed JSON, text, or raw bytes depending on response_format

        Raises:
            HTTPStatusError: On a non-2xx response
            AbortedError: On timeout or :meth:`close`
        """
        timeout = self._config.timeout if timeout is None else timeout
        request_headers = self._merge_headers(headers)

        content: str | None = None
        json_body: Any = None
        if body is not None:
            if "content-type" not in request_headers:
                request_headers["Content-Type"] = "application/json"
            if isinstance(body, str):
                content = body
            else:
                json_body = body

        scope = self._controller.begin()
        timer = IdleTimer(scope, timeout)
        timer.arm()
        try:
            async with self._client() as client:
                logger.debug("%s %s", method, url)
                response = await scope.guard(
                    client.request(
                        method,
                        url,
                        headers=request_headers,
                        content=content,
                        json=json_body,
                    )
                )
                _raise_for_status(response)
                return _decode_body(response, response_format)
        finally:
            timer.clear()
            self._controller.release(scope)

    async def open_stream(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[StructuredMessage | RawPayload]:
        """Open an SSE stream and yield decoded events as they arrive.

        The GET is issued on the first iteration. Each event re-arms the idle
        timer, so ``timeout`` bounds the silence between events rather than
        the stream's total duration.

        Yields:
            StructuredMessage for JSON-RPC payloads, RawPayload otherwise

        Raises:
            HTTPStatusError: If the server rejects the stream
            NoResponseBodyError: If the response has nothing to stream
            AbortedError: On idle timeout or :meth:`close`
        """
        timeout = self._config.timeout if timeout is None else timeout
        request_headers = self._merge_headers(headers)
        request_headers["Accept"] = EVENT_STREAM_MEDIA_TYPE

        scope = self._controller.begin()
        timer = IdleTimer(scope, timeout)
        timer.arm()
        try:
            async with self._client() as client:
                logger.debug("Opening event stream %s", url)
                response = await scope.guard(
                    client.send(
                        client.build_request("GET", url, headers=request_headers),
                        stream=True,
                    )
                )
                try:
                    _raise_for_status(response)
                    if response.status_code in _NO_BODY_STATUSES or response.is_stream_consumed:
                        raise NoResponseBodyError()

                    decoder = SSEDecoder()
                    chunks = response.aiter_text()
                    try:
                        while True:
                            chunk = await scope.guard(_next_chunk(chunks))
                            if chunk is None:
                                break

                            for data in decoder.feed(chunk):
                                event = classify_payload(data)
                                if isinstance(event, StructuredMessage):
                                    self._call_hook("on_message", self.on_message, event.message)
                                yield event
                                timer.arm()
                    finally:
                        await chunks.aclose()

                    if decoder.has_buffered_data():
                        logger.debug("Event stream ended with an incomplete frame, discarding it")
                finally:
                    await response.aclose()
        finally:
            timer.clear()
            self._controller.release(scope)
            logger.debug("Event stream %s closed", url)

    async def close(self) -> None:
        """Abort the tracked operation, if any, and notify ``on_close``."""
        if self._controller.cancel_current("transport closed"):
            logger.info("HTTP transport closed, in-flight operation aborted")
        else:
            logger.info("HTTP transport closed")
        self._call_hook("on_close", self.on_close)
