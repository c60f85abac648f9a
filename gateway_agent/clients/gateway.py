"""Streaming client for the LLM gateway."""

import asyncio
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx
from langchain_core.messages import BaseMessage

from gateway_agent.clients.errors import AbortError, GatewayError, ProtocolError, TransportError
from gateway_agent.clients.message_formatter import format_messages
from gateway_agent.clients.rate_limit import GatewayRateLimiter
from gateway_agent.config import GatewayConfig
from gateway_agent.models.events import DoneEvent, StreamEvent
from gateway_agent.models.llm import AggregatedResponse, GatewayRequestBody, GenerationParameters
from gateway_agent.streaming.aggregator import ResponseAggregator
from gateway_agent.streaming.events import EventClassifier
from gateway_agent.streaming.frames import FrameDecoder
from gateway_agent.utils.cancellation import CancellationToken, race
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

EVENT_STREAM_TYPE = "text/event-stream"


async def _read_next(iterator: AsyncIterator[bytes]) -> bytes | None:
    return await anext(iterator, None)


def _release(timer: asyncio.TimerHandle, signal: CancellationToken) -> None:
    timer.cancel()
    signal.detach()


class GatewayStream:
    """Event stream for a single gateway request.

    Iterating yields ``StreamEvent``s in arrival order and stops after
    ``DoneEvent``. If the composed cancellation signal fires first, iteration
    stops quietly and ``aborted`` is set; consumers that need the full result
    decide whether that is an error.
    """

    def __init__(
        self,
        response: httpx.Response,
        signal: CancellationToken,
        controller: CancellationToken,
        timer: asyncio.TimerHandle | None = None,
    ):
        self.response = response
        self.done = False
        self.aborted = False
        self.abort_reason: str | None = None
        self._signal = signal
        self._controller = controller
        self._timer = timer
        self._iterated = False
        self._closed = False

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        if self._iterated:
            raise RuntimeError("A gateway stream can only be iterated once")
        self._iterated = True
        return self._events()

    async def __aenter__(self) -> "GatewayStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop decoding and release the HTTP response."""
        if self._closed:
            return
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
        # Reaching the sentinel also fires the internal controller; it is not an abort
        self._controller.cancel("done" if self.done else "closed")
        self._signal.detach()
        await self.response.aclose()

    async def _events(self) -> AsyncIterator[StreamEvent]:
        decoder = FrameDecoder()
        classifier = EventClassifier()
        received = False
        try:
            async for chunk in self._chunks():
                received = True
                for frame in decoder.feed(chunk):
                    if self._check_cancelled():
                        return
                    for event in classifier.classify(frame):
                        if self._check_cancelled():
                            return
                        if isinstance(event, DoneEvent):
                            self.done = True
                        yield event
                    if self.done:
                        logger.debug("Gateway stream reached the completion sentinel")
                        return

            if not received and not self.aborted:
                raise ProtocolError("Response body is empty")
            if not self.aborted:
                decoder.finish()
                logger.warning("Gateway stream closed before the completion sentinel")
        finally:
            await self.aclose()

    async def _chunks(self) -> AsyncIterator[bytes]:
        iterator = self.response.aiter_bytes()
        while True:
            if self._check_cancelled():
                return
            try:
                completed, chunk = await race(_read_next(iterator), self._signal)
            except httpx.TimeoutException:
                self._controller.cancel("timeout")
                self._mark_aborted()
                return
            except httpx.HTTPError as e:
                logger.error(f"Gateway stream failed: {e}")
                raise TransportError(f"Gateway stream failed: {e}") from e

            if not completed:
                self._mark_aborted()
                return
            if chunk is None:
                return
            yield chunk

    def _check_cancelled(self) -> bool:
        if self._signal.cancelled:
            self._mark_aborted()
            return True
        return False

    def _mark_aborted(self) -> None:
        self.aborted = True
        self.abort_reason = self._signal.reason
        logger.info(f"Gateway stream aborted: {self.abort_reason or 'cancelled'}")


class GatewayClient:
    """Client for the LLM gateway streaming endpoint.

    Holds its own configuration and HTTP connection pool; construct one per
    gateway and pass it to whatever needs it.
    """

    def __init__(
        self,
        config: GatewayConfig,
        http_client: httpx.AsyncClient | None = None,
        rate_limiter: GatewayRateLimiter | None = None,
    ):
        """Initialize the gateway client.

        Args:
            config: Gateway URL, credentials and defaults
            http_client: HTTP client to use (one is created and owned if omitted)
            rate_limiter: Optional client-side rate limiter
        """
        self.config = config
        self.rate_limiter = rate_limiter
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds, connect=config.connect_timeout_seconds)
        )
        logger.debug(f"GatewayClient initialized. API URL: {config.api_url}")

    def default_parameters(self) -> GenerationParameters:
        return GenerationParameters(
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            stop=self.config.stop,
        )

    def build_request_body(
        self,
        history: Sequence[BaseMessage],
        thread_id: str,
        parameters: GenerationParameters | None = None,
    ) -> GatewayRequestBody:
        """Translate history and parameters into the gateway request body."""
        if not thread_id:
            raise ValueError("A thread id is required for gateway requests")
        return GatewayRequestBody(
            messages=format_messages(history),
            parameters=parameters or self.default_parameters(),
            thread_id=thread_id,
        )

    async def send(
        self,
        history: Sequence[BaseMessage],
        thread_id: str,
        parameters: GenerationParameters | None = None,
        cancellation: CancellationToken | None = None,
    ) -> GatewayStream:
        """POST the conversation and return its event stream once headers arrive.

        Raises:
            TransportError: Non-success status or network failure
            ProtocolError: Success status without an event-stream body
            AbortError: Cancelled or timed out before the response started
        """
        body = self.build_request_body(history, thread_id, parameters)
        if self.rate_limiter:
            await self.rate_limiter.acquire(body.messages, cancellation=cancellation)

        controller = CancellationToken()
        signal = CancellationToken.any_of(controller, cancellation)
        timer = asyncio.get_running_loop().call_later(self.config.timeout_seconds, controller.cancel, "timeout")

        request = self._http.build_request(
            "POST",
            self.config.api_url,
            json=body.to_wire(),
            headers={
                "Content-Type": "application/json",
                "token": self.config.api_key,
                "Accept": EVENT_STREAM_TYPE,
            },
        )
        logger.debug(f"Sending {len(body.messages)} messages to gateway for thread {thread_id}")

        try:
            completed, response = await race(self._http.send(request, stream=True), signal)
            if not completed:
                raise AbortError(signal.reason)
            await self._validate_response(response)
        except httpx.TimeoutException as e:
            _release(timer, signal)
            raise AbortError("timeout") from e
        except httpx.HTTPError as e:
            _release(timer, signal)
            logger.error(f"Gateway request failed: {e}")
            raise TransportError(f"API request failed: {e}") from e
        except BaseException:
            _release(timer, signal)
            raise

        return GatewayStream(response, signal, controller, timer)

    async def complete(
        self,
        history: Sequence[BaseMessage],
        thread_id: str,
        parameters: GenerationParameters | None = None,
        cancellation: CancellationToken | None = None,
    ) -> AggregatedResponse:
        """Send a request and aggregate its stream into a single result."""
        stream = await self.send(history, thread_id, parameters, cancellation)
        async with stream:
            return await ResponseAggregator().collect(stream)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _validate_response(self, response: httpx.Response) -> None:
        try:
            if not response.is_success:
                try:
                    error_body = (await response.aread()).decode(errors="replace")
                except httpx.HTTPError:
                    error_body = "Failed to read error body"
                logger.error(f"Gateway request failed. Status: {response.status_code}, Body: {error_body}")
                raise TransportError(
                    f"LLM Gateway API Error: Status {response.status_code}",
                    status_code=response.status_code,
                    response_body=error_body,
                )

            content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
            if content_type != EVENT_STREAM_TYPE:
                raise ProtocolError(f"Expected {EVENT_STREAM_TYPE} response, got {content_type or 'no content type'}")

            if response.headers.get("content-length") == "0":
                raise ProtocolError("Response body is empty")
        except GatewayError:
            await response.aclose()
            raise


def create_gateway_client(config: GatewayConfig) -> GatewayClient:
    """Create a client, with a rate limiter when the configuration asks for one."""
    rate_limiter = None
    if config.requests_per_minute or config.tokens_per_minute:
        rate_limiter = GatewayRateLimiter(
            requests_per_minute=config.requests_per_minute or 50,
            tokens_per_minute=config.tokens_per_minute,
        )
        logger.info(
            f"Gateway rate limiting enabled: {config.requests_per_minute or 50} requests/minute, "
            f"{config.tokens_per_minute or 'unlimited'} tokens/minute"
        )
    return GatewayClient(config, rate_limiter=rate_limiter)
