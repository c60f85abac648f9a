"""Shared fixtures and helpers for building gateway responses."""

import asyncio
import json
from collections.abc import AsyncIterator, Callable

import httpx
import pytest

from gateway_agent.clients.gateway import GatewayClient
from gateway_agent.config import GatewayConfig

GATEWAY_URL = "https://gateway.test/v1/stream"


def data_frame(payload: dict | str) -> str:
    """One SSE frame carrying a single `data:` line."""
    if isinstance(payload, dict):
        payload = json.dumps(payload)
    return f"data: {payload}\n\n"


def text_frame(text: str) -> str:
    return data_frame({"type": "text", "text": text})


def usage_frame(input_tokens: int, output_tokens: int) -> str:
    return data_frame({"type": "usage", "usage": {"inputTokens": input_tokens, "outputTokens": output_tokens}})


DONE_FRAME = "data: [DONE]\n\n"


def sse_body(*frames: str) -> bytes:
    return "".join(frames).encode("utf-8")


def reply_body(text: str, input_tokens: int = 10, output_tokens: int = 5) -> bytes:
    """A complete gateway reply: text, usage, then the sentinel."""
    return sse_body(text_frame(text), usage_frame(input_tokens, output_tokens), DONE_FRAME)


def sse_response(content: bytes | AsyncIterator[bytes], status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, headers={"content-type": "text/event-stream"}, content=content)


async def chunked(body: bytes, size: int) -> AsyncIterator[bytes]:
    """Deliver ``body`` in pieces of ``size`` bytes."""
    for start in range(0, len(body), size):
        yield body[start : start + size]


async def stalled_after(*frames: str) -> AsyncIterator[bytes]:
    """Send ``frames`` and then never send anything again."""
    for frame in frames:
        yield frame.encode("utf-8")
    await asyncio.Event().wait()


def make_gateway(handler: Callable, config: GatewayConfig) -> GatewayClient:
    """A gateway client whose HTTP exchange is served by ``handler``."""
    return GatewayClient(config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class ScriptedGateway:
    """MockTransport handler that replays one reply per request and records requests."""

    def __init__(self, *replies: bytes | httpx.Response):
        self.replies = list(replies)
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, httpx.Response):
            return reply
        return sse_response(reply)

    @property
    def thread_ids(self) -> list[str]:
        return [body["threadId"] for body in self.requests]


@pytest.fixture
def gateway_config():
    """Gateway configuration pointing at the mock transport."""
    return GatewayConfig(api_url=GATEWAY_URL, api_key="test-key", timeout_seconds=5.0)
