"""Client-side rate limiting for gateway requests."""

import asyncio
import time

import tiktoken
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from gateway_agent.clients.errors import AbortError, RateLimitError
from gateway_agent.models.llm import GatewayMessage
from gateway_agent.utils.cancellation import CancellationToken, race
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

# Shortest wait between retries of a full window
MIN_WAIT_SECONDS = 0.05


class TokenEstimator:
    """Rough token counts for outgoing requests."""

    def __init__(self, tokenizer: tiktoken.Encoding | None = None, encoding_name: str = "cl100k_base"):
        self.tokenizer = tokenizer
        self._encoding_name = encoding_name
        self._loaded = tokenizer is not None

    def _get_tokenizer(self) -> tiktoken.Encoding | None:
        if not self._loaded:
            self._loaded = True
            try:
                self.tokenizer = tiktoken.get_encoding(self._encoding_name)
            except Exception as e:
                logger.warning(f"Tokenizer unavailable, estimating 4 characters per token: {e}")
                self.tokenizer = None
        return self.tokenizer

    def estimate(self, text: str) -> int:
        tokenizer = self._get_tokenizer()
        try:
            return len(tokenizer.encode(text)) if tokenizer else len(text) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(text) // 4

    def estimate_messages(self, messages: list[GatewayMessage]) -> int:
        return self.estimate("".join(message.content for message in messages))


class GatewayRateLimiter:
    """Moving-window limiter on requests and estimated tokens per minute."""

    def __init__(
        self,
        requests_per_minute: int = 50,
        tokens_per_minute: int | None = None,
        estimator: TokenEstimator | None = None,
    ):
        """Initialize the limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            tokens_per_minute: Maximum estimated prompt tokens per minute, unlimited if None
            estimator: Token estimator (a tiktoken-backed one by default)
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.estimator = estimator or TokenEstimator()

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute") if tokens_per_minute else None

    async def acquire(
        self,
        messages: list[GatewayMessage],
        identifier: str = "gateway",
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Wait until a request carrying ``messages`` fits within the limits.

        Raises:
            RateLimitError: The request alone is larger than a whole window
            AbortError: ``cancellation`` fired while waiting
        """
        await self._wait_for(self.request_limit, identifier, 1, cancellation)

        if self.token_limit is not None:
            estimated_tokens = self.estimator.estimate_messages(messages)
            logger.debug(f"Checking token rate limit for {estimated_tokens} tokens, identifier: {identifier}")
            await self._wait_for(self.token_limit, f"{identifier}_tokens", estimated_tokens, cancellation)

    async def _wait_for(self, item, identifier: str, cost: int, cancellation: CancellationToken | None) -> None:
        if cost > item.amount:
            raise RateLimitError(f"Request cost of {cost} exceeds the rate limit of {item}")

        while not self.limiter.hit(item, identifier, cost=cost):
            window_stats = self.limiter.get_window_stats(item, identifier)
            wait_time = max(MIN_WAIT_SECONDS, window_stats.reset_time - time.time())
            logger.warning(f"Rate limit {item} exceeded for {identifier}, waiting {wait_time:.2f}s")
            await self._sleep(wait_time, cancellation)

    async def _sleep(self, seconds: float, cancellation: CancellationToken | None) -> None:
        if cancellation is None:
            await asyncio.sleep(seconds)
            return
        finished, _ = await race(asyncio.sleep(seconds), cancellation)
        if not finished:
            raise AbortError(cancellation.reason)
