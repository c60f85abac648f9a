"""Accumulation of a gateway event stream into a single response."""

from collections.abc import AsyncIterable

from gateway_agent.clients.errors import AbortError
from gateway_agent.models.events import DoneEvent, MalformedEvent, StreamEvent, TextEvent, UsageEvent, UsageStats
from gateway_agent.models.llm import AggregatedResponse
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)


class ResponseAggregator:
    """Concatenates text deltas and keeps the last usage report.

    Malformed events are skipped. A stream that was aborted before the
    completion sentinel raises ``AbortError``; one that simply ended early
    returns what arrived with ``completed=False``.
    """

    async def collect(self, stream: AsyncIterable[StreamEvent]) -> AggregatedResponse:
        parts: list[str] = []
        usage: UsageStats | None = None
        completed = False
        skipped = 0

        async for event in stream:
            match event:
                case TextEvent(delta=delta):
                    parts.append(delta)
                case UsageEvent(usage=reported):
                    usage = reported
                case DoneEvent():
                    completed = True
                case MalformedEvent():
                    skipped += 1

        if skipped:
            logger.warning(f"Skipped {skipped} malformed event(s) while aggregating response")

        if not completed and getattr(stream, "aborted", False):
            raise AbortError(getattr(stream, "abort_reason", None))
        if not completed:
            logger.warning("Aggregated response is incomplete; stream ended without the completion sentinel")

        return AggregatedResponse(text="".join(parts), usage=usage, completed=completed)
