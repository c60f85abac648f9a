"""Tests for aggregating stream events into a response."""

import pytest

from gateway_agent.clients.errors import AbortError
from gateway_agent.models.events import DoneEvent, MalformedEvent, TextEvent, UsageEvent, UsageStats
from gateway_agent.streaming.aggregator import ResponseAggregator


class FakeStream:
    """An event source with the abort flags of a gateway stream."""

    def __init__(self, events, aborted=False, abort_reason=None):
        self.events = events
        self.aborted = aborted
        self.abort_reason = abort_reason

    async def __aiter__(self):
        for event in self.events:
            yield event


class TestResponseAggregator:
    """Tests for ResponseAggregator.collect."""

    @pytest.mark.asyncio
    async def test_concatenates_text_in_order(self):
        """Test that text deltas are joined in arrival order."""
        stream = FakeStream([TextEvent(delta="Hello"), TextEvent(delta=" "), TextEvent(delta="world"), DoneEvent()])
        result = await ResponseAggregator().collect(stream)

        assert result.text == "Hello world"
        assert result.completed

    @pytest.mark.asyncio
    async def test_keeps_last_usage(self):
        """Test that the last usage report wins."""
        stream = FakeStream(
            [
                UsageEvent(usage=UsageStats(input_tokens=1, output_tokens=1)),
                TextEvent(delta="x"),
                UsageEvent(usage=UsageStats(input_tokens=10, output_tokens=4)),
                DoneEvent(),
            ]
        )
        result = await ResponseAggregator().collect(stream)

        assert result.usage == UsageStats(input_tokens=10, output_tokens=4)

    @pytest.mark.asyncio
    async def test_ignores_malformed_events(self):
        """Test that malformed events do not affect the text."""
        stream = FakeStream(
            [TextEvent(delta="a"), MalformedEvent(raw="{", cause="bad"), TextEvent(delta="b"), DoneEvent()]
        )
        result = await ResponseAggregator().collect(stream)

        assert result.text == "ab"

    @pytest.mark.asyncio
    async def test_aborted_stream_raises(self):
        """Test that an abort before completion is an error for the aggregator."""
        stream = FakeStream([TextEvent(delta="a")], aborted=True, abort_reason="user")

        with pytest.raises(AbortError, match="user"):
            await ResponseAggregator().collect(stream)

    @pytest.mark.asyncio
    async def test_end_without_done_is_incomplete(self):
        """Test that a stream that simply ends is returned as incomplete."""
        result = await ResponseAggregator().collect(FakeStream([TextEvent(delta="a")]))

        assert result.text == "a"
        assert not result.completed
        assert result.usage is None
