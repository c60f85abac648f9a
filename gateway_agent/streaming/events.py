"""Classification of gateway frames into typed stream events."""

import json

from pydantic import TypeAdapter, ValidationError

from gateway_agent.models.events import (
    DoneEvent,
    GatewayPayload,
    MalformedEvent,
    StreamEvent,
    TextEvent,
    TextPayload,
    UsageEvent,
)
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

_KNOWN_TYPES = frozenset({"text", "usage"})
_payload_adapter: TypeAdapter[GatewayPayload] = TypeAdapter(GatewayPayload)


class EventClassifier:
    """Turns frames into events and remembers whether the sentinel was seen.

    After ``[DONE]`` the classifier is terminal: remaining lines of the same
    frame and any later frames produce no events.
    """

    def __init__(self) -> None:
        self.done = False

    def classify(self, frame: str) -> list[StreamEvent]:
        """Return the events carried by one frame, in line order."""
        if self.done:
            logger.debug("Ignoring frame received after the completion sentinel")
            return []

        events: list[StreamEvent] = []
        for line in frame.split("\n"):
            line = line.rstrip("\r")
            if not line.startswith(DATA_PREFIX):
                if line.strip():
                    logger.debug(f"Skipping non-data line: {line!r}")
                continue

            payload = line[len(DATA_PREFIX) :].strip()
            if payload == DONE_SENTINEL:
                self.done = True
                events.append(DoneEvent())
                break

            event = classify_payload(payload)
            if event is not None:
                events.append(event)

        return events


def classify_payload(payload: str) -> StreamEvent | None:
    """Decode a single `data:` payload.

    Returns ``None`` for well-formed payloads with an unknown discriminant,
    which are logged and dropped.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse stream payload as JSON: {payload[:200]!r} ({e})")
        return MalformedEvent(raw=payload, cause=f"invalid JSON: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        logger.warning(f"Invalid event format: {payload[:200]!r}")
        return MalformedEvent(raw=payload, cause="missing 'type' discriminant")

    if data["type"] not in _KNOWN_TYPES:
        logger.warning(f"Unknown event type: {data['type']!r}")
        return None

    try:
        parsed = _payload_adapter.validate_python(data)
    except ValidationError as e:
        logger.error(f"Stream payload failed validation: {payload[:200]!r}")
        return MalformedEvent(raw=payload, cause=f"invalid {data['type']} payload: {e.error_count()} error(s)")

    if isinstance(parsed, TextPayload):
        return TextEvent(delta=parsed.text)
    return UsageEvent(usage=parsed.usage)
