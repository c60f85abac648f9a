"""Stream event types produced from gateway frames."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class UsageStats(BaseModel):
    """Token counts reported by the gateway."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    input_tokens: int = Field(default=0, alias="inputTokens")
    output_tokens: int = Field(default=0, alias="outputTokens")

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


# Wire payloads carried on `data:` lines
class TextPayload(BaseModel):
    """`{"type": "text", "text": "..."}`"""

    model_config = ConfigDict(extra="ignore")

    type: Literal["text"] = "text"
    text: str


class UsagePayload(BaseModel):
    """`{"type": "usage", "usage": {"inputTokens": n, "outputTokens": n}}`"""

    model_config = ConfigDict(extra="ignore")

    type: Literal["usage"] = "usage"
    usage: UsageStats


GatewayPayload = Annotated[TextPayload | UsagePayload, Field(discriminator="type")]


# Events handed to consumers of a gateway stream
class TextEvent(BaseModel):
    """A chunk of generated text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    delta: str


class UsageEvent(BaseModel):
    """Token usage for the request."""

    model_config = ConfigDict(frozen=True)

    type: Literal["usage"] = "usage"
    usage: UsageStats


class DoneEvent(BaseModel):
    """The completion sentinel was received."""

    model_config = ConfigDict(frozen=True)

    type: Literal["done"] = "done"


class MalformedEvent(BaseModel):
    """A data line that could not be decoded into a known payload."""

    model_config = ConfigDict(frozen=True)

    type: Literal["malformed"] = "malformed"
    raw: str
    cause: str


StreamEvent = TextEvent | UsageEvent | DoneEvent | MalformedEvent
