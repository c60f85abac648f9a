"""Gateway request/response data models."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from gateway_agent.models.events import UsageStats

GatewayRole = Literal["system", "user", "assistant"]


class GatewayMessage(BaseModel):
    """A message in the gateway wire format."""

    role: GatewayRole
    content: str


class GenerationParameters(BaseModel):
    """Sampling parameters sent with every request."""

    temperature: float = 0.2
    max_tokens: int = 8000
    stop: list[str] | None = None


class GatewayRequestBody(BaseModel):
    """Complete body of a gateway POST."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[GatewayMessage]
    parameters: GenerationParameters
    thread_id: str = Field(alias="threadId")

    def to_wire(self) -> dict:
        """Serialize using gateway field names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class AggregatedResponse:
    """Result of consuming one gateway stream to completion."""

    text: str
    usage: UsageStats | None = None
    completed: bool = True
