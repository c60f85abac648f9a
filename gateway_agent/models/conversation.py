"""API request and response models."""

from datetime import datetime

from pydantic import BaseModel, Field


class ConversationRequest(BaseModel):
    """Request model for conversation endpoint."""

    message: str = Field(..., min_length=1)
    thread_id: str | None = None


class UsageSummary(BaseModel):
    """Token usage summed over the conversation."""

    input_tokens: int = 0
    output_tokens: int = 0


class ConversationResponse(BaseModel):
    """Response model for conversation endpoint."""

    response: str
    thread_id: str
    usage: UsageSummary
    error: bool = False


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
