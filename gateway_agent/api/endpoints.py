"""API endpoints for the conversation service."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request

from gateway_agent import __version__
from gateway_agent.clients.errors import RecursionLimitError
from gateway_agent.graphs.conversation import ConversationStateMachine, get_final_response, turn_failed
from gateway_agent.models.conversation import (
    ConversationRequest,
    ConversationResponse,
    HealthResponse,
    UsageSummary,
)
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_state_machine(request: Request) -> ConversationStateMachine:
    """Return the state machine created at application startup."""
    state_machine = getattr(request.app.state, "state_machine", None)
    if state_machine is None:
        raise HTTPException(status_code=503, detail="Conversation service is not ready")
    return state_machine


@router.post("/conversation", response_model=ConversationResponse, tags=["Conversation"])
async def handle_conversation(
    request: ConversationRequest,
    state_machine: ConversationStateMachine = Depends(get_state_machine),
) -> ConversationResponse:
    """Run one user turn and return the assistant's reply."""
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")

    logger.info(f"Processing message for thread {request.thread_id or '(new)'}: {request.message[:50]}...")
    try:
        state = await state_machine.invoke(request.message, request.thread_id)
    except RecursionLimitError as e:
        thread_id = e.state.thread_id if e.state else request.thread_id
        logger.warning(f"Recursion limit reached for thread {thread_id}: {e}")
        raise HTTPException(status_code=508, detail={"message": str(e), "thread_id": thread_id}) from e
    except Exception as e:
        logger.error(f"Conversation processing error for thread {request.thread_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process conversation") from e

    response_text = get_final_response(state)
    logger.info(f"Generated response for thread {state.thread_id}: {response_text[:50]}...")
    return ConversationResponse(
        response=response_text,
        thread_id=state.thread_id,
        usage=UsageSummary(input_tokens=state.total_input_tokens, output_tokens=state.total_output_tokens),
        error=turn_failed(state),
    )


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
