"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway_agent import __version__
from gateway_agent.api.endpoints import router
from gateway_agent.services.conversation import build_state_machine
from gateway_agent.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting Gateway Agent {__version__}")
    app.state.state_machine = build_state_machine()
    try:
        yield
    finally:
        await app.state.state_machine.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Gateway Agent",
    description="A ReAct agent that reasons over a streaming LLM gateway and acts through tools.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    tags_metadata=[
        {
            "name": "Conversation",
            "description": "Send a user message and receive the agent's final answer for the turn.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gateway_agent.main:app", host="0.0.0.0", port=8000, log_level="info")
