"""FastAPI server for the Muay Thai Gym Scout API.

Run with:
    uvicorn gymscout.server:app --reload --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from gymscout import config
from gymscout.agent import create_gym_scout_agent
from gymscout.api.routes import router
from gymscout.services.airtable_client import get_airtable_client

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: create the Airtable client and compile the chat graph.

    Missing credentials leave the matching resource as ``None``; the routes
    answer "not configured" for those features instead of failing here.
    """
    airtable = get_airtable_client()
    application.state.airtable = airtable
    application.state.agent = None

    if config.chat_configured():
        logger.info("Compiling chat graph (provider: %s)…", config.LLM_PROVIDER)
        application.state.agent = create_gym_scout_agent(airtable)
        logger.info("Chat graph ready.")
    else:
        logger.warning("Chat credentials missing; /api/chat will answer with useMock")

    logger.info("Integrations configured: %s", config.config_summary())
    yield
    if airtable is not None:
        airtable.close()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Muay Thai Gym Scout",
    description=(
        "Chat assistant and gym directory for Muay Thai camps in Thailand, "
        "plus waitlist, booking requests, and checkout."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a request ID (``X-Request-ID``) to every request and response."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    return {
        "service": "Muay Thai Gym Scout",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    logger.info("Starting gym scout API on %s:%d", config.SERVER_HOST, config.SERVER_PORT)
    uvicorn.run(
        "gymscout.server:app",
        host=config.SERVER_HOST,
        port=config.SERVER_PORT,
        reload=True,
    )
