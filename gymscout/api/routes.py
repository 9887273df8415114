"""FastAPI route definitions for the gym scout API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request

from gymscout import config
from gymscout.agent import ask
from gymscout.api.schemas import (
    BookingRequest,
    ChatRequest,
    ChatResponse,
    CheckoutRequest,
    CheckoutResponse,
    GymsResponse,
    GymStatusResponse,
    HealthResponse,
    MockChatResponse,
    SuccessResponse,
    WaitlistRequest,
    WaitlistResponse,
)
from gymscout.api.validation import clean, validate_email
from gymscout.normalizer import normalize_gyms
from gymscout.services.airtable_client import AirtableAPIError, AirtableClient
from gymscout.services.checkout import PRODUCTS, create_checkout_session
from gymscout.traffic import gym_status

logger = logging.getLogger(__name__)

router = APIRouter()

MOCK_MESSAGE = (
    "Backend is running but API keys are not configured in .env. Using mock data."
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "?")


def _get_airtable(request: Request) -> AirtableClient | None:
    """The shared Airtable client from app state (``None`` if not configured)."""
    return getattr(request.app.state, "airtable", None)


def _get_agent(request: Request):
    """Retrieve the compiled chat graph from app state."""
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(
            status_code=503,
            detail="The assistant is still starting up. Please try again in a moment.",
        )
    return agent


def _waitlist_error_detail(exc: AirtableAPIError) -> str:
    """Turn an Airtable write error into a hint the site owner can act on."""
    text = str(exc)
    if "UNKNOWN_FIELD_NAME" in text or "Unknown field name" in text:
        return (
            f'The waitlist table "{config.WAITLIST_TABLE}" does not match the expected '
            'schema. It needs an "Email" column and a "Name" column.'
        )
    if "NOT_FOUND" in text or "Could not find table" in text:
        return (
            f'The waitlist table "{config.WAITLIST_TABLE}" was not found in the Airtable '
            "base. Check AIRTABLE_WAITLIST_TABLE and AIRTABLE_BASE_ID."
        )
    return "Could not join the waitlist right now. Please try again later."


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(config=config.config_summary())


@router.get("/gym-status", response_model=GymStatusResponse)
async def get_gym_status():
    """Time-of-day traffic estimate in Bangkok time."""
    return gym_status()


@router.post("/chat", response_model=ChatResponse | MockChatResponse)
async def chat(request: ChatRequest, http_request: Request):
    """Answer a question about gyms, grounded in the Airtable gym data.

    ``agent.invoke()`` is blocking (Airtable + model calls), so it runs in
    the default thread pool via ``asyncio.to_thread``.
    """
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    if not config.chat_configured():
        logger.warning("Chat requested but API keys are not configured; answering with mock flag")
        return MockChatResponse(message=MOCK_MESSAGE)

    agent = _get_agent(http_request)
    request_id = _request_id(http_request)
    history = [(turn.role, turn.content) for turn in request.conversation_history]

    try:
        reply = await asyncio.to_thread(ask, agent, request.message, history)
    except Exception as e:
        logger.exception("[%s] Error processing chat request", request_id)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e

    return ChatResponse(response=reply)


@router.get("/gyms", response_model=GymsResponse)
async def list_gyms(http_request: Request):
    """Every gym, normalized for display, with prices resolved.

    The gym and price tables are fetched concurrently.
    """
    airtable = _get_airtable(http_request)
    if airtable is None:
        logger.warning("GET /gyms without Airtable configuration; returning no gyms")
        return GymsResponse(gyms=[])

    try:
        gym_rows, price_rows = await asyncio.gather(
            asyncio.to_thread(airtable.fetch_table, config.GYMS_TABLE),
            asyncio.to_thread(airtable.fetch_table, config.PRICES_TABLE),
        )
        gyms = normalize_gyms(gym_rows, price_rows)
    except Exception as e:
        logger.exception("[%s] Error loading gyms", _request_id(http_request))
        raise HTTPException(status_code=500, detail="Failed to load gyms.") from e

    return GymsResponse(gyms=gyms)


@router.post("/waitlist", response_model=WaitlistResponse)
async def join_waitlist(request: WaitlistRequest, http_request: Request):
    email_error = validate_email(request.email)
    if email_error:
        raise HTTPException(status_code=400, detail=email_error)

    airtable = _get_airtable(http_request)
    if airtable is None:
        raise HTTPException(status_code=503, detail="The waitlist is not configured.")

    fields = {"Email": clean(request.email)}
    if clean(request.name):
        fields["Name"] = clean(request.name)

    try:
        await asyncio.to_thread(airtable.create_record, config.WAITLIST_TABLE, fields)
    except AirtableAPIError as e:
        logger.error("[%s] Waitlist signup failed: %s", _request_id(http_request), e)
        raise HTTPException(status_code=500, detail=_waitlist_error_detail(e)) from e

    logger.info("[%s] Waitlist signup recorded", _request_id(http_request))
    return WaitlistResponse(message="You're on the waitlist! We'll be in touch soon.")


@router.post("/record-booking", response_model=SuccessResponse)
async def record_booking(request: BookingRequest, http_request: Request):
    if not clean(request.name) or not clean(request.email):
        raise HTTPException(status_code=400, detail="Name and email are required")

    airtable = _get_airtable(http_request)
    if airtable is None:
        raise HTTPException(status_code=503, detail="Booking is not configured.")

    fields = {
        "Name": clean(request.name),
        "Email": clean(request.email),
        "Gym Name": clean(request.gym_name),
        "Date": clean(request.date),
        "Time": clean(request.time),
        "Training Type": clean(request.training_type),
        "Notes": clean(request.notes),
    }
    fields = {key: value for key, value in fields.items() if value}

    try:
        await asyncio.to_thread(airtable.create_record, config.BOOKINGS_TABLE, fields)
    except AirtableAPIError as e:
        logger.error("[%s] Booking record failed: %s", _request_id(http_request), e)
        raise HTTPException(status_code=500, detail="Failed to record booking.") from e

    return SuccessResponse()


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout(request: CheckoutRequest, http_request: Request):
    if request.price_type not in PRODUCTS:
        raise HTTPException(status_code=400, detail="Invalid price type")

    if not config.stripe_configured():
        raise HTTPException(status_code=503, detail="Payments are not configured.")

    try:
        url = await asyncio.to_thread(
            create_checkout_session, request.price_type, request.metadata,
        )
    except Exception as e:
        logger.exception("[%s] Stripe checkout failed", _request_id(http_request))
        raise HTTPException(
            status_code=500, detail="Could not start checkout. Please try again.",
        ) from e

    return CheckoutResponse(url=url)
