"""Pydantic schemas for the FastAPI endpoints.

Request fields the frontend may omit are optional here and checked in the
route handlers, so a missing field answers 400 with a readable message
rather than FastAPI's 422 validation payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HistoryTurn(BaseModel):
    """One prior message in the client-side conversation."""

    role: str = Field("", description="'user' or 'assistant'")
    content: str = Field("", max_length=4000)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = Field(None, max_length=2000, description="The user's message")
    conversation_history: list[HistoryTurn] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Prior turns, oldest first",
    )


class ChatResponse(BaseModel):
    response: str = Field(..., description="The assistant's reply, unmodified")


class MockChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    use_mock: bool = Field(True, alias="useMock")
    message: str


class GymsResponse(BaseModel):
    gyms: list[dict[str, Any]]


class StatusLegend(BaseModel):
    status: str
    color: str


class GymStatusResponse(BaseModel):
    time: str
    hour: int
    status: str
    color: str
    statuses: list[StatusLegend]


class HealthResponse(BaseModel):
    status: str = "ok"
    config: dict[str, bool]


class WaitlistRequest(BaseModel):
    email: str | None = None
    name: str | None = None


class WaitlistResponse(BaseModel):
    success: bool = True
    message: str


class BookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    email: str | None = None
    gym_name: str | None = Field(None, alias="gymName")
    date: str | None = None
    time: str | None = None
    training_type: str | None = Field(None, alias="trainingType")
    notes: str | None = None


class SuccessResponse(BaseModel):
    success: bool = True


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_type: str | None = Field(None, alias="priceType")
    metadata: dict[str, Any] | None = None


class CheckoutResponse(BaseModel):
    url: str
