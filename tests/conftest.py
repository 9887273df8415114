"""Shared test fixtures for the gym scout test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest

from gymscout.records import RawRecord


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    ``gymscout.config`` reads the environment at import time, so these must
    exist before any test module imports it.
    """
    os.environ.setdefault("LLM_PROVIDER", "google")
    os.environ.setdefault("GOOGLE_API_KEY", "test-google-key-123")
    os.environ.setdefault("AIRTABLE_API_KEY", "test-airtable-key-456")
    os.environ.setdefault("AIRTABLE_BASE_ID", "appTEST123")
    os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_789")
    os.environ.setdefault("AIRTABLE_CACHE_TTL_SECONDS", "0")


@pytest.fixture
def mock_airtable_response():
    """Factory fixture for creating mock Airtable API responses."""

    def _make(data: dict, status_code: int = 200):
        mock = MagicMock()
        mock.status_code = status_code
        mock.json.return_value = data
        mock.text = str(data)
        return mock

    return _make


@pytest.fixture
def gym_records() -> list[RawRecord]:
    """Three gym rows shaped like the production Gyms table."""
    return [
        RawRecord(
            id="recGYM001",
            fields={
                "Gym Name": "Sitjaopho",
                "Location": "Hua Hin",
                "Description": "Family-run camp near the beach.",
                "Overall Rating": 5,
                "Cleanliness Rating": 4,
                "Prices": ["recPRICE1", "recPRICE2", "recMISSING"],
                "Accommodation": True,
                "Air Conditioning": True,
                "WiFi": "Yes",
                "Photos": [{"url": "https://img.example/1.jpg", "id": "attABC"}],
            },
        ),
        RawRecord(
            id="recGYM002",
            fields={
                "Name": "Kiatsongkrit",
                "City": "Bangkok",
                "Atmosphere": ["Traditional", "Intense"],
                "Skill Level": ["Intermediate", "Advanced"],
                "Owner Name": "Kru Lek",
                "Price": "500 THB per session",
            },
        ),
        RawRecord(
            id="recGYM003",
            fields={
                "Gym Name": "Pinsinchai",
                "Price": "recSTRAY99",
                "Overall Rating": "five",
            },
        ),
    ]


@pytest.fixture
def price_records() -> list[RawRecord]:
    return [
        RawRecord(id="recPRICE1", fields={"Name": "Drop-in", "Price": 400}),
        RawRecord(id="recPRICE2", fields={"Item": "Monthly", "Cost": "9,000 THB"}),
    ]
