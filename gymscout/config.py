"""Centralized configuration for the Muay Thai Gym Scout API.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/muay-thai-scout/<VARIABLE_NAME>``.

Every credential is optional.  A missing value resolves to ``None`` and the
feature that needs it answers with a "not configured" response instead of
the process refusing to start.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/muay-thai-scout/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _optional_env(name: str) -> str | None:
    """Return a config value from env-var or SSM, or ``None`` if unset."""
    # Placeholders copied from .env.example count as unset
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    logger.debug("Configuration %s is not set", name)
    return None


# ── LLM ─────────────────────────────────────────────────────────────
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "google").lower()

GOOGLE_API_KEY: str | None = _optional_env("GOOGLE_API_KEY")
GOOGLE_MODEL_NAME: str = os.getenv("GOOGLE_MODEL_NAME", "gemini-2.0-flash")

ANTHROPIC_API_KEY: str | None = _optional_env("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL_NAME: str = os.getenv("ANTHROPIC_MODEL_NAME", "claude-haiku-4-5")

CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "300"))
CHAT_HISTORY_TURNS: int = int(os.getenv("CHAT_HISTORY_TURNS", "10"))

# ── Airtable ────────────────────────────────────────────────────────
AIRTABLE_API_KEY: str | None = _optional_env("AIRTABLE_API_KEY")
AIRTABLE_BASE_ID: str | None = _optional_env("AIRTABLE_BASE_ID")
AIRTABLE_BASE_URL: str = "https://api.airtable.com/v0"

GYMS_TABLE: str = os.getenv("AIRTABLE_TABLE_NAME", "Gyms")
PRICES_TABLE: str = os.getenv("AIRTABLE_PRICES_TABLE", "Prices")
WAITLIST_TABLE: str = os.getenv("AIRTABLE_WAITLIST_TABLE", "Waitlist")
BOOKINGS_TABLE: str = os.getenv("AIRTABLE_BOOKINGS_TABLE", "Bookings")

AIRTABLE_MAX_RECORDS: int = int(os.getenv("AIRTABLE_MAX_RECORDS", "100"))
# 0 = always refetch
AIRTABLE_CACHE_TTL_SECONDS: float = float(os.getenv("AIRTABLE_CACHE_TTL_SECONDS", "0"))

# ── Stripe ──────────────────────────────────────────────────────────
STRIPE_SECRET_KEY: str | None = _optional_env("STRIPE_SECRET_KEY")
CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000").rstrip("/")

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "3000"))
CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")


# ── Feature checks ──────────────────────────────────────────────────

def llm_api_key() -> str | None:
    """Return the credential for the selected text-generation provider."""
    if LLM_PROVIDER == "anthropic":
        return ANTHROPIC_API_KEY
    return GOOGLE_API_KEY


def airtable_configured() -> bool:
    return bool(AIRTABLE_API_KEY and AIRTABLE_BASE_ID)


def chat_configured() -> bool:
    """The chat needs both a model credential and gym data to ground on."""
    return bool(llm_api_key()) and airtable_configured()


def stripe_configured() -> bool:
    return bool(STRIPE_SECRET_KEY)


def config_summary() -> dict[str, bool]:
    """Which integrations have credentials (never the values themselves)."""
    return {
        "google": bool(GOOGLE_API_KEY),
        "anthropic": bool(ANTHROPIC_API_KEY),
        "airtable": airtable_configured(),
        "stripe": stripe_configured(),
    }
