"""Stripe Checkout sessions for the two paid products.

Prices are fixed here rather than in the Stripe dashboard so the frontend
only has to send a product key (``priceType``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import stripe

from gymscout import config
from gymscout.services.metrics import timed_call

logger = logging.getLogger(__name__)

CURRENCY = "usd"


@dataclass(frozen=True)
class Product:
    name: str
    description: str
    unit_amount: int  # cents


PRODUCTS: dict[str, Product] = {
    "fighter-passport": Product(
        name="Fighter's Passport",
        description="Unlimited AI Finder, Black Book Access & Scam Filter",
        unit_amount=4700,
    ),
    "vip-concierge": Product(
        name="VIP Concierge",
        description="Fighter's Passport + Personal Booking Service",
        unit_amount=14700,
    ),
}


class UnknownPriceTypeError(ValueError):
    """Raised for a ``priceType`` that is not in :data:`PRODUCTS`."""


def line_item(price_type: str) -> dict[str, Any]:
    """Inline ``price_data`` line item for *price_type*."""
    product = PRODUCTS.get(price_type or "")
    if product is None:
        raise UnknownPriceTypeError(f"Invalid price type: {price_type!r}")
    return {
        "price_data": {
            "currency": CURRENCY,
            "product_data": {
                "name": product.name,
                "description": product.description,
            },
            "unit_amount": product.unit_amount,
        },
        "quantity": 1,
    }


def _clean_metadata(metadata: dict[str, Any] | None) -> dict[str, str]:
    """Stripe metadata values must be strings; drop empty ones."""
    if not metadata:
        return {}
    return {str(k): str(v) for k, v in metadata.items() if v is not None and v != ""}


def create_checkout_session(
    price_type: str,
    metadata: dict[str, Any] | None = None,
    *,
    api_key: str | None = None,
    client_url: str | None = None,
) -> str:
    """Create a one-off card payment session and return its hosted URL.

    The price type is validated before Stripe is contacted.
    """
    item = line_item(price_type)
    base = (client_url or config.CLIENT_URL).rstrip("/")

    with timed_call("stripe", "checkout.Session.create"):
        session = stripe.checkout.Session.create(
            api_key=api_key or config.STRIPE_SECRET_KEY,
            payment_method_types=["card"],
            line_items=[item],
            mode="payment",
            success_url=f"{base}/index.html?success=true",
            cancel_url=f"{base}/index.html?canceled=true",
            metadata={"priceType": price_type, **_clean_metadata(metadata)},
        )
    logger.info("Created Stripe checkout session %s for %s", session.id, price_type)
    return session.url
