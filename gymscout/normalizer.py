"""Turn raw Airtable gym rows into display-ready gyms and grounding text.

Everything here is pure: the same rows always produce the same output and
nothing touches the network.  Two products come out of one set of rows:

* **gym views** - one dict per gym for the frontend.  All raw fields are
  kept, and derived fields (``name``, ``description``, ``rating``,
  ``price``...) are layered on top.
* **knowledge context** - a flat ``Gym: <name> | <field>: <value> | ...``
  text block that grounds the chat model.  Anything that could leak an
  Airtable record id is replaced with ``Contact for details``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from gymscout.records import (
    Absent,
    FieldValue,
    NestedList,
    NestedObject,
    RawRecord,
    Scalar,
    ScalarList,
    is_number,
    is_record_id,
)

# ── Field names in the Gyms table ────────────────────────────────────
NAME_FIELDS = ("Gym Name", "Name")
LOCATION_FIELDS = ("Location", "City")
ATMOSPHERE_FIELD = "Atmosphere"
SKILL_LEVEL_FIELD = "Skill Level"
OWNER_FIELD = "Owner Name"
TRAINER_EXPERIENCE_FIELD = "Trainer Experience"
TRAINING_FIELD = "Training"
ACCOMMODATION_FIELD = "Accommodation"
# field → how the amenity reads in a sentence
AMENITY_FIELDS = (
    ("Air Conditioning", "air conditioning"),
    ("WiFi", "WiFi"),
    ("Kitchen", "a shared kitchen"),
)
RATING_FIELDS = (
    "Overall Rating",
    "Cleanliness Rating",
    "Trainer Quality Rating",
    "Value for Money Rating",
    "Atmosphere Rating",
    "Facilities Rating",
)
# "Prices" links to the Prices table; "Price" is the older free-text column
PRICE_FIELDS = ("Prices", "Price")

# ── Field names in the Prices table ──────────────────────────────────
PRICE_LABEL_FIELDS = ("Name", "Item", "Package")
PRICE_COST_FIELDS = ("Price", "Cost")

# ── Fixed texts ──────────────────────────────────────────────────────
DEFAULT_RATING = 4.8
DEFAULT_ATMOSPHERE = "Authentic"
DEFAULT_SKILL_LEVEL = "all levels"
PRICE_PLACEHOLDER = "Contact for pricing"
REDACTED = "Contact for details"
TRAINING_FALLBACK = "Contact the gym for the training schedule."
ACCOMMODATION_UNKNOWN = "Accommodation details unknown - contact the gym directly."
ACCOMMODATION_NONE = "No on-site accommodation."

_YES = {"yes", "y", "true", "1", "available", "on-site", "onsite"}
_NO = {"no", "n", "false", "0", "none", "not available"}


# ── Small helpers ────────────────────────────────────────────────────


def _tags(value: FieldValue) -> list[str]:
    """Multi-select values as strings; a single value counts as one tag."""
    if isinstance(value, ScalarList):
        items = value.items
    elif isinstance(value, Scalar):
        items = (value.value,)
    else:
        return []
    return [str(item).strip() for item in items if str(item).strip() and not is_record_id(item)]


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return " ".join(str(value).split())


def parse_flag(value: FieldValue) -> bool | None:
    """Read a checkbox / yes-no column.  ``None`` means "can't tell"."""
    if not isinstance(value, Scalar):
        return None
    raw = value.value
    if isinstance(raw, bool):
        return raw
    if is_number(raw):
        return raw != 0
    text = str(raw).strip().lower()
    if text in _YES:
        return True
    if text in _NO:
        return False
    return None


def format_cost(cost: Any) -> str:
    """Render a price cell: numbers as Thai baht, anything else as text."""
    if is_number(cost):
        if float(cost).is_integer():
            return f"฿{int(cost):,}"
        return f"฿{cost:,.2f}"
    return _scalar_text(cost)


# ── Derived gym fields ───────────────────────────────────────────────


def gym_name(record: RawRecord) -> str | None:
    name = record.first(*NAME_FIELDS)
    return _scalar_text(name) if name is not None else None


def gym_location(record: RawRecord) -> str | None:
    location = record.first(*LOCATION_FIELDS)
    return _scalar_text(location) if location is not None else None


def _finite(value: Any) -> bool:
    if not is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def average_rating(record: RawRecord) -> float:
    """Mean of the numeric rating columns, rounded half-up to one decimal.

    Cells holding text, lists, or nothing are left out of both the sum and
    the count.
    """
    scores = []
    for name in RATING_FIELDS:
        value = record.value(name)
        if isinstance(value, Scalar) and _finite(value.value):
            scores.append(value.value)
    if not scores:
        return DEFAULT_RATING
    mean = sum(scores) / len(scores)
    return math.floor(mean * 10 + 0.5) / 10


def synthesize_description(record: RawRecord) -> str:
    """Build a description sentence from the gym's tag columns."""
    name = gym_name(record) or "This gym"
    location = gym_location(record)
    atmosphere = ", ".join(_tags(record.value(ATMOSPHERE_FIELD))) or DEFAULT_ATMOSPHERE
    levels = ", ".join(_tags(record.value(SKILL_LEVEL_FIELD))) or DEFAULT_SKILL_LEVEL

    where = f" in {location}" if location else ""
    sentence = f"{name}: {atmosphere} Muay Thai gym{where}, suited to {levels}."

    owner = _tags(record.value(OWNER_FIELD))
    if owner:
        sentence += f" Run by {', '.join(owner)}."
    experience = _tags(record.value(TRAINER_EXPERIENCE_FIELD))
    if experience:
        sentence += f" Trainer background: {', '.join(experience)}."
    return sentence


def describe(record: RawRecord) -> Any:
    """``Description``, else ``Notes``, else a synthesized sentence.

    Presence is literal: an empty ``Description`` is returned as-is.
    """
    for name in ("Description", "Notes"):
        if record.has(name):
            return record.fields[name]
    return synthesize_description(record)


def describe_accommodation(record: RawRecord) -> str:
    on_site = parse_flag(record.value(ACCOMMODATION_FIELD))
    if on_site is None:
        return ACCOMMODATION_UNKNOWN
    if not on_site:
        return ACCOMMODATION_NONE

    amenities = [
        phrase for column, phrase in AMENITY_FIELDS
        if parse_flag(record.value(column))
    ]
    if amenities:
        return f"On-site accommodation available with {', '.join(amenities)}."
    return "On-site accommodation available."


def describe_training(record: RawRecord) -> Any:
    if record.has(TRAINING_FIELD):
        return record.fields[TRAINING_FIELD]
    levels = _tags(record.value(SKILL_LEVEL_FIELD))
    if levels:
        return f"Classes for {', '.join(levels)}"
    return TRAINING_FALLBACK


# ── Prices ───────────────────────────────────────────────────────────


def build_price_lookup(price_records: Iterable[RawRecord]) -> dict[str, str]:
    """Map Prices-table record ids to "<label>: <cost>" strings."""
    lookup: dict[str, str] = {}
    for record in price_records:
        label = record.first(*PRICE_LABEL_FIELDS)
        cost = next(
            (record.fields[name] for name in PRICE_COST_FIELDS if record.has(name)),
            None,
        )
        parts = []
        if label is not None:
            parts.append(_scalar_text(label))
        if cost is not None:
            parts.append(format_cost(cost))
        if parts:
            lookup[record.id] = ": ".join(parts)
    return lookup


def _price_source(record: RawRecord) -> str | None:
    return next((name for name in PRICE_FIELDS if record.has(name)), None)


def resolve_price(record: RawRecord, lookup: dict[str, str]) -> list[str] | None:
    """Resolve the gym's price cell into display strings.

    Linked ids are looked up and silently dropped when unknown.  A bare id
    string becomes the placeholder.  A missing cell resolves to ``None``.
    """
    source = _price_source(record)
    if source is None:
        return None

    value = record.value(source)
    if isinstance(value, ScalarList):
        resolved = []
        for item in value.items:
            if is_record_id(item):
                if item in lookup:
                    resolved.append(lookup[item])
            elif str(item).strip():
                resolved.append(format_cost(item))
        return resolved
    if isinstance(value, Scalar):
        if is_record_id(value.value):
            return [PRICE_PLACEHOLDER]
        if not str(value.value).strip():
            return []
        return [format_cost(value.value)]
    return [PRICE_PLACEHOLDER]


# ── Gym views ────────────────────────────────────────────────────────


def gym_view(record: RawRecord, price_lookup: dict[str, str]) -> dict[str, Any]:
    """Project one row into the display object the frontend renders."""
    view: dict[str, Any] = dict(record.fields)
    view["id"] = record.id

    name = gym_name(record)
    if name is not None:
        view["name"] = name
    location = gym_location(record)
    if location is not None:
        view["location"] = location

    price = resolve_price(record, price_lookup)
    view.update(
        description=describe(record),
        accommodation=describe_accommodation(record),
        training=describe_training(record),
        rating=average_rating(record),
        price=price,
    )
    if price is not None:
        view["Prices"] = price
        for column in PRICE_FIELDS:
            if column in view:
                view[column] = price
    return view


def normalize_gyms(
    gym_records: Sequence[RawRecord],
    price_records: Iterable[RawRecord] = (),
) -> list[dict[str, Any]]:
    lookup = build_price_lookup(price_records)
    return [gym_view(record, lookup) for record in gym_records]


# ── Knowledge context ────────────────────────────────────────────────


@dataclass(frozen=True)
class KnowledgeContext:
    """Grounding text for the chat model plus the verified gym names."""

    text: str = ""
    gym_names: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.gym_names and not self.text


def render_value(value: FieldValue) -> str | None:
    """Knowledge-text rendering of one cell, or ``None`` to skip it."""
    if isinstance(value, Absent):
        return None
    if isinstance(value, (NestedObject, NestedList)):
        return REDACTED
    if isinstance(value, ScalarList):
        if value.has_record_ids:
            return REDACTED
        return ", ".join(_scalar_text(item) for item in value.items) or None
    if is_record_id(value.value):
        return REDACTED
    return _scalar_text(value.value) or None


def knowledge_line(record: RawRecord) -> str:
    parts = [f"Gym: {gym_name(record) or 'Unknown gym'}"]
    for name in record.fields:
        if name in NAME_FIELDS:
            continue
        text = render_value(record.value(name))
        if text is not None:
            parts.append(f"{name}: {text}")
    return " | ".join(parts)


def build_knowledge(gym_records: Sequence[RawRecord]) -> KnowledgeContext:
    names = [name for name in (gym_name(r) for r in gym_records) if name]
    text = "\n".join(knowledge_line(record) for record in gym_records)
    return KnowledgeContext(text=text, gym_names=names)


def build_gym_payload(
    gym_records: Sequence[RawRecord],
    price_records: Iterable[RawRecord] = (),
) -> tuple[list[dict[str, Any]], KnowledgeContext]:
    """Both products of one fetch: display views and grounding text."""
    return normalize_gyms(gym_records, price_records), build_knowledge(gym_records)
