"""Airtable row model.

Airtable enforces no schema on read: a field can be missing, a string, a
number, a checkbox, a list of tags or linked-record ids, or a list of
objects (attachments, collaborators).  ``to_field_value`` classifies a raw
JSON value into a small tagged union so the normalizer can branch on the
variant instead of probing types inline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Airtable record ids look like "recXXXXXXXXXXXXXX"
RECORD_ID_PREFIX = "rec"


def is_record_id(value: Any) -> bool:
    """Return ``True`` if *value* looks like an Airtable record id.

    This is a vendor-specific heuristic: linked-record fields come back as
    lists of ids with the ``rec`` prefix, and those ids must never reach an
    end user or the model prompt.
    """
    return isinstance(value, str) and value.startswith(RECORD_ID_PREFIX)


def is_number(value: Any) -> bool:
    """Numeric runtime type only.  Checkbox booleans are not numbers."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ── Field value variants ────────────────────────────────────────────


@dataclass(frozen=True)
class Scalar:
    value: str | int | float | bool


@dataclass(frozen=True)
class ScalarList:
    items: tuple[Any, ...]

    @property
    def has_record_ids(self) -> bool:
        return any(is_record_id(item) for item in self.items)


@dataclass(frozen=True)
class NestedObject:
    value: dict[str, Any]


@dataclass(frozen=True)
class NestedList:
    """A list holding at least one object (attachments, collaborators...)."""

    items: tuple[Any, ...]


@dataclass(frozen=True)
class Absent:
    pass


FieldValue = Scalar | ScalarList | NestedObject | NestedList | Absent

ABSENT = Absent()


def to_field_value(raw: Any) -> FieldValue:
    """Classify a raw Airtable JSON value."""
    if raw is None:
        return ABSENT
    if isinstance(raw, dict):
        return NestedObject(raw)
    if isinstance(raw, (list, tuple)):
        if any(isinstance(item, (dict, list, tuple)) for item in raw):
            return NestedList(tuple(raw))
        return ScalarList(tuple(raw))
    return Scalar(raw)


# ── Records ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RawRecord:
    """One Airtable row: an opaque id plus loosely-typed fields."""

    id: str
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> RawRecord:
        return cls(id=payload.get("id", ""), fields=dict(payload.get("fields") or {}))

    def has(self, name: str) -> bool:
        """Literal presence check (an empty string still counts)."""
        return name in self.fields and self.fields[name] is not None

    def value(self, name: str) -> FieldValue:
        return to_field_value(self.fields.get(name))

    def first(self, *names: str) -> Any | None:
        """Return the first truthy raw value among *names*."""
        for name in names:
            raw = self.fields.get(name)
            if raw:
                return raw
        return None
