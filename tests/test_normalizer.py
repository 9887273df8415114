"""Tests for gym normalization and the knowledge context."""

from __future__ import annotations

import pytest

from gymscout.normalizer import (
    ACCOMMODATION_NONE,
    ACCOMMODATION_UNKNOWN,
    DEFAULT_RATING,
    PRICE_PLACEHOLDER,
    REDACTED,
    TRAINING_FALLBACK,
    average_rating,
    build_gym_payload,
    build_knowledge,
    build_price_lookup,
    describe,
    describe_accommodation,
    describe_training,
    format_cost,
    gym_view,
    knowledge_line,
    normalize_gyms,
    parse_flag,
    resolve_price,
    synthesize_description,
)
from gymscout.records import RawRecord, to_field_value


def _rec(fields: dict, record_id: str = "recTEST") -> RawRecord:
    return RawRecord(id=record_id, fields=fields)


# ── Rating ───────────────────────────────────────────────────────────


class TestAverageRating:
    def test_mean_of_present_numeric_fields(self):
        record = _rec({"Overall Rating": 5, "Cleanliness Rating": 3})
        assert average_rating(record) == 4.0

    def test_rounds_to_one_decimal(self):
        record = _rec({"Overall Rating": 5, "Cleanliness Rating": 4, "Value for Money Rating": 4})
        assert average_rating(record) == 4.3

    def test_rounds_half_up(self):
        record = _rec({"Overall Rating": 4, "Facilities Rating": 4.5})
        assert average_rating(record) == 4.3

    def test_default_when_no_ratings(self):
        assert average_rating(_rec({"Gym Name": "Empty"})) == DEFAULT_RATING

    @pytest.mark.parametrize("bad", ["5", None, [5, 4], True, {"score": 5}])
    def test_non_numeric_values_are_excluded_not_coerced(self, bad):
        record = _rec({"Overall Rating": bad, "Cleanliness Rating": 3})
        assert average_rating(record) == 3.0

    def test_only_non_numeric_values_falls_back(self):
        record = _rec({"Overall Rating": "five", "Trainer Quality Rating": False})
        assert average_rating(record) == DEFAULT_RATING

    def test_huge_int_is_ignored(self):
        record = _rec({"Overall Rating": 10**400, "Cleanliness Rating": 4})
        assert average_rating(record) == 4.0

    def test_ignores_unrelated_numeric_fields(self):
        record = _rec({"Overall Rating": 4, "Years Open": 30})
        assert average_rating(record) == 4.0


# ── Description ──────────────────────────────────────────────────────


class TestDescription:
    def test_uses_description_when_present(self):
        record = _rec({"Description": "Great camp.", "Notes": "ignored"})
        assert describe(record) == "Great camp."

    def test_falls_back_to_notes(self):
        assert describe(_rec({"Notes": "Bring your own gloves."})) == "Bring your own gloves."

    def test_empty_description_counts_as_present(self):
        record = _rec({"Gym Name": "Quiet Gym", "Description": ""})
        assert describe(record) == ""

    def test_synthesizes_when_both_absent(self):
        record = _rec({
            "Gym Name": "Kiatsongkrit",
            "Location": "Bangkok",
            "Atmosphere": ["Traditional", "Intense"],
            "Skill Level": ["Intermediate", "Advanced"],
        })
        text = describe(record)
        assert "Kiatsongkrit" in text
        assert "Traditional, Intense" in text
        assert "Intermediate, Advanced" in text
        assert "Bangkok" in text

    def test_synthesis_uses_fallback_tags(self):
        text = synthesize_description(_rec({"Gym Name": "Plain Gym"}))
        assert "Plain Gym" in text
        assert "Authentic" in text
        assert "all levels" in text

    def test_synthesis_mentions_owner_and_trainer_background(self):
        record = _rec({
            "Gym Name": "Sor Vorapin",
            "Owner Name": "Kru Vorapin",
            "Trainer Experience": ["Ex-Lumpinee champions"],
        })
        text = synthesize_description(record)
        assert "Run by Kru Vorapin." in text
        assert "Ex-Lumpinee champions" in text

    def test_synthesis_is_deterministic(self):
        record = _rec({"Gym Name": "Same", "Atmosphere": ["Friendly"]})
        assert synthesize_description(record) == synthesize_description(record)


# ── Accommodation & training ─────────────────────────────────────────


class TestAccommodation:
    def test_on_site_with_amenities(self):
        record = _rec({"Accommodation": True, "Air Conditioning": True, "Kitchen": "yes"})
        assert describe_accommodation(record) == (
            "On-site accommodation available with air conditioning, a shared kitchen."
        )

    def test_on_site_without_amenities(self):
        assert describe_accommodation(_rec({"Accommodation": "Yes"})) == (
            "On-site accommodation available."
        )

    def test_explicit_no(self):
        assert describe_accommodation(_rec({"Accommodation": "No"})) == ACCOMMODATION_NONE

    def test_missing_is_unknown(self):
        assert describe_accommodation(_rec({})) == ACCOMMODATION_UNKNOWN

    def test_unreadable_is_unknown(self):
        assert describe_accommodation(_rec({"Accommodation": "Ask Kru"})) == ACCOMMODATION_UNKNOWN

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(True, True), (False, False), (1, True), (0, False), ("TRUE", True), ("n", False), ("maybe", None)],
    )
    def test_parse_flag(self, raw, expected):
        assert parse_flag(to_field_value(raw)) is expected


class TestTraining:
    def test_uses_training_text(self):
        assert describe_training(_rec({"Training": "2x daily"})) == "2x daily"

    def test_joins_skill_levels(self):
        record = _rec({"Skill Level": ["Beginner", "Pro"]})
        assert describe_training(record) == "Classes for Beginner, Pro"

    def test_fallback(self):
        assert describe_training(_rec({})) == TRAINING_FALLBACK


# ── Prices ───────────────────────────────────────────────────────────


class TestPrices:
    def test_lookup_formats_label_and_cost(self, price_records):
        lookup = build_price_lookup(price_records)
        assert lookup == {
            "recPRICE1": "Drop-in: ฿400",
            "recPRICE2": "Monthly: 9,000 THB",
        }

    def test_lookup_skips_rows_without_label_or_cost(self):
        assert build_price_lookup([_rec({"Notes": "?"}, "recEMPTY")]) == {}

    def test_resolves_ids_and_drops_unknown(self, price_records):
        lookup = build_price_lookup(price_records)
        record = _rec({"Prices": ["recPRICE1", "recNOPE", "recPRICE2"]})
        assert resolve_price(record, lookup) == ["Drop-in: ฿400", "Monthly: 9,000 THB"]

    def test_unknown_ids_never_render(self):
        resolved = resolve_price(_rec({"Prices": ["recGONE"]}), {})
        assert resolved == []

    def test_literal_string_passes_through(self):
        assert resolve_price(_rec({"Price": "500 THB"}), {}) == ["500 THB"]

    def test_id_like_string_becomes_placeholder(self):
        assert resolve_price(_rec({"Price": "recABC123"}), {"recABC123": "x"}) == [PRICE_PLACEHOLDER]

    def test_absent_price_is_none(self):
        assert resolve_price(_rec({}), {}) is None

    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_price_text_resolves_to_empty_list(self, blank):
        assert resolve_price(_rec({"Price": blank}), {}) == []

    def test_prices_column_wins_over_price(self):
        lookup = {"recP": "Drop-in: ฿400"}
        record = _rec({"Prices": ["recP"], "Price": "old text"})
        assert resolve_price(record, lookup) == ["Drop-in: ฿400"]

    @pytest.mark.parametrize(
        ("cost", "expected"),
        [(400, "฿400"), (12000, "฿12,000"), (1500.0, "฿1,500"), (99.5, "฿99.50"), ("Ask", "Ask")],
    )
    def test_format_cost(self, cost, expected):
        assert format_cost(cost) == expected


# ── Gym views ────────────────────────────────────────────────────────


class TestGymView:
    def test_full_view(self, gym_records, price_records):
        views = normalize_gyms(gym_records, price_records)
        first = views[0]
        assert first["id"] == "recGYM001"
        assert first["name"] == "Sitjaopho"
        assert first["location"] == "Hua Hin"
        assert first["rating"] == 4.5
        assert first["price"] == ["Drop-in: ฿400", "Monthly: 9,000 THB"]
        assert first["Prices"] == first["price"]
        assert first["description"] == "Family-run camp near the beach."
        assert first["accommodation"].startswith("On-site accommodation available with")

    def test_raw_fields_are_passed_through(self, gym_records, price_records):
        view = normalize_gyms(gym_records, price_records)[0]
        assert view["Photos"] == [{"url": "https://img.example/1.jpg", "id": "attABC"}]
        assert view["Cleanliness Rating"] == 4

    def test_name_and_location_fallback_columns(self, gym_records):
        view = normalize_gyms(gym_records)[1]
        assert view["name"] == "Kiatsongkrit"
        assert view["location"] == "Bangkok"
        assert view["price"] == ["500 THB per session"]
        assert view["Price"] == ["500 THB per session"]
        assert view["training"] == "Classes for Intermediate, Advanced"

    def test_missing_location_is_omitted(self, gym_records):
        view = normalize_gyms(gym_records)[2]
        assert "location" not in view
        assert view["price"] == [PRICE_PLACEHOLDER]
        assert view["rating"] == DEFAULT_RATING

    def test_missing_price_is_null(self):
        view = gym_view(_rec({"Gym Name": "No Price"}), {})
        assert "price" in view
        assert view["price"] is None

    def test_every_price_column_carries_the_resolved_list(self):
        lookup = {"recP": "Drop-in: ฿400"}
        view = gym_view(_rec({"Prices": ["recP"], "Price": "recSTRAY"}), lookup)
        assert view["price"] == ["Drop-in: ฿400"]
        assert view["Prices"] == ["Drop-in: ฿400"]
        assert view["Price"] == ["Drop-in: ฿400"]

    def test_single_price_column_also_sets_prices(self):
        view = gym_view(_rec({"Price": "500 THB"}), {})
        assert view["Prices"] == ["500 THB"]
        assert view["Price"] == ["500 THB"]

    def test_missing_name_does_not_raise(self):
        view = gym_view(_rec({}), {})
        assert "name" not in view
        assert view["id"] == "recTEST"


# ── Knowledge context ────────────────────────────────────────────────


class TestKnowledge:
    def test_line_starts_with_gym_name(self, gym_records):
        line = knowledge_line(gym_records[0])
        assert line.startswith("Gym: Sitjaopho | ")
        assert "Location: Hua Hin" in line
        assert "Gym Name:" not in line

    def test_redacts_ids_objects_and_object_lists(self, gym_records):
        knowledge = build_knowledge(gym_records)
        for leaked in ("recPRICE1", "recMISSING", "recSTRAY99", "recGYM001"):
            assert leaked not in knowledge.text
        assert "attABC" not in knowledge.text
        assert "https://img.example" not in knowledge.text
        assert f"Prices: {REDACTED}" in knowledge.text
        assert f"Photos: {REDACTED}" in knowledge.text
        assert f"Price: {REDACTED}" in knowledge.text

    def test_bare_object_is_redacted(self):
        line = knowledge_line(_rec({"Gym Name": "X", "Coach": {"id": "usr1", "name": "Kru"}}))
        assert line == f"Gym: X | Coach: {REDACTED}"

    def test_tags_are_joined_and_booleans_read_as_yes_no(self):
        line = knowledge_line(_rec({"Gym Name": "X", "Atmosphere": ["Chill", "Fun"], "WiFi": False}))
        assert "Atmosphere: Chill, Fun" in line
        assert "WiFi: No" in line

    def test_one_line_per_gym_and_names(self, gym_records):
        knowledge = build_knowledge(gym_records)
        assert len(knowledge.text.splitlines()) == 3
        assert knowledge.gym_names == ["Sitjaopho", "Kiatsongkrit", "Pinsinchai"]

    def test_empty_input(self):
        knowledge = build_knowledge([])
        assert knowledge.is_empty
        assert knowledge.text == ""

    def test_payload_returns_both_products(self, gym_records, price_records):
        views, knowledge = build_gym_payload(gym_records, price_records)
        assert len(views) == 3
        assert knowledge.gym_names[0] == views[0]["name"]
