"""Tests for booking normalization and order notes.

Tests:
- Alias fallbacks and defaults for every normalized field
- Stringification of numbers, booleans and containers
- Totality on arbitrary JSON input (hypothesis)
- Order notes: priority list, truncation, empty dropping
"""

from __future__ import annotations

import math

from hypothesis import given, settings
from hypothesis import strategies as st

from schemas.booking import (
    COMPLEX_PLACEHOLDER,
    DEFAULT_ROOM_TYPE,
    MAX_NOTE_LENGTH,
    BookingRecord,
    build_order_notes,
    is_present,
    normalize_booking_data,
    parse_leading_int,
    safe_to_string,
)

FIELDS = set(BookingRecord.model_fields)

json_values = st.recursive(
    st.none()
    | st.booleans()
    | st.integers()
    | st.floats(allow_nan=True, allow_infinity=True)
    | st.text(max_size=20),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=10), children, max_size=4),
    max_leaves=20,
)

booking_keys = st.sampled_from([
    "name", "firstName", "lastName", "email", "phone", "roomType", "fromDate", "checkIn",
    "toDate", "checkOut", "guests", "adults", "children", "infants", "bookingId", "userId",
    "firestoreId", "roomPrice", "roomSubtotal", "roomTotal", "menuTotal", "totalAmount",
    "totalCalculated", "numberOfNights", "nights", "selectedItems",
])


# ── Examples ──────────────────────────────────────────────────────────────


class TestNormalizeExamples:

    def test_name_wins_over_parts_and_guests_are_summed(self):
        record = normalize_booking_data({
            "name": "Asha",
            "firstName": "A",
            "lastName": "B",
            "guests": None,
            "adults": "2",
            "children": "1",
        })
        assert record.name == "Asha"
        assert record.guests == "3"
        assert record.dataFormat == "simple"

    def test_empty_input_yields_defaults(self):
        record = normalize_booking_data({})
        assert record.name == ""
        assert record.email == ""
        assert record.roomType == DEFAULT_ROOM_TYPE
        assert record.guests == "0"
        assert record.adults == "1"
        assert record.children == "0"
        assert record.infants == "0"
        assert record.roomPrice == "0"
        assert record.roomSubtotal == "0"
        assert record.totalAmount == "0"
        assert record.numberOfNights == "1"
        assert record.selectedItemsCount == "0"
        assert record.rawSelectedItems == "[]"
        assert record.dataFormat == "complex"

    def test_none_input_yields_defaults(self):
        assert normalize_booking_data(None) == normalize_booking_data({})

    def test_primitive_input_treated_as_empty(self):
        for value in ("booking", 42, 3.5, True, ["a", "b"]):
            assert normalize_booking_data(value) == normalize_booking_data({})

    def test_name_from_first_and_last(self):
        record = normalize_booking_data({"firstName": "Ravi", "lastName": "Kumar"})
        assert record.name == "Ravi Kumar"
        assert record.dataFormat == "complex"

    def test_name_from_last_only_is_trimmed(self):
        assert normalize_booking_data({"lastName": "Kumar"}).name == "Kumar"

    def test_date_aliases(self):
        record = normalize_booking_data({"checkIn": "2025-01-15", "checkOut": "2025-01-17"})
        assert record.fromDate == "2025-01-15"
        assert record.toDate == "2025-01-17"

    def test_primary_date_beats_alias(self):
        record = normalize_booking_data({"fromDate": "2025-02-01", "checkIn": "2025-01-15"})
        assert record.fromDate == "2025-02-01"

    def test_user_id_chain(self):
        assert normalize_booking_data({"firestoreId": "fs1", "bookingId": "b1"}).userId == "fs1"
        assert normalize_booking_data({"bookingId": "b1"}).userId == "b1"
        assert normalize_booking_data({"userId": "u1", "firestoreId": "fs1"}).userId == "u1"

    def test_pricing_aliases(self):
        record = normalize_booking_data({"roomTotal": 4000, "totalCalculated": 4500.5, "nights": 2})
        assert record.roomSubtotal == "4000"
        assert record.totalAmount == "4500.5"
        assert record.numberOfNights == "2"

    def test_numbers_are_stringified(self):
        record = normalize_booking_data({"guests": 4, "roomPrice": 2500.0, "phone": 9876543210})
        assert record.guests == "4"
        assert record.roomPrice == "2500"
        assert record.phone == "9876543210"

    def test_zero_falls_back_to_default(self):
        record = normalize_booking_data({"adults": 0, "numberOfNights": 0})
        assert record.adults == "1"
        assert record.numberOfNights == "1"

    def test_guest_sum_parses_leading_integers(self):
        record = normalize_booking_data({"adults": "2 adults", "children": "x", "infants": 1})
        assert record.guests == "3"

    def test_selected_items(self):
        items = [{"id": 1, "qty": 2}, {"id": 2, "qty": 1}]
        record = normalize_booking_data({"selectedItems": items})
        assert record.selectedItemsCount == "2"
        assert record.rawSelectedItems == '[{"id":1,"qty":2},{"id":2,"qty":1}]'

    def test_selected_items_not_a_list(self):
        record = normalize_booking_data({"selectedItems": {"a": 1}})
        assert record.selectedItemsCount == "0"
        assert record.rawSelectedItems == '{"a":1}'

    def test_nested_objects_become_json(self):
        record = normalize_booking_data({"name": {"first": "Asha", "tags": [1, 2]}})
        assert record.name == '{"first":"Asha","tags":[1,2]}'

    def test_deeply_nested_input(self):
        deep: dict = {"v": 1}
        for _ in range(200):
            deep = {"n": deep}
        record = normalize_booking_data({"email": deep, "guests": [deep]})
        assert record.email.startswith('{"n":')
        assert set(record.model_dump()) == FIELDS

    def test_stamping_fields_are_blank(self):
        record = normalize_booking_data({"name": "Asha"})
        assert record.processedAt == ""
        assert record.paymentId == ""
        assert record.orderId == ""

    def test_deterministic(self):
        data = {"firstName": "A", "adults": "2", "selectedItems": [1, 2, 3]}
        assert normalize_booking_data(data) == normalize_booking_data(data)


# ── Helpers ───────────────────────────────────────────────────────────────


class TestSafeToString:

    def test_scalars(self):
        assert safe_to_string(None) == ""
        assert safe_to_string("x") == "x"
        assert safe_to_string(True) == "true"
        assert safe_to_string(False) == "false"
        assert safe_to_string(7) == "7"
        assert safe_to_string(7.0) == "7"
        assert safe_to_string(7.25) == "7.25"

    def test_non_finite_floats(self):
        assert safe_to_string(math.nan) == "NaN"
        assert safe_to_string(math.inf) == "Infinity"
        assert safe_to_string(-math.inf) == "-Infinity"

    def test_unserializable_container(self):
        assert safe_to_string({"bad": object()}) == COMPLEX_PLACEHOLDER

    def test_circular_container(self):
        loop: list = []
        loop.append(loop)
        assert safe_to_string(loop) == COMPLEX_PLACEHOLDER


class TestPresence:

    def test_absent_values(self):
        for value in (None, False, "", 0, 0.0, math.nan):
            assert is_present(value) is False

    def test_present_values(self):
        for value in ("0", " ", 1, -1, True, [], {}, 0.5):
            assert is_present(value) is True

    def test_parse_leading_int(self):
        assert parse_leading_int("12abc") == 12
        assert parse_leading_int(" -3") == -3
        assert parse_leading_int("abc") == 0
        assert parse_leading_int(2.9) == 2
        assert parse_leading_int(None) == 0
        assert parse_leading_int(True) == 0
        assert parse_leading_int({"a": 1}) == 0


# ── Totality ──────────────────────────────────────────────────────────────


class TestNormalizeTotality:

    @given(json_values)
    @settings(max_examples=200)
    def test_any_json_value(self, value):
        record = normalize_booking_data(value)
        dumped = record.model_dump()
        assert set(dumped) == FIELDS
        assert all(isinstance(v, str) for v in dumped.values())

    @given(st.dictionaries(booking_keys, json_values, max_size=12))
    @settings(max_examples=300)
    def test_booking_shaped_dicts(self, data):
        record = normalize_booking_data(data)
        assert all(isinstance(v, str) for v in record.model_dump().values())
        assert record.roomType != ""
        assert record.numberOfNights != ""
        assert record.dataFormat in ("simple", "complex")


# ── Order notes ───────────────────────────────────────────────────────────


class TestOrderNotes:

    def test_no_booking_data(self):
        for value in (None, False, "", 0):
            assert build_order_notes(value) == {}

    def test_empty_or_non_mapping_booking_data_gets_defaults(self):
        defaults = {
            "roomType": DEFAULT_ROOM_TYPE,
            "guests": "1",
            "nights": "1",
            "totalAmount": "0",
        }
        for value in ({}, "text", [], [1, 2], 7, True):
            assert build_order_notes(value) == defaults

    def test_defaults_fill_in(self):
        notes = build_order_notes({"email": "asha@example.com"})
        assert notes == {
            "email": "asha@example.com",
            "roomType": DEFAULT_ROOM_TYPE,
            "guests": "1",
            "nights": "1",
            "totalAmount": "0",
        }

    def test_fallbacks(self):
        notes = build_order_notes({
            "firstName": "Ravi",
            "lastName": "Kumar",
            "firestoreId": "fs-1",
            "checkIn": "2025-01-15",
            "checkOut": "2025-01-17",
            "adults": 2,
            "numberOfNights": 2,
            "totalCalculated": 9000,
        })
        assert notes["name"] == "Ravi Kumar"
        assert notes["userId"] == "fs-1"
        assert notes["fromDate"] == "2025-01-15"
        assert notes["toDate"] == "2025-01-17"
        assert notes["guests"] == "2"
        assert notes["nights"] == "2"
        assert notes["totalAmount"] == "9000"

    def test_values_truncated(self):
        notes = build_order_notes({"name": "x" * 120})
        assert len(notes["name"]) == MAX_NOTE_LENGTH

    def test_blank_values_dropped(self):
        notes = build_order_notes({"name": "   ", "phone": "", "email": None})
        assert "name" not in notes
        assert "phone" not in notes
        assert "email" not in notes

    @given(st.dictionaries(booking_keys, json_values, max_size=12))
    @settings(max_examples=200)
    def test_bounded_string_notes(self, data):
        notes = build_order_notes(data)
        assert len(notes) <= 15
        for key, value in notes.items():
            assert isinstance(key, str)
            assert isinstance(value, str)
            assert 0 < len(value) <= MAX_NOTE_LENGTH
            assert value.strip()
