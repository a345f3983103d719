# schemas/booking.py
# ============================================================================
# BOOKING PAYMENT RELAY: BOOKING NORMALIZATION
# ============================================================================
# Loose client booking payloads in, fixed string-valued records out
# ============================================================================

import json
import math
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel


DEFAULT_ROOM_TYPE = "Heritage Room"

# Razorpay accepts at most 15 notes per order
MAX_ORDER_NOTES = 15
MAX_NOTE_LENGTH = 50

COMPLEX_PLACEHOLDER = "[Complex Object]"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class BookingRecord(BaseModel):
    """Normalized booking. Every field is a string."""
    name: str = ""
    email: str = ""
    phone: str = ""

    roomType: str = DEFAULT_ROOM_TYPE
    fromDate: str = ""
    toDate: str = ""

    guests: str = "0"
    adults: str = "1"
    children: str = "0"
    infants: str = "0"

    bookingId: str = ""
    userId: str = ""

    roomPrice: str = "0"
    roomSubtotal: str = "0"
    menuTotal: str = "0"
    totalAmount: str = "0"
    numberOfNights: str = "1"

    selectedItemsCount: str = "0"
    rawSelectedItems: str = "[]"

    dataFormat: str = "complex"

    # Stamped after signature verification
    processedAt: str = ""
    paymentId: str = ""
    orderId: str = ""


def is_present(value: Any) -> bool:
    """True unless the value is null, false, an empty string, zero or NaN."""
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    return True


def _format_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def safe_to_string(value: Any) -> str:
    """Stringify any JSON-ish value without ever raising."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError, RecursionError):
            return COMPLEX_PLACEHOLDER
    try:
        return str(value)
    except Exception:
        return COMPLEX_PLACEHOLDER


def parse_leading_int(value: Any) -> int:
    """Leading integer of a scalar's string form, 0 when there is none."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(value)
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return 0
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def _first(data: Dict[str, Any], *keys: str, default: Any = "") -> Any:
    for key in keys:
        value = data.get(key)
        if is_present(value):
            return value
    return default


def _as_mapping(booking_data: Any) -> Dict[str, Any]:
    if isinstance(booking_data, dict):
        return booking_data
    return {}


def _full_name(data: Dict[str, Any]) -> str:
    if is_present(data.get("name")):
        return safe_to_string(data["name"])
    first = data.get("firstName")
    last = data.get("lastName")
    if is_present(first) or is_present(last):
        first_name = safe_to_string(first if is_present(first) else "")
        last_name = safe_to_string(last if is_present(last) else "")
        return f"{first_name} {last_name}".strip()
    return ""


def _guest_count(data: Dict[str, Any]) -> str:
    if is_present(data.get("guests")):
        return safe_to_string(data["guests"])
    total = sum(
        parse_leading_int(_first(data, key, default="0"))
        for key in ("adults", "children", "infants")
    )
    return str(total)


def normalize_booking_data(booking_data: Any) -> BookingRecord:
    """
    Flatten a client booking payload into a BookingRecord.

    Accepts anything the JSON decoder can produce. Absent or falsy fields
    fall back along their alias chain and then to a fixed default; nothing
    here raises.
    """
    data = _as_mapping(booking_data)
    selected_items = data.get("selectedItems")

    if is_present(selected_items) and isinstance(selected_items, list):
        selected_count = str(len(selected_items))
    else:
        selected_count = "0"

    return BookingRecord(
        name=_full_name(data),
        email=safe_to_string(_first(data, "email")),
        phone=safe_to_string(_first(data, "phone")),
        roomType=safe_to_string(_first(data, "roomType", default=DEFAULT_ROOM_TYPE)),
        fromDate=safe_to_string(_first(data, "fromDate", "checkIn")),
        toDate=safe_to_string(_first(data, "toDate", "checkOut")),
        guests=_guest_count(data),
        adults=safe_to_string(_first(data, "adults", default="1")),
        children=safe_to_string(_first(data, "children", default="0")),
        infants=safe_to_string(_first(data, "infants", default="0")),
        bookingId=safe_to_string(_first(data, "bookingId")),
        userId=safe_to_string(_first(data, "userId", "firestoreId", "bookingId")),
        roomPrice=safe_to_string(_first(data, "roomPrice", default="0")),
        roomSubtotal=safe_to_string(_first(data, "roomSubtotal", "roomTotal", default="0")),
        menuTotal=safe_to_string(_first(data, "menuTotal", default="0")),
        totalAmount=safe_to_string(_first(data, "totalAmount", "totalCalculated", default="0")),
        numberOfNights=safe_to_string(_first(data, "numberOfNights", "nights", default="1")),
        selectedItemsCount=selected_count,
        rawSelectedItems=safe_to_string(selected_items) if is_present(selected_items) else "[]",
        dataFormat="simple" if is_present(data.get("name")) else "complex",
    )


def build_order_notes(booking_data: Any) -> Dict[str, str]:
    """Annotation map attached to a gateway order (bounded, strings only)."""
    if not is_present(booking_data):
        return {}
    # {} or a bare string still gets the default notes
    data = _as_mapping(booking_data)

    first = data.get("firstName")
    last = data.get("lastName")
    joined_name = (
        f"{safe_to_string(first if is_present(first) else '')} "
        f"{safe_to_string(last if is_present(last) else '')}"
    ).strip()

    essential: Dict[str, Optional[Any]] = {
        "name": data["name"] if is_present(data.get("name")) else joined_name,
        "email": data.get("email"),
        "phone": data.get("phone"),
        "bookingId": data.get("bookingId"),
        "userId": _first(data, "userId", "firestoreId", default=None),
        "roomType": _first(data, "roomType", default=DEFAULT_ROOM_TYPE),
        "fromDate": _first(data, "fromDate", "checkIn", default=None),
        "toDate": _first(data, "toDate", "checkOut", default=None),
        "guests": _first(data, "guests", "adults", default="1"),
        "nights": _first(data, "nights", "numberOfNights", default="1"),
        "totalAmount": _first(data, "totalAmount", "totalCalculated", default="0"),
    }

    notes: Dict[str, str] = {}
    for key, value in essential.items():
        if len(notes) >= MAX_ORDER_NOTES:
            break
        if not is_present(value):
            continue
        text = safe_to_string(value)[:MAX_NOTE_LENGTH]
        if text.strip():
            notes[key] = text
    return notes
