"""
Field validation for tours and bookings.

Every validator is a pure function returning violations in rule order, so the
same checks run for form posts, JSON bodies and the storage boundary alike.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

import phonenumbers
from email_validator import EmailNotValidError, validate_email

from .errors import FieldViolation
from .models import BookingStatus, TourCategory, TourDuration

_INT_RE = re.compile(r"^[-+]?\d+$")

DURATIONS = [duration.value for duration in TourDuration]
CATEGORIES = [category.value for category in TourCategory]
BOOKING_STATUSES = [status.value for status in BookingStatus]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value.strip())
    return None


def as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def as_flag(value: Any) -> bool:
    """Form-style boolean: anything except an explicit "false" is true."""
    if isinstance(value, bool):
        return value
    if value is None:
        return True
    return _text(value).lower() != "false"


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_valid_phone(value: str, region: str = "US") -> bool:
    if not value:
        return False
    try:
        parsed = phonenumbers.parse(value, region)
    except phonenumbers.NumberParseException:
        return False
    return phonenumbers.is_possible_number(parsed)


def is_valid_email(value: str) -> bool:
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def check_travel_date(travel_date: datetime, today: Optional[date] = None) -> Optional[FieldViolation]:
    today = today or utc_today()
    if travel_date.astimezone(timezone.utc).date() < today:
        return FieldViolation(field="travelDate", msg="Travel date cannot be in the past", value=travel_date.isoformat())
    return None


def validate_tour_fields(raw: dict[str, Any]) -> tuple[dict[str, Any], list[FieldViolation]]:
    violations: list[FieldViolation] = []
    cleaned: dict[str, Any] = {}

    title = _text(raw.get("title"))
    if not 3 <= len(title) <= 100:
        violations.append(FieldViolation("title", "Title must be 3-100 characters", raw.get("title")))
    cleaned["title"] = title

    price = as_float(raw.get("price"))
    if price is None or price < 0:
        violations.append(FieldViolation("price", "Price must be a positive number", raw.get("price")))
    cleaned["price"] = price

    duration = raw.get("duration")
    if duration not in DURATIONS:
        violations.append(FieldViolation("duration", "Invalid duration", duration))
    cleaned["duration"] = duration

    category = raw.get("category")
    if category not in CATEGORIES:
        violations.append(FieldViolation("category", "Invalid category", category))
    cleaned["category"] = category

    description = _text(raw.get("description"))
    if not 10 <= len(description) <= 2000:
        violations.append(
            FieldViolation("description", "Description must be 10-2000 characters", raw.get("description"))
        )
    cleaned["description"] = description

    display_order = 0
    if not _is_blank(raw.get("displayOrder")):
        parsed_order = as_int(raw.get("displayOrder"))
        if parsed_order is None or parsed_order < 0:
            violations.append(
                FieldViolation("displayOrder", "Display order must be a positive integer", raw.get("displayOrder"))
            )
        else:
            display_order = parsed_order
    cleaned["display_order"] = display_order

    cleaned["is_active"] = as_flag(raw.get("isActive"))
    return cleaned, violations


def validate_booking_fields(
    raw: dict[str, Any],
    phone_region: str = "US",
) -> tuple[dict[str, Any], list[FieldViolation]]:
    violations: list[FieldViolation] = []
    cleaned: dict[str, Any] = {}

    name = _text(raw.get("name"))
    if not 2 <= len(name) <= 100:
        violations.append(FieldViolation("name", "Name must be 2-100 characters", raw.get("name")))
    cleaned["name"] = name

    phone = _text(raw.get("phone"))
    if not is_valid_phone(phone, phone_region):
        violations.append(FieldViolation("phone", "Invalid phone number", raw.get("phone")))
    cleaned["phone"] = phone

    email = _text(raw.get("email"))
    if not is_valid_email(email):
        violations.append(FieldViolation("email", "Invalid email address", raw.get("email")))
    cleaned["email"] = email.lower()

    adults = as_int(raw.get("adults"))
    if adults is None or not 1 <= adults <= 20:
        violations.append(FieldViolation("adults", "Adults must be between 1-20", raw.get("adults")))
    cleaned["adults"] = adults

    children: Optional[int] = 0
    if not _is_blank(raw.get("children")):
        children = as_int(raw.get("children"))
        if children is None or not 0 <= children <= 20:
            violations.append(FieldViolation("children", "Children must be between 0-20", raw.get("children")))
    cleaned["children"] = children

    travel_date = parse_iso_datetime(raw.get("travelDate"))
    if travel_date is None:
        violations.append(FieldViolation("travelDate", "Invalid date format", raw.get("travelDate")))
    cleaned["travel_date"] = travel_date

    confirm_trip = _text(raw.get("confirmTrip"))
    if not confirm_trip:
        violations.append(FieldViolation("confirmTrip", "Trip confirmation is required", raw.get("confirmTrip")))
    cleaned["confirm_trip"] = confirm_trip

    message = raw.get("message")
    if message is not None and len(str(message)) > 1000:
        violations.append(FieldViolation("message", "Message too long"))
    cleaned["message"] = _text(message)

    cleaned["tour_id"] = _text(raw.get("tourId"))
    return cleaned, violations


def check_tour_document(document: dict[str, Any], partial: bool = False) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    required = {
        "title": "Tour title is required",
        "price": "Tour price is required",
        "duration": "Tour duration is required",
        "category": "Tour category is required",
        "description": "Tour description is required",
        "image_url": "Tour image is required",
    }
    if not partial:
        for key, msg in required.items():
            if _is_blank(document.get(key)):
                violations.append(FieldViolation(_api_name(key), msg))
        if violations:
            return violations

    if "title" in document and len(document["title"]) > 100:
        violations.append(FieldViolation("title", "Tour title cannot exceed 100 characters"))
    if "price" in document:
        price = as_float(document["price"])
        if price is None or price < 0:
            violations.append(FieldViolation("price", "Price cannot be negative"))
    if "duration" in document and document["duration"] not in DURATIONS:
        violations.append(FieldViolation("duration", "Duration must be one of: " + ", ".join(DURATIONS)))
    if "category" in document and document["category"] not in CATEGORIES:
        violations.append(FieldViolation("category", "Category must be one of: " + ", ".join(CATEGORIES)))
    if "description" in document and len(document["description"]) > 2000:
        violations.append(FieldViolation("description", "Description cannot exceed 2000 characters"))
    if "display_order" in document:
        order = as_int(document["display_order"])
        if order is None or order < 0:
            violations.append(FieldViolation("displayOrder", "Display order cannot be negative"))
    if "is_active" in document and not isinstance(document["is_active"], bool):
        violations.append(FieldViolation("isActive", "isActive must be a boolean"))
    return violations


def check_booking_document(
    document: dict[str, Any],
    partial: bool = False,
    today: Optional[date] = None,
) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    if not partial:
        for key in ("name", "phone", "email", "adults", "children", "travel_date", "confirm_trip"):
            if _is_blank(document.get(key)):
                violations.append(FieldViolation(_api_name(key), f"{_api_name(key)} is required"))
        if violations:
            return violations

    if "adults" in document:
        adults = as_int(document["adults"])
        if adults is None or not 1 <= adults <= 20:
            violations.append(FieldViolation("adults", "Adults must be between 1-20"))
    if "children" in document:
        children = as_int(document["children"])
        if children is None or not 0 <= children <= 20:
            violations.append(FieldViolation("children", "Children must be between 0-20"))
    if "travel_date" in document:
        travel_date = document["travel_date"]
        if not isinstance(travel_date, datetime):
            violations.append(FieldViolation("travelDate", "Invalid date format"))
        else:
            violation = check_travel_date(travel_date, today)
            if violation:
                violations.append(violation)
    if "message" in document and document["message"] and len(document["message"]) > 1000:
        violations.append(FieldViolation("message", "Message too long"))
    if "status" in document and document["status"] not in BOOKING_STATUSES:
        violations.append(FieldViolation("status", "Invalid status", document["status"]))
    return violations


def _api_name(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)
