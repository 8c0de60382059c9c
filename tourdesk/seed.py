"""
Initialise the configured store: create indexes and round-trip a dummy booking
so both collections exist before the first real request.
"""
from __future__ import annotations

import logging
import sys
from datetime import timedelta

from .config import get_settings
from .errors import AppError
from .main import create_store
from .models import BookingStatus
from .storage import BOOKINGS, utcnow

logger = logging.getLogger(__name__)


def dummy_booking() -> dict:
    return {
        "name": "Test User",
        "phone": "+14155552671",
        "email": "test.user@travelmail.com",
        "adults": 1,
        "children": 0,
        "travel_date": utcnow() + timedelta(days=7),
        "confirm_trip": "test trip",
        "tour_id": "",
        "message": "Dummy booking to create database",
        "status": BookingStatus.CONFIRMED.value,
    }


def seed() -> None:
    store = create_store(get_settings())
    try:
        booking = store.insert(BOOKINGS, dummy_booking())
        logger.info("Dummy booking saved, database and collections created", extra={"booking_id": booking["id"]})
        store.delete(BOOKINGS, booking["id"])
        logger.info("Dummy booking removed")
    finally:
        store.close()


def main() -> int:
    try:
        seed()
    except AppError as exc:
        logger.error("Seeding error", extra={"code": exc.code, "reason": exc.message})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
