from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

PLACEHOLDER_IMAGE_URL = "/images/_blank.png"


class TourDuration(str, Enum):
    ONE_DAY = "1 day"
    TWO_DAYS = "2 days"
    THREE_DAYS = "3 days"
    ONE_WEEK = "1 week"
    TWO_WEEKS = "2 weeks"


class TourCategory(str, Enum):
    ADVENTURE = "adventure"
    CULTURAL = "cultural"
    LUXURY = "luxury"
    FAMILY = "family"
    ROMANTIC = "romantic"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class Tour:
    id: str
    title: str
    price: float
    duration: TourDuration
    category: TourCategory
    description: str
    image_url: str
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @property
    def formatted_price(self) -> str:
        if float(self.price).is_integer():
            return f"${int(self.price):,}"
        return f"${round(self.price, 3):,}"

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Tour":
        return cls(
            id=document["id"],
            title=document["title"],
            price=float(document["price"]),
            duration=TourDuration(document["duration"]),
            category=TourCategory(document["category"]),
            description=document["description"],
            image_url=document.get("image_url") or PLACEHOLDER_IMAGE_URL,
            display_order=int(document.get("display_order", 0)),
            is_active=bool(document.get("is_active", True)),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )


@dataclass
class Booking:
    id: str
    name: str
    phone: str
    email: str
    adults: int
    children: int
    travel_date: datetime
    confirm_trip: str
    tour_id: str
    message: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Booking":
        return cls(
            id=document["id"],
            name=document["name"],
            phone=document["phone"],
            email=document["email"],
            adults=int(document["adults"]),
            children=int(document.get("children", 0)),
            travel_date=document["travel_date"],
            confirm_trip=document["confirm_trip"],
            tour_id=document.get("tour_id") or "",
            message=document.get("message") or "",
            status=BookingStatus(document.get("status", BookingStatus.PENDING.value)),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )
