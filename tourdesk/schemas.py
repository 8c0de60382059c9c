from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Booking, Tour
from .queries import Pagination


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TourResponse(CamelModel):
    record_id: str = Field(alias="_id")
    id: str
    title: str
    price: float
    formatted_price: str
    duration: str
    category: str
    description: str
    image_url: str
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, tour: Tour) -> "TourResponse":
        return cls(
            record_id=tour.id,
            id=tour.id,
            title=tour.title,
            price=tour.price,
            formatted_price=tour.formatted_price,
            duration=tour.duration.value,
            category=tour.category.value,
            description=tour.description,
            image_url=tour.image_url,
            display_order=tour.display_order,
            is_active=tour.is_active,
            created_at=tour.created_at,
            updated_at=tour.updated_at,
        )


class BookingResponse(CamelModel):
    record_id: str = Field(alias="_id")
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
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            record_id=booking.id,
            id=booking.id,
            name=booking.name,
            phone=booking.phone,
            email=booking.email,
            adults=booking.adults,
            children=booking.children,
            travel_date=booking.travel_date,
            confirm_trip=booking.confirm_trip,
            tour_id=booking.tour_id,
            message=booking.message,
            status=booking.status.value,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class BookingConfirmation(CamelModel):
    id: str
    name: str
    email: str
    created_at: datetime


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def from_domain(cls, pagination: Pagination) -> "PaginationResponse":
        return cls(page=pagination.page, limit=pagination.limit, total=pagination.total, pages=pagination.pages)


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str


class TourEnvelope(BaseModel):
    success: bool = True
    data: TourResponse


class TourMessageEnvelope(BaseModel):
    success: bool = True
    message: str
    data: TourResponse


class ToursEnvelope(BaseModel):
    success: bool = True
    data: List[TourResponse]


class ToursPageEnvelope(BaseModel):
    success: bool = True
    data: List[TourResponse]
    pagination: PaginationResponse


class BookingEnvelope(BaseModel):
    success: bool = True
    data: BookingResponse


class BookingMessageEnvelope(BaseModel):
    success: bool = True
    message: str
    data: BookingResponse


class BookingCreatedEnvelope(BaseModel):
    success: bool = True
    message: str
    booking: BookingConfirmation


class BookingsPageEnvelope(BaseModel):
    success: bool = True
    data: List[BookingResponse]
    pagination: PaginationResponse


class ErrorItem(BaseModel):
    field: Optional[str] = None
    msg: str
    value: Any = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[List[ErrorItem]] = None


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime


class TourStatusUpdate(CamelModel):
    is_active: bool


class BookingStatusUpdate(BaseModel):
    status: Any = None
