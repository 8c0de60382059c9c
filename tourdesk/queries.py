from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import ValidationError

ASCENDING = 1
DESCENDING = -1

TOUR_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "title": "title",
    "price": "price",
    "duration": "duration",
    "category": "category",
    "displayOrder": "display_order",
    "isActive": "is_active",
}

BOOKING_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "name": "name",
    "email": "email",
    "phone": "phone",
    "adults": "adults",
    "children": "children",
    "travelDate": "travel_date",
    "confirmTrip": "confirm_trip",
    "status": "status",
}

SortSpec = list[tuple[str, int]]


@dataclass
class PageRequest:
    page: int = 1
    limit: int = 50
    sort_by: str = "created_at"
    ascending: bool = False

    @classmethod
    def from_query(
        cls,
        *,
        page: int,
        limit: int,
        sort_by: Optional[str],
        sort_order: Optional[str],
        allowed: Mapping[str, str],
    ) -> "PageRequest":
        api_field = sort_by or "createdAt"
        if api_field not in allowed:
            raise ValidationError.single("sortBy", "unsupported sort field", api_field)
        return cls(page=page, limit=limit, sort_by=allowed[api_field], ascending=sort_order == "asc")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def sort(self) -> SortSpec:
        return [(self.sort_by, ASCENDING if self.ascending else DESCENDING)]


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, request: PageRequest, total: int) -> "Pagination":
        return cls(page=request.page, limit=request.limit, total=total, pages=math.ceil(total / request.limit))


@dataclass
class TourFilter:
    status: Optional[str] = None

    def to_query(self) -> dict[str, Any]:
        if self.status == "active":
            return {"is_active": True}
        if self.status == "inactive":
            return {"is_active": False}
        return {}


@dataclass
class BookingFilter:
    status: Optional[str] = None
    search: Optional[str] = None

    def to_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if self.status:
            query["status"] = self.status
        term = (self.search or "").strip()
        if term:
            pattern = {"$regex": re.escape(term), "$options": "i"}
            query["$or"] = [{"name": dict(pattern)}, {"email": dict(pattern)}]
        return query
