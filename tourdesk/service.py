from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from .errors import FieldViolation, NotFoundError, ValidationError
from .models import PLACEHOLDER_IMAGE_URL, Booking, BookingStatus, Tour
from .queries import ASCENDING, DESCENDING, BookingFilter, PageRequest, Pagination, SortSpec, TourFilter
from .storage import BOOKINGS, TOURS
from .uploads import MAX_IMAGE_SIZE, ImageUpload, LocalImageStorage, check_image
from .validation import BOOKING_STATUSES, check_travel_date, validate_booking_fields, validate_tour_fields

logger = logging.getLogger(__name__)

ACTIVE_TOURS_SORT: SortSpec = [("display_order", ASCENDING), ("created_at", DESCENDING)]


class DocumentStore(Protocol):
    def insert(self, collection: str, document: dict[str, Any]) -> dict[str, Any]: ...

    def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> Optional[dict[str, Any]]: ...

    def delete(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    def find(
        self, collection: str, query: dict[str, Any], sort: SortSpec, skip: int = 0, limit: int = 0
    ) -> list[dict[str, Any]]: ...

    def count(self, collection: str, query: dict[str, Any]) -> int: ...


def _fetch_page(
    store: DocumentStore,
    collection: str,
    query: dict[str, Any],
    page: PageRequest,
) -> tuple[list[dict[str, Any]], Pagination]:
    documents = store.find(collection, query, sort=page.sort, skip=page.skip, limit=page.limit)
    total = store.count(collection, query)
    return documents, Pagination.build(page, total)


class TourService:
    def __init__(
        self,
        store: DocumentStore,
        images: LocalImageStorage,
        max_image_size: int = MAX_IMAGE_SIZE,
    ) -> None:
        self._store = store
        self._images = images
        self._max_image_size = max_image_size

    def list_active_tours(self) -> list[Tour]:
        documents = self._store.find(TOURS, {"is_active": True}, sort=ACTIVE_TOURS_SORT)
        return [Tour.from_document(document) for document in documents]

    def get_tour(self, tour_id: str) -> Tour:
        document = self._store.get(TOURS, tour_id)
        if not document or not document.get("is_active"):
            raise NotFoundError("Tour not found")
        return Tour.from_document(document)

    def list_admin_tours(self, page: PageRequest, tour_filter: TourFilter) -> tuple[list[Tour], Pagination]:
        documents, pagination = _fetch_page(self._store, TOURS, tour_filter.to_query(), page)
        return [Tour.from_document(document) for document in documents], pagination

    def create_tour(self, fields: dict[str, Any], image: Optional[ImageUpload] = None) -> Tour:
        cleaned = self._validated(fields, image)
        cleaned["image_url"] = self._store_image(image) if image else PLACEHOLDER_IMAGE_URL
        tour = Tour.from_document(self._store.insert(TOURS, cleaned))
        logger.info("Tour created", extra={"tour_id": tour.id, "title": tour.title})
        return tour

    def update_tour(self, tour_id: str, fields: dict[str, Any], image: Optional[ImageUpload] = None) -> Tour:
        cleaned = self._validated(fields, image)
        if self._store.get(TOURS, tour_id) is None:
            raise NotFoundError("Tour not found")
        if image:
            # the previous image file stays on disk
            cleaned["image_url"] = self._store_image(image)
        document = self._store.update(TOURS, tour_id, cleaned)
        if document is None:
            raise NotFoundError("Tour not found")
        logger.info("Tour updated", extra={"tour_id": tour_id, "image_replaced": bool(image)})
        return Tour.from_document(document)

    def set_tour_status(self, tour_id: str, is_active: bool) -> Tour:
        document = self._store.update(TOURS, tour_id, {"is_active": is_active})
        if document is None:
            raise NotFoundError("Tour not found")
        logger.info("Tour status changed", extra={"tour_id": tour_id, "is_active": is_active})
        return Tour.from_document(document)

    def delete_tour(self, tour_id: str) -> None:
        if self._store.delete(TOURS, tour_id) is None:
            raise NotFoundError("Tour not found")
        logger.info("Tour deleted", extra={"tour_id": tour_id})

    def _validated(self, fields: dict[str, Any], image: Optional[ImageUpload]) -> dict[str, Any]:
        cleaned, violations = validate_tour_fields(fields)
        if violations:
            raise ValidationError(violations)
        if image:
            check_image(image, self._max_image_size)
        return cleaned

    def _store_image(self, image: ImageUpload) -> str:
        return self._images.store(image.data, image.filename)


class BookingService:
    def __init__(self, store: DocumentStore, phone_region: str = "US") -> None:
        self._store = store
        self._phone_region = phone_region

    def create_booking(self, fields: dict[str, Any]) -> Booking:
        cleaned, violations = validate_booking_fields(fields, phone_region=self._phone_region)
        if violations:
            raise ValidationError(violations)

        past_date = check_travel_date(cleaned["travel_date"])
        if past_date:
            raise ValidationError([past_date], message=past_date.msg)

        cleaned["status"] = BookingStatus.PENDING.value
        booking = Booking.from_document(self._store.insert(BOOKINGS, cleaned))
        logger.info(
            "New booking created",
            extra={"booking_id": booking.id, "email": booking.email, "confirm_trip": booking.confirm_trip},
        )
        return booking

    def list_bookings(self, page: PageRequest, booking_filter: BookingFilter) -> tuple[list[Booking], Pagination]:
        documents, pagination = _fetch_page(self._store, BOOKINGS, booking_filter.to_query(), page)
        return [Booking.from_document(document) for document in documents], pagination

    def get_booking(self, booking_id: str) -> Booking:
        document = self._store.get(BOOKINGS, booking_id)
        if not document:
            raise NotFoundError("Booking not found")
        return Booking.from_document(document)

    def update_booking_status(self, booking_id: str, status: Any) -> Booking:
        if status not in BOOKING_STATUSES:
            raise ValidationError([FieldViolation(field="status", msg="Invalid status", value=status)])
        document = self._store.update(BOOKINGS, booking_id, {"status": status})
        if document is None:
            raise NotFoundError("Booking not found")
        logger.info("Booking status changed", extra={"booking_id": booking_id, "status": status})
        return Booking.from_document(document)

    def delete_booking(self, booking_id: str) -> None:
        if self._store.delete(BOOKINGS, booking_id) is None:
            raise NotFoundError("Booking not found")
        logger.info("Booking deleted", extra={"booking_id": booking_id})
