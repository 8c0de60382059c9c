from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, Optional

from bson import ObjectId

from .errors import ConflictError, FieldViolation, ValidationError
from .models import PLACEHOLDER_IMAGE_URL, BookingStatus
from .queries import SortSpec
from .validation import check_booking_document, check_tour_document

TOURS = "tours"
BOOKINGS = "bookings"


@dataclass(frozen=True)
class CollectionSchema:
    name: str
    check: Callable[..., list[FieldViolation]]
    defaults: dict[str, Any] = field(default_factory=dict)
    unique: tuple[str, ...] = ()
    conflict_message: str = "Duplicate value"


SCHEMAS: dict[str, CollectionSchema] = {
    TOURS: CollectionSchema(
        name=TOURS,
        check=check_tour_document,
        defaults={"image_url": PLACEHOLDER_IMAGE_URL, "display_order": 0, "is_active": True},
        unique=("title",),
        conflict_message="Tour title already exists",
    ),
    BOOKINGS: CollectionSchema(
        name=BOOKINGS,
        check=check_booking_document,
        defaults={"children": 0, "tour_id": "", "message": "", "status": BookingStatus.PENDING.value},
    ),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def prepare_insert(schema: CollectionSchema, document: dict[str, Any]) -> dict[str, Any]:
    prepared = {**schema.defaults, **{k: v for k, v in document.items() if v is not None}}
    violations = schema.check(prepared)
    if violations:
        raise ValidationError(violations)
    return prepared


def prepare_update(schema: CollectionSchema, changes: dict[str, Any]) -> dict[str, Any]:
    prepared = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
    violations = schema.check(prepared, partial=True)
    if violations:
        raise ValidationError(violations)
    return prepared


def matches(document: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
        elif isinstance(condition, dict):
            if not _matches_operators(document.get(key), condition):
                return False
        elif document.get(key) != condition:
            return False
    return True


def _matches_operators(value: Any, condition: dict[str, Any]) -> bool:
    for operator, operand in condition.items():
        if operator == "$options":
            continue
        if operator == "$regex":
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not isinstance(value, str) or re.search(operand, value, flags) is None:
                return False
        else:
            raise ValueError(f"unsupported query operator: {operator}")
    return True


def _sort_key(field_name: str) -> Callable[[dict[str, Any]], tuple]:
    # missing values sort first, like the document store does
    def key(document: dict[str, Any]) -> tuple:
        value = document.get(field_name)
        return (0,) if value is None else (1, value)

    return key


class InMemoryDocumentStore:
    """Thread-safe in-memory document store with per-collection schemas."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._lock = RLock()
        self._clock = clock
        self._collections: Dict[str, Dict[str, dict[str, Any]]] = {name: {} for name in SCHEMAS}
        self.closed = False

    def insert(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        schema = SCHEMAS[collection]
        prepared = prepare_insert(schema, document)
        with self._lock:
            self._ensure_unique(schema, prepared)
            now = self._clock()
            stored = {**prepared, "id": str(ObjectId()), "created_at": now, "updated_at": now}
            self._collections[collection][stored["id"]] = stored
            return copy.deepcopy(stored)

    def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            document = self._collections[collection].get(doc_id)
            return copy.deepcopy(document) if document else None

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> Optional[dict[str, Any]]:
        schema = SCHEMAS[collection]
        prepared = prepare_update(schema, changes)
        with self._lock:
            existing = self._collections[collection].get(doc_id)
            if existing is None:
                return None
            self._ensure_unique(schema, prepared, exclude_id=doc_id)
            updated = {**existing, **prepared, "updated_at": self._clock()}
            self._collections[collection][doc_id] = updated
            return copy.deepcopy(updated)

    def delete(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            return self._collections[collection].pop(doc_id, None)

    def find(
        self,
        collection: str,
        query: dict[str, Any],
        sort: SortSpec,
        skip: int = 0,
        limit: int = 0,
    ) -> list[dict[str, Any]]:
        with self._lock:
            documents = [doc for doc in self._collections[collection].values() if matches(doc, query)]
            documents = copy.deepcopy(documents)
        for field_name, direction in reversed(sort):
            documents.sort(key=_sort_key(field_name), reverse=direction < 0)
        end = skip + limit if limit else None
        return documents[skip:end]

    def count(self, collection: str, query: dict[str, Any]) -> int:
        with self._lock:
            return sum(1 for doc in self._collections[collection].values() if matches(doc, query))

    def ensure_indexes(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True

    def _ensure_unique(
        self,
        schema: CollectionSchema,
        document: dict[str, Any],
        exclude_id: Optional[str] = None,
    ) -> None:
        for field_name in schema.unique:
            if field_name not in document:
                continue
            for doc_id, other in self._collections[schema.name].items():
                if doc_id != exclude_id and other.get(field_name) == document[field_name]:
                    raise ConflictError(schema.conflict_message, field_name=field_name)
