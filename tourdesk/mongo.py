"""
MongoDB-backed document store.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import ConflictError, UnexpectedError
from .queries import SortSpec
from .storage import BOOKINGS, SCHEMAS, TOURS, prepare_insert, prepare_update, utcnow

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(collection: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as exc:
        schema = SCHEMAS[collection]
        field_name = schema.unique[0] if schema.unique else None
        raise ConflictError(schema.conflict_message, field_name=field_name) from exc
    except PyMongoError as exc:
        raise UnexpectedError("Database operation failed", detail=str(exc)) from exc


def _object_id(doc_id: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(doc_id):
        return None
    return ObjectId(doc_id)


def _from_mongo(document: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if document is None:
        return None
    document = dict(document)
    document["id"] = str(document.pop("_id"))
    return document


class MongoDocumentStore:
    def __init__(
        self,
        uri: str,
        database: str,
        timeout_ms: int = 5000,
        client: Optional[MongoClient] = None,
    ) -> None:
        self._client = client or MongoClient(uri, tz_aware=True, serverSelectionTimeoutMS=timeout_ms)
        self._db = self._client[database]
        self._database_name = database

    def ping(self) -> None:
        with _translate_errors(TOURS):
            self._client.admin.command("ping")

    def ensure_indexes(self) -> None:
        with _translate_errors(TOURS):
            tours = self._db[TOURS]
            tours.create_index("title", unique=True)
            tours.create_index([("is_active", ASCENDING), ("display_order", ASCENDING)])
            tours.create_index([("category", ASCENDING), ("is_active", ASCENDING)])

            bookings = self._db[BOOKINGS]
            bookings.create_index([("email", ASCENDING), ("created_at", DESCENDING)])
            bookings.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
        logger.info("MongoDB indexes created", extra={"database": self._database_name})

    def insert(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        prepared = prepare_insert(SCHEMAS[collection], document)
        now = utcnow()
        stored = {**prepared, "created_at": now, "updated_at": now}
        with _translate_errors(collection):
            result = self._db[collection].insert_one(stored)
        stored["_id"] = result.inserted_id
        return _from_mongo(stored)

    def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        object_id = _object_id(doc_id)
        if object_id is None:
            return None
        with _translate_errors(collection):
            return _from_mongo(self._db[collection].find_one({"_id": object_id}))

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> Optional[dict[str, Any]]:
        prepared = prepare_update(SCHEMAS[collection], changes)
        object_id = _object_id(doc_id)
        if object_id is None:
            return None
        with _translate_errors(collection):
            document = self._db[collection].find_one_and_update(
                {"_id": object_id},
                {"$set": {**prepared, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        return _from_mongo(document)

    def delete(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        object_id = _object_id(doc_id)
        if object_id is None:
            return None
        with _translate_errors(collection):
            return _from_mongo(self._db[collection].find_one_and_delete({"_id": object_id}))

    def find(
        self,
        collection: str,
        query: dict[str, Any],
        sort: SortSpec,
        skip: int = 0,
        limit: int = 0,
    ) -> list[dict[str, Any]]:
        with _translate_errors(collection):
            cursor = self._db[collection].find(query)
            if sort:
                cursor = cursor.sort(sort)
            cursor = cursor.skip(skip).limit(limit)
            return [_from_mongo(document) for document in cursor]

    def count(self, collection: str, query: dict[str, Any]) -> int:
        with _translate_errors(collection):
            return self._db[collection].count_documents(query)

    def close(self) -> None:
        logger.info("Closing MongoDB connection...")
        self._client.close()
        logger.info("MongoDB connection closed")
