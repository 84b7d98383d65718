from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
from datetime import datetime, timezone

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.models.domain import Edition, CalendarEntry
from src.models.errors import PersistenceError
from src.repositories.connection import MongoConnectionManager

import logging

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EditionRepository(ABC):
    """Abstract base repository for daily editions, keyed by canonical date"""

    @abstractmethod
    def get_by_date(self, date: str) -> Optional[Edition]:
        """Retrieve the edition for one canonical date"""
        pass

    @abstractmethod
    def upsert(self, edition: Edition) -> bool:
        """Create or replace the edition for its date; True when it was created"""
        pass

    @abstractmethod
    def get_latest_before(self, date: str) -> Optional[Edition]:
        """Most recent edition strictly earlier than ``date``"""
        pass

    @abstractmethod
    def get_range(self, start: str, end: str) -> dict[str, CalendarEntry]:
        """Headline, label and photo of every edition in [start, end]"""
        pass

    @abstractmethod
    def count_editions(self) -> int:
        """Count total number of stored editions"""
        pass


class InMemoryEditionRepository(EditionRepository):
    """In-memory implementation of the edition repository"""

    def __init__(self, clock: Optional[Clock] = None):
        self._editions: dict[str, Edition] = {}
        self._clock = clock or _utc_now

    def get_by_date(self, date: str) -> Optional[Edition]:
        edition = self._editions.get(date)
        return edition.model_copy(deep=True) if edition else None

    def upsert(self, edition: Edition) -> bool:
        now = self._clock()
        existing = self._editions.get(edition.date)
        created = existing is None

        stored = edition.model_copy(deep=True)
        stored.created_at = now if created else existing.created_at
        stored.updated_at = now
        self._editions[edition.date] = stored

        logger.info(f"{'Created' if created else 'Updated'} edition {edition.date}, total: {len(self._editions)}")
        return created

    def get_latest_before(self, date: str) -> Optional[Edition]:
        earlier = [key for key in self._editions if key < date]
        if not earlier:
            return None
        return self.get_by_date(max(earlier))

    def get_range(self, start: str, end: str) -> dict[str, CalendarEntry]:
        return {
            key: CalendarEntry(
                date=key,
                headline=edition.headline,
                label=edition.photo.label,
                image_bytes=edition.photo.image_bytes
            )
            for key, edition in sorted(self._editions.items())
            if start <= key <= end
        }

    def count_editions(self) -> int:
        return len(self._editions)


class MongoEditionRepository(EditionRepository):
    """MongoDB implementation of the edition repository"""

    def __init__(self, connection: MongoConnectionManager, clock: Optional[Clock] = None):
        self.connection = connection
        self._clock = clock or _utc_now

    @property
    def collection(self):
        return self.connection.get_collection()

    def get_by_date(self, date: str) -> Optional[Edition]:
        try:
            document = self.collection.find_one({"date": date})
        except PyMongoError as e:
            logger.error(f"Failed to load edition {date}: {e}")
            raise PersistenceError("Failed to load edition", cause=e) from e

        return self._to_edition(document) if document else None

    def upsert(self, edition: Edition) -> bool:
        now = self._clock()
        document = self._to_document(edition)
        document["updatedAt"] = now

        try:
            result = self.collection.update_one(
                {"date": edition.date},
                {"$set": document, "$setOnInsert": {"createdAt": now}},
                upsert=True
            )
        except DuplicateKeyError as e:
            # A concurrent publish inserted the same date first
            logger.warning(f"Concurrent insert for {edition.date}, retrying as update: {e}")
            try:
                self.collection.update_one({"date": edition.date}, {"$set": document}, upsert=False)
            except PyMongoError as inner:
                raise PersistenceError("Failed to save edition", cause=inner) from inner
            return False
        except PyMongoError as e:
            logger.error(f"Failed to save edition {edition.date}: {e}")
            raise PersistenceError("Failed to save edition", cause=e) from e

        created = getattr(result, "upserted_id", None) is not None
        logger.info(f"{'Created' if created else 'Updated'} edition {edition.date} in MongoDB")
        return created

    def get_latest_before(self, date: str) -> Optional[Edition]:
        try:
            document = self.collection.find_one(
                {"date": {"$lt": date}},
                sort=[("date", DESCENDING)]
            )
        except PyMongoError as e:
            logger.error(f"Failed to find latest edition before {date}: {e}")
            raise PersistenceError("Failed to find latest edition", cause=e) from e

        return self._to_edition(document) if document else None

    def get_range(self, start: str, end: str) -> dict[str, CalendarEntry]:
        try:
            cursor = self.collection.find(
                {"date": {"$gte": start, "$lte": end}},
                {"_id": 0, "date": 1, "headline": 1, "photo": 1}
            )
            documents = list(cursor)
        except PyMongoError as e:
            logger.error(f"Failed to load editions between {start} and {end}: {e}")
            raise PersistenceError("Failed to load editions", cause=e) from e

        entries = {}
        for document in documents:
            photo = document.get("photo") or {}
            entries[document["date"]] = CalendarEntry(
                date=document["date"],
                headline=document.get("headline", ""),
                label=photo.get("label") or document["date"],
                image_bytes=photo.get("imageBlob")
            )
        return entries

    def count_editions(self) -> int:
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            raise PersistenceError("Failed to count editions", cause=e) from e

    def _to_document(self, edition: Edition) -> dict[str, Any]:
        return edition.model_dump(by_alias=True, exclude={"created_at", "updated_at"})

    def _to_edition(self, document: dict[str, Any]) -> Edition:
        document = dict(document)
        document.pop("_id", None)
        return Edition.model_validate(document)
