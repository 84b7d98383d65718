"""
MongoDB connection handling.

One ``MongoConnectionManager`` is built at startup and handed to the
repository. It connects lazily, verifies the server with a ping once, and
keeps the handle for later requests. A failed attempt is not cached, so the
next request tries again.
"""

import logging
import threading
from typing import Any, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from src.models.errors import PersistenceError

logger = logging.getLogger(__name__)


class MongoConnectionManager:
    """Lazily connected, cached MongoDB collection handle"""

    def __init__(
        self,
        uri: str,
        database: str,
        collection: str,
        server_selection_timeout_ms: int = 5000,
        client_factory: Any = MongoClient
    ):
        if not uri:
            raise ValueError("MongoDB URI is required")
        self.uri = uri
        self.database_name = database
        self.collection_name = collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self._client: Optional[MongoClient] = None
        self._collection: Optional[Collection] = None
        self._lock = threading.Lock()

    def get_collection(self) -> Collection:
        """Return the editions collection, connecting on first use"""
        if self._collection is not None:
            return self._collection

        with self._lock:
            if self._collection is not None:
                return self._collection

            client = None
            try:
                client = self._client_factory(
                    self.uri,
                    tz_aware=True,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms
                )
                client.admin.command('ping')

                collection = client[self.database_name][self.collection_name]
                collection.create_index([('date', ASCENDING)], unique=True, name='date_unique')

                self._client = client
                self._collection = collection
                logger.info(f"Connected to MongoDB database {self.database_name}")
                return collection

            except PyMongoError as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                if client is not None:
                    client.close()
                raise PersistenceError("Database connection failed", cause=e) from e

    def is_connected(self) -> bool:
        return self._collection is not None

    def close(self) -> None:
        """Close the client; a later request reconnects"""
        with self._lock:
            if self._client is not None:
                self._client.close()
                logger.info("Closed MongoDB connection")
            self._client = None
            self._collection = None
