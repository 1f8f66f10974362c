# ==============================================
# MongoClient
# ==============================================
#
# PURPOSE:
#   Document-store backend with the same row interface as
#   MySQLClient. Each table becomes a collection; the SQL unique
#   constraints become unique indexes, and integer ids come from
#   a "counters" collection.
#
# CLASS: MongoClient
# ------------------
#   Stateful: holds connection to MongoDB.
#
#   Constructor:
#   ------------
#   - __init__(host, port, database, user=None, password=None)
#
#   Methods:
#   --------
#   - connect() / disconnect()
#   - ensure_schema() -> None
#       Create the unique indexes listed in schema.UNIQUE_KEYS.
#   - insert / update / delete / fetch_one / fetch
#       Same contract as MySQLClient. None-valued fields are not
#       stored, so a None criterion matches the missing field.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MongoClient(...) as db:` usage.
#
# ==============================================

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo import MongoClient as PyMongoClient
from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure

from metadatamapping.exceptions import ValidationError
from metadatamapping.storage.schema import UNIQUE_KEYS

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = "counters"


class MongoClient:
    def __init__(self, host, port, database, user=None, password=None):
        # Store connection params. Don't connect yet.
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.client = None  # Will hold the actual MongoDB client connection

    def connect(self):
        try:
            if self.user and self.password:
                uri = f"mongodb://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            else:
                uri = f"mongodb://{self.host}:{self.port}/{self.database}"
            self.client = PyMongoClient(uri)
            # Test connection
            self.client.admin.command('ping')
            logger.info("Connected to MongoDB %s:%s/%s", self.host, self.port, self.database)
        except ConnectionFailure as e:
            logger.error("Could not connect to MongoDB: %s", e)
            raise
        except OperationFailure as e:
            logger.error("MongoDB authentication failed: %s", e)
            raise

    def disconnect(self):
        if self.client:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

    def _collection(self, collection_name):
        if not self.client:
            raise RuntimeError("Not connected to MongoDB")
        return self.client[self.database][collection_name]

    def ensure_schema(self) -> None:
        for collection_name, unique_keys in UNIQUE_KEYS.items():
            collection = self._collection(collection_name)
            collection.create_index([("id", ASCENDING)], unique=True)
            for key_fields, partial_filter in unique_keys:
                options: Dict[str, Any] = {"unique": True}
                if partial_filter:
                    options["partialFilterExpression"] = partial_filter
                collection.create_index(
                    [(key_field, ASCENDING) for key_field in key_fields], **options
                )
            logger.debug("Ensured indexes on %s", collection_name)

    def _next_id(self, collection_name: str) -> int:
        counter = self._collection(COUNTERS_COLLECTION).find_one_and_update(
            {"_id": collection_name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    @staticmethod
    def _document(row_id: int, row: Dict[str, Any]) -> Dict[str, Any]:
        document = {key: value for key, value in row.items() if value is not None}
        document["id"] = row_id
        return document

    def insert(self, collection_name: str, row: Dict[str, Any]) -> int:
        row_id = self._next_id(collection_name)
        try:
            self._collection(collection_name).insert_one(self._document(row_id, row))
        except DuplicateKeyError as e:
            logger.warning("MongoDB insert rejected: %s", str(e)[:200])
            raise ValidationError(f"Constraint violated: {e}") from e
        return row_id

    def update(self, collection_name: str, row_id: int, row: Dict[str, Any]) -> None:
        try:
            self._collection(collection_name).replace_one(
                {"id": row_id}, self._document(row_id, row)
            )
        except DuplicateKeyError as e:
            logger.warning("MongoDB update rejected: %s", str(e)[:200])
            raise ValidationError(f"Constraint violated: {e}") from e

    def delete(self, collection_name: str, row_id: int) -> None:
        self._collection(collection_name).delete_one({"id": row_id})

    def fetch_one(self, collection_name: str, criteria: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._collection(collection_name).find_one(criteria, {"_id": 0})

    def fetch(
        self,
        collection_name: str,
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[Sequence[Tuple[str, bool]]] = None,
        first_result: int = 0,
        max_results: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        cursor = self._collection(collection_name).find(criteria or {}, {"_id": 0})
        if order_by:
            cursor = cursor.sort(
                [(key, ASCENDING if ascending else DESCENDING) for key, ascending in order_by]
            )
        if first_result:
            cursor = cursor.skip(first_result)
        if max_results is not None:
            # limit(0) means "no limit" to MongoDB
            if max_results == 0:
                return []
            cursor = cursor.limit(max_results)
        return list(cursor)

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
