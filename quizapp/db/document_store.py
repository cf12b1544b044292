"""
Document Store
Generic get/put/add/delete/subscribe operations over MongoDB collections
FILE: quizapp/db/document_store.py

Collection paths look like "artifacts/{app_id}/users/{user_id}/quizzes".
The last path segment selects the Mongo collection and the full path is
kept on every document in the "_path" field, so one Mongo collection holds
the quizzes of every user while each path only sees its own documents.
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError

from quizapp.core.errors import DocumentStoreError, TransientStoreError

logger = logging.getLogger(__name__)

PATH_FIELD = "_path"
DEFAULT_POLL_INTERVAL = 2.0  # seconds


# ==================== COLLECTION PATHS ====================

def _user_scope(app_id: str, user_id: str) -> str:
    for name, value in (("app_id", app_id), ("user_id", user_id)):
        if not value or "/" in value:
            raise ValueError(f"Invalid {name} for collection path: {value!r}")
    return f"artifacts/{app_id}/users/{user_id}"


def quizzes_path(app_id: str, user_id: str) -> str:
    """Per-user quizzes collection"""
    return f"{_user_scope(app_id, user_id)}/quizzes"


def attempts_path(app_id: str, user_id: str) -> str:
    """Per-user quiz attempts collection"""
    return f"{_user_scope(app_id, user_id)}/quizAttempts"


def collection_name(path: str) -> str:
    """Mongo collection backing a collection path"""
    name = path.rstrip("/").rsplit("/", 1)[-1]
    if not name:
        raise ValueError(f"Invalid collection path: {path!r}")
    return name


def _wrap_error(operation: str, path: str, error: Exception) -> DocumentStoreError:
    if isinstance(error, ConnectionFailure):
        return TransientStoreError(f"{operation} failed on {path}: {error}")
    return DocumentStoreError(f"{operation} failed on {path}: {error}")


# ==================== SUBSCRIPTION ====================

class Subscription:
    """
    Cancellable lazy sequence of collection snapshots

    Usage:
        async with store.subscribe(path) as snapshots:
            async for snapshot in snapshots:
                ...

    The sequence never ends on its own; leaving the block or calling
    cancel() stops it.
    """

    def __init__(self, generator: AsyncIterator[List[Dict[str, Any]]]):
        self._generator = generator
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[Dict[str, Any]]:
        if self._cancelled:
            raise StopAsyncIteration
        return await self._generator.__anext__()

    async def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        await self._generator.aclose()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cancel()


# ==================== DOCUMENT STORE ====================

class DocumentStore:
    """
    MongoDB-backed document store

    Documents handed out by the store carry their id under "id" and never
    expose the internal "_id"/"_path" fields.
    """

    def __init__(
        self,
        db: Optional[AsyncIOMotorDatabase],
        poll_interval: float = DEFAULT_POLL_INTERVAL
    ):
        self.db = db
        self.poll_interval = poll_interval

    def _collection(self, path: str):
        return self.db[collection_name(path)]

    @staticmethod
    def _to_public(doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(doc)
        doc.pop(PATH_FIELD, None)
        doc["id"] = str(doc.pop("_id"))
        return doc

    @staticmethod
    def _to_stored(path: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = {k: v for k, v in document.items() if k not in ("id", "_id")}
        stored[PATH_FIELD] = path
        return stored

    async def get_document(self, path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch one document

        Returns:
            The document, or None when it does not exist
        """
        try:
            doc = await self._collection(path).find_one({"_id": doc_id, PATH_FIELD: path})
        except PyMongoError as e:
            logger.error(f"❌ Failed to get {path}/{doc_id}: {e}")
            raise _wrap_error("get", path, e)

        if not doc:
            logger.debug(f"Document not found: {path}/{doc_id}")
            return None
        return self._to_public(doc)

    async def put_document(
        self,
        path: str,
        doc_id: str,
        document: Dict[str, Any],
        merge: bool = False
    ) -> None:
        """
        Create or overwrite a document under a known id

        Args:
            merge: Update only the given fields instead of replacing the document
        """
        stored = self._to_stored(path, document)
        collection = self._collection(path)
        try:
            if merge:
                await collection.update_one(
                    {"_id": doc_id, PATH_FIELD: path},
                    {"$set": stored},
                    upsert=True
                )
            else:
                await collection.replace_one(
                    {"_id": doc_id, PATH_FIELD: path},
                    stored,
                    upsert=True
                )
        except PyMongoError as e:
            logger.error(f"❌ Failed to put {path}/{doc_id}: {e}")
            raise _wrap_error("put", path, e)

        logger.debug(f"Stored {path}/{doc_id} (merge={merge})")

    async def add_document(self, path: str, document: Dict[str, Any]) -> str:
        """
        Insert a document under a fresh id

        Returns:
            The new document id
        """
        doc_id = uuid4().hex
        stored = self._to_stored(path, document)
        stored["_id"] = doc_id
        try:
            await self._collection(path).insert_one(stored)
        except PyMongoError as e:
            logger.error(f"❌ Failed to add document to {path}: {e}")
            raise _wrap_error("add", path, e)

        logger.debug(f"Added {path}/{doc_id}")
        return doc_id

    async def delete_document(self, path: str, doc_id: str) -> bool:
        """
        Delete one document

        Returns:
            True if a document was deleted, False if none matched
        """
        try:
            result = await self._collection(path).delete_one({"_id": doc_id, PATH_FIELD: path})
        except PyMongoError as e:
            logger.error(f"❌ Failed to delete {path}/{doc_id}: {e}")
            raise _wrap_error("delete", path, e)

        return result.deleted_count > 0

    async def list_documents(
        self,
        path: str,
        query: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Return all documents of a collection path matching an equality query

        No ordering is guaranteed.
        """
        filters = dict(query or {})
        filters[PATH_FIELD] = path
        try:
            cursor = self._collection(path).find(filters)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"❌ Failed to list {path}: {e}")
            raise _wrap_error("list", path, e)

        return [self._to_public(doc) for doc in docs]

    def subscribe(
        self,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        poll_interval: Optional[float] = None
    ) -> Subscription:
        """
        Watch a collection path

        The first snapshot is produced immediately; later snapshots only
        when the matching documents changed. Snapshots are sorted by id.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        return Subscription(self._poll(path, query, interval))

    async def _poll(
        self,
        path: str,
        query: Optional[Dict[str, Any]],
        interval: float
    ) -> AsyncIterator[List[Dict[str, Any]]]:
        logger.info(f"👀 Subscribed to {path}")
        last_snapshot = None
        try:
            while True:
                snapshot = sorted(
                    await self.list_documents(path, query),
                    key=lambda doc: doc["id"]
                )
                if snapshot != last_snapshot:
                    last_snapshot = snapshot
                    yield snapshot
                await asyncio.sleep(interval)
        finally:
            logger.info(f"🔕 Unsubscribed from {path}")
