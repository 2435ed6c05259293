"""
Key-path document store used by the safety publisher, the location endpoints
and the SOS alerts.

Documents live at slash-joined paths made of collection/document pairs, e.g.
``userLocation/a@b.com/situation/SafeOrNot``. Backends support get, set (with
optional deep merge), listing a collection and subscribing to one document.
"""

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from app.models.document import StoredDocument

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
ChangeListener = Callable[[Optional[Document]], None]
ErrorListener = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

class DocumentStoreError(Exception):
    """Raised when a backend cannot read or write a document"""

class InvalidDocumentPath(DocumentStoreError, ValueError):
    pass

def _split(path: str) -> List[str]:
    segments = path.split("/") if path else []
    if not segments or any(not segment for segment in segments):
        raise InvalidDocumentPath(f"Empty segment in path {path!r}")
    return segments

def document_path(*segments: str) -> str:
    """Join segments into a document path (even number of segments)"""
    for segment in segments:
        if not segment or "/" in segment:
            raise InvalidDocumentPath(f"Invalid path segment {segment!r}")
    path = "/".join(segments)
    validate_document_path(path)
    return path

def validate_document_path(path: str) -> List[str]:
    segments = _split(path)
    if len(segments) % 2:
        raise InvalidDocumentPath(f"{path!r} is a collection path, not a document path")
    return segments

def validate_collection_path(path: str) -> List[str]:
    segments = _split(path)
    if not len(segments) % 2:
        raise InvalidDocumentPath(f"{path!r} is a document path, not a collection path")
    return segments

def parent_collection(path: str) -> str:
    return "/".join(validate_document_path(path)[:-1])

def deep_merge(existing: Document, update: Document) -> Document:
    """Merge update into a copy of existing; nested dicts are merged, not replaced"""
    merged = copy.deepcopy(existing)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged

class _Subscription:
    def __init__(self, on_change: ChangeListener, on_error: Optional[ErrorListener]):
        self.on_change = on_change
        self.on_error = on_error

class DocumentStore(ABC):
    """Abstract document store with in-process change subscriptions"""

    def __init__(self):
        self._subscriptions: Dict[str, List[_Subscription]] = {}

    @abstractmethod
    async def get(self, path: str) -> Optional[Document]:
        pass

    @abstractmethod
    async def _write(self, path: str, value: Document, merge: bool) -> Document:
        """Persist the document and return its full new contents"""

    @abstractmethod
    async def list_documents(self, collection_path: str) -> Dict[str, Document]:
        pass

    async def set(self, path: str, value: Document, merge: bool = False) -> None:
        """
        Write a document

        Args:
            path: Document path
            value: Fields to write
            merge: Keep existing fields not present in value
        """
        validate_document_path(path)
        if not isinstance(value, dict):
            raise DocumentStoreError(f"Document at {path} must be a mapping")

        stored = await self._write(path, value, merge)
        self._notify(path, stored)

    async def subscribe(
        self,
        path: str,
        on_change: ChangeListener,
        on_error: Optional[ErrorListener] = None
    ) -> Unsubscribe:
        """
        Listen to one document. The current value (or None) is delivered
        immediately, then every later write.
        """
        validate_document_path(path)
        subscription = _Subscription(on_change, on_error)
        self._subscriptions.setdefault(path, []).append(subscription)

        try:
            current = await self.get(path)
        except Exception as e:
            self._deliver_error(path, subscription, e)
        else:
            self._deliver(path, subscription, current)

        def unsubscribe():
            listeners = self._subscriptions.get(path, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscriptions.pop(path, None)

        return unsubscribe

    def subscriber_count(self, path: str) -> int:
        return len(self._subscriptions.get(path, []))

    def _notify(self, path: str, data: Optional[Document]):
        for subscription in list(self._subscriptions.get(path, [])):
            self._deliver(path, subscription, data)

    def _deliver(self, path: str, subscription: _Subscription, data: Optional[Document]):
        try:
            subscription.on_change(copy.deepcopy(data))
        except Exception as e:
            self._deliver_error(path, subscription, e)

    def _deliver_error(self, path: str, subscription: _Subscription, error: Exception):
        logger.error(f"Subscriber for {path} failed: {error}")
        if subscription.on_error is None:
            return
        try:
            subscription.on_error(error)
        except Exception as e:
            logger.error(f"Error handler for {path} failed: {e}")

class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store for tests and single-process deployments"""

    def __init__(self, initial: Optional[Dict[str, Document]] = None):
        super().__init__()
        self._documents: Dict[str, Document] = {}
        for path, data in (initial or {}).items():
            validate_document_path(path)
            self._documents[path] = copy.deepcopy(data)

    async def get(self, path: str) -> Optional[Document]:
        validate_document_path(path)
        data = self._documents.get(path)
        return copy.deepcopy(data) if data is not None else None

    async def _write(self, path: str, value: Document, merge: bool) -> Document:
        existing = self._documents.get(path)
        if merge and existing is not None:
            stored = deep_merge(existing, value)
        else:
            stored = copy.deepcopy(value)
        self._documents[path] = stored
        return copy.deepcopy(stored)

    async def list_documents(self, collection_path: str) -> Dict[str, Document]:
        validate_collection_path(collection_path)
        prefix = collection_path + "/"
        return {
            path[len(prefix):]: copy.deepcopy(data)
            for path, data in self._documents.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        }

class SQLDocumentStore(DocumentStore):
    """Store backed by the StoredDocument table"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self.session_factory = session_factory

    async def get(self, path: str) -> Optional[Document]:
        validate_document_path(path)
        try:
            async with self.session_factory() as session:
                document = await session.get(StoredDocument, path)
                return copy.deepcopy(document.data) if document else None
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to read {path}: {e}") from e

    async def _write(self, path: str, value: Document, merge: bool) -> Document:
        try:
            async with self.session_factory() as session:
                document = await session.get(StoredDocument, path)

                if document is None:
                    document = StoredDocument(
                        path=path,
                        parent=parent_collection(path),
                        data=copy.deepcopy(value)
                    )
                else:
                    # Assign a new dict so the JSON column is flagged dirty
                    document.data = deep_merge(document.data or {}, value) if merge else copy.deepcopy(value)
                    document.updated_at = datetime.now(timezone.utc)

                session.add(document)
                await session.commit()
                return copy.deepcopy(document.data)
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to write {path}: {e}") from e

    async def list_documents(self, collection_path: str) -> Dict[str, Document]:
        validate_collection_path(collection_path)
        prefix = collection_path + "/"
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(StoredDocument).where(StoredDocument.parent == collection_path)
                )
                return {
                    document.path[len(prefix):]: copy.deepcopy(document.data)
                    for document in result.scalars().all()
                }
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to list {collection_path}: {e}") from e
