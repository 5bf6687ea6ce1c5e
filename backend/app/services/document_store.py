"""
Document store: load and upsert the single latest document of each kind.

DocumentStore is the port the routers depend on. SqlDocumentStore persists to
the documents table through SQLAlchemy; InMemoryDocumentStore keeps documents
in a dict and backs the tests and database-less local runs.

Saves are last-write-wins unless the caller passes ``expected_version``, in
which case a mismatch raises VersionConflictError and nothing is written.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from app.db import DocumentRecord, utcnow

logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    """The underlying storage failed."""


class VersionConflictError(Exception):
    """The stored version differs from the one the caller edited."""

    def __init__(self, kind: str, expected: Optional[int], actual: Optional[int]):
        self.kind = kind
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{kind} is at version {actual}, expected {expected}"
        )


@dataclass
class StoredDocument:
    """A document body with its bookkeeping."""
    kind: str
    body: Any
    version: int
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "version": self.version,
            "updatedAt": self.updated_at.isoformat(),
            "body": self.body,
        }


class DocumentStore(ABC):
    """Persistence port for the five document kinds."""

    @abstractmethod
    def load(self, kind: str) -> Optional[StoredDocument]:
        """Latest document of ``kind``, or None if nothing is stored."""

    @abstractmethod
    def save(self, kind: str, body: Any, expected_version: Optional[int] = None) -> StoredDocument:
        """
        Replace the document of ``kind`` with ``body``, inserting if absent.

        Raises:
            VersionConflictError: If ``expected_version`` is given and stale.
            DocumentStoreError: If the storage fails.
        """

    @abstractmethod
    def kinds(self) -> List[str]:
        """Kinds that currently have a stored document."""

    def is_available(self) -> bool:
        return True


def _check_version(kind: str, current: Optional[StoredDocument], expected_version: Optional[int]):
    if expected_version is None:
        return
    actual = current.version if current else 0
    if actual != expected_version:
        raise VersionConflictError(kind, expected_version, actual)


class InMemoryDocumentStore(DocumentStore):
    """Process-local store. Bodies are deep-copied in and out."""

    def __init__(self):
        self._documents: Dict[str, StoredDocument] = {}
        self._lock = threading.Lock()

    def load(self, kind: str) -> Optional[StoredDocument]:
        with self._lock:
            doc = self._documents.get(kind)
            return copy.deepcopy(doc) if doc else None

    def save(self, kind: str, body: Any, expected_version: Optional[int] = None) -> StoredDocument:
        with self._lock:
            current = self._documents.get(kind)
            _check_version(kind, current, expected_version)
            doc = StoredDocument(
                kind=kind,
                body=copy.deepcopy(body),
                version=(current.version + 1) if current else 1,
                updated_at=utcnow(),
            )
            self._documents[kind] = doc
            return copy.deepcopy(doc)

    def kinds(self) -> List[str]:
        with self._lock:
            return list(self._documents)


class SqlDocumentStore(DocumentStore):
    """
    Store backed by the documents table.

    Each call opens its own session from ``session_factory`` so the store can
    be shared by concurrent requests.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    @staticmethod
    def _to_stored(record: DocumentRecord) -> StoredDocument:
        return StoredDocument(
            kind=record.kind,
            body=record.body,
            version=record.version,
            updated_at=record.updated_at or record.created_at,
        )

    def load(self, kind: str) -> Optional[StoredDocument]:
        try:
            with self._session_factory() as db:
                record = self._find(db, kind)
                return self._to_stored(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {kind}: {e}")
            raise DocumentStoreError(f"Error reading {kind}") from e

    def _find(self, db, kind: str) -> Optional[DocumentRecord]:
        return db.query(DocumentRecord).filter(DocumentRecord.kind == kind).first()

    def save(self, kind: str, body: Any, expected_version: Optional[int] = None) -> StoredDocument:
        return self._save(kind, body, expected_version, retry_insert=True)

    def _save(self, kind: str, body: Any, expected_version: Optional[int], retry_insert: bool) -> StoredDocument:
        with self._session_factory() as db:
            inserting = False
            try:
                record = self._find(db, kind)
                _check_version(kind, self._to_stored(record) if record else None, expected_version)
                if record is None:
                    inserting = True
                    record = DocumentRecord(kind=kind, body=body)
                    db.add(record)
                else:
                    record.body = body
                    record.updated_at = utcnow()
                db.commit()
                db.refresh(record)
                logger.info(f"Saved {kind} at version {record.version}")
                return self._to_stored(record)
            except IntegrityError as e:
                db.rollback()
                if not inserting:
                    logger.error(f"Failed to save {kind}: {e}")
                    raise DocumentStoreError(f"Error saving {kind}") from e
                # Another writer created the row first
                if expected_version is not None or not retry_insert:
                    logger.warning(f"Concurrent first save of {kind} detected: {e}")
                    raise VersionConflictError(kind, expected_version, None) from e
                logger.info(f"Concurrent first save of {kind}, retrying as update")
            except StaleDataError as e:
                db.rollback()
                logger.warning(f"Concurrent save of {kind} detected: {e}")
                raise VersionConflictError(kind, expected_version, None) from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to save {kind}: {e}")
                raise DocumentStoreError(f"Error saving {kind}") from e
        return self._save(kind, body, expected_version, retry_insert=False)

    def kinds(self) -> List[str]:
        try:
            with self._session_factory() as db:
                return [row.kind for row in db.query(DocumentRecord.kind).order_by(DocumentRecord.id)]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list documents: {e}")
            raise DocumentStoreError("Error listing documents") from e

    def is_available(self) -> bool:
        """True if a trivial query succeeds."""
        try:
            with self._session_factory() as db:
                db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database status check failed: {e}")
            return False
