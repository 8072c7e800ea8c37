import json
import logging
from contextlib import contextmanager

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import STORE_VALUE_LIMIT, BLOB_VALUE_LIMIT
from .database import SessionLocal
from .errors import PersistenceError
from .models import KeyValueEntry, BlobEntry

logger = logging.getLogger(__name__)


class StoreWriter:
    """Write handle bound to one session; used inside ``KeyValueStore.transaction``."""

    def __init__(self, session: Session, value_limit: int, blob_limit: int):
        self.session = session
        self.value_limit = value_limit
        self.blob_limit = blob_limit

    def set(self, key: str, value, allow_blob: bool = True) -> None:
        """Serialize ``value`` to JSON and stage it under ``key``.

        Args:
            key: logical storage key.
            value: JSON-serializable value.
            allow_blob: if False the value must fit the key-value table.

        Raises:
            PersistenceError: if the value exceeds the applicable size limit.
        """
        payload = json.dumps(value, ensure_ascii=False, default=str)
        size = len(payload.encode("utf-8"))
        if size <= self.value_limit:
            self.session.merge(KeyValueEntry(key=key, value=payload))
            self.session.execute(delete(BlobEntry).where(BlobEntry.key == key))
        elif allow_blob and size <= self.blob_limit:
            logger.debug("Value for %s is %d bytes, storing as blob", key, size)
            self.session.merge(BlobEntry(key=key, payload=payload.encode("utf-8"), size=size))
            self.session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        else:
            raise PersistenceError(f"Value for '{key}' is {size} bytes, which exceeds the storage limit")

    def remove(self, key: str) -> None:
        self.session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        self.session.execute(delete(BlobEntry).where(BlobEntry.key == key))


class KeyValueStore:
    """JSON key-value store on top of a SQLAlchemy session factory."""

    def __init__(self, session_factory=SessionLocal, value_limit: int = STORE_VALUE_LIMIT,
                 blob_limit: int = BLOB_VALUE_LIMIT):
        self.session_factory = session_factory
        self.value_limit = value_limit
        self.blob_limit = blob_limit

    def get(self, key: str, default=None):
        """Return the stored value for ``key`` or ``default`` when absent."""
        with self.session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry is not None:
                return json.loads(entry.value)
            blob = session.get(BlobEntry, key)
            if blob is not None:
                return json.loads(blob.payload.decode("utf-8"))
        return default

    @contextmanager
    def transaction(self):
        """Yield a ``StoreWriter``; every staged write commits together or not at all.

        Raises:
            PersistenceError: if any write is rejected or the commit fails.
        """
        session = self.session_factory()
        try:
            yield StoreWriter(session, self.value_limit, self.blob_limit)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Storage write failed: %s", exc)
            raise PersistenceError(f"Could not save data: {exc}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def set(self, key: str, value, allow_blob: bool = True) -> None:
        with self.transaction() as tx:
            tx.set(key, value, allow_blob=allow_blob)

    def remove(self, key: str) -> None:
        with self.transaction() as tx:
            tx.remove(key)

    def clear(self) -> None:
        with self.transaction() as tx:
            tx.session.execute(delete(KeyValueEntry))
            tx.session.execute(delete(BlobEntry))
