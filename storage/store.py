"""
Ordered transactional store backed by the Django ORM.

Keys and values are opaque byte strings kept in the ``Entry`` table. SQLite
compares BLOBs with ``memcmp``, so ``ORDER BY key`` is byte-wise lexicographic
order and nothing above this module ever sorts.

Transactions:
- ``Store.view()`` opens a read transaction. With the WAL journal every read
  inside it sees the snapshot taken at its first statement, and it is always
  rolled back on exit.
- ``Store.update()`` opens a read-write transaction that commits on a clean
  exit. SQLite admits one writer at a time.

Any ``DatabaseError`` escaping a transaction is re-raised as ``StoreError``.
"""

import logging
from contextlib import closing, contextmanager
from typing import Iterator, Optional

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections, transaction

from storage.exceptions import KeyNotFoundError, StoreError
from storage.models import Entry

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_SIZE = 100


class Item:
    """
    A cursor position inside a read transaction.

    The key is always loaded. The value is copied out of the store only when
    ``value_copy()`` is called, unless the iteration prefetched it.
    """

    __slots__ = ("key", "_txn", "_value")

    def __init__(self, txn: "ReadTransaction", key: bytes, value: Optional[bytes] = None):
        self.key = key
        self._txn = txn
        self._value = value

    def value_copy(self) -> bytes:
        if self._value is None:
            self._value = self._txn.get(self.key)
        return self._value

    def __repr__(self) -> str:
        return f"Item({self.key!r})"


class ReadTransaction:
    """Read-only view over one snapshot of the key space."""

    def __init__(self, store: "Store"):
        self._store = store

    def _entries(self):
        return Entry.objects.using(self._store.using)

    def get(self, key: bytes) -> bytes:
        """
        Point lookup.

        Raises:
            KeyNotFoundError: If the key is not visible in this snapshot.
        """
        try:
            value = self._entries().values_list("value", flat=True).get(key=key)
        except Entry.DoesNotExist as exc:
            raise KeyNotFoundError() from exc
        return bytes(value)

    def iterate(
        self, prefetch_size: Optional[int] = None, prefetch_values: bool = False
    ) -> Iterator[Item]:
        """
        Forward cursor over every entry in ascending key order.

        Args:
            prefetch_size: Number of rows pulled from the database per batch.
                Defaults to the store's configured prefetch size.
            prefetch_values: Load values together with keys. When False only
                keys are read and ``Item.value_copy()`` fetches on demand.

        Yields:
            Item for each entry, lowest key first.
        """
        if prefetch_size is None:
            prefetch_size = self._store.prefetch_size

        queryset = self._entries().order_by("key")
        if prefetch_values:
            rows = queryset.values_list("key", "value").iterator(chunk_size=prefetch_size)
            with closing(rows):
                for key, value in rows:
                    yield Item(self, bytes(key), bytes(value))
        else:
            keys = queryset.values_list("key", flat=True).iterator(chunk_size=prefetch_size)
            with closing(keys):
                for key in keys:
                    yield Item(self, bytes(key))


class WriteTransaction(ReadTransaction):
    """Read-write transaction. Changes become visible on commit."""

    def set(self, key: bytes, value: bytes) -> None:
        # Update first so the write lock is taken by the first statement
        updated = self._entries().filter(key=key).update(value=value)
        if not updated:
            self._entries().create(key=key, value=value)

    def delete(self, key: bytes) -> None:
        self._entries().filter(key=key).delete()


class Store:
    """
    Handle on the ordered transactional store.

    Holds configuration only. Connections are per thread and owned by Django,
    so a single instance is shared by every request handler.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS, prefetch_size: int = DEFAULT_PREFETCH_SIZE):
        if prefetch_size < 1:
            raise ValueError("prefetch_size must be positive")
        self.using = using
        self.prefetch_size = prefetch_size

    @classmethod
    def from_settings(cls) -> "Store":
        conf = getattr(settings, "KV_STORE", {})
        return cls(
            using=conf.get("DATABASE", DEFAULT_DB_ALIAS),
            prefetch_size=int(conf.get("PREFETCH_SIZE", DEFAULT_PREFETCH_SIZE)),
        )

    @contextmanager
    def view(self) -> Iterator[ReadTransaction]:
        """Open a read transaction. It never commits."""
        try:
            with transaction.atomic(using=self.using):
                yield ReadTransaction(self)
                transaction.set_rollback(True, using=self.using)
        except DatabaseError as exc:
            logger.error(f"Read transaction failed on '{self.using}': {exc}")
            raise StoreError(str(exc)) from exc

    @contextmanager
    def update(self) -> Iterator[WriteTransaction]:
        """Open a read-write transaction, committed when the block exits cleanly."""
        try:
            with transaction.atomic(using=self.using):
                yield WriteTransaction(self)
        except DatabaseError as exc:
            logger.error(f"Write transaction failed on '{self.using}': {exc}")
            raise StoreError(str(exc)) from exc

    def close(self) -> None:
        """Close this thread's connection to the underlying database."""
        connections[self.using].close()
        logger.info(f"Store '{self.using}' closed")
