import logging
from typing import Optional, Union

from storage.exceptions import ValidationError
from storage.pagination import KeywordFilter, PageRequest, PageResult, Paginator
from storage.store import Store

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, str]


def _as_bytes(data: Optional[BytesLike]) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def set_value(store: Store, key: BytesLike, value: BytesLike) -> bytes:
    """
    Create or overwrite a key in a single write transaction.

    Args:
        store: The store handle
        key: The key to write (must be non-empty)
        value: The value to store (must be non-empty)

    Returns:
        The key that was written

    Raises:
        ValidationError: If key or value is empty
        StoreError: If the write transaction fails
    """
    key, value = _as_bytes(key), _as_bytes(value)
    if not key or not value:
        raise ValidationError("Key and value are required")

    with store.update() as txn:
        txn.set(key, value)

    logger.info(f"Set key {key!r} ({len(value)} bytes)")
    return key


def get_value(store: Store, key: BytesLike) -> bytes:
    """
    Read the value stored under ``key``.

    Raises:
        ValidationError: If key is empty
        KeyNotFoundError: If the key does not exist
        StoreError: If the read transaction fails
    """
    key = _as_bytes(key)
    if not key:
        raise ValidationError("Key is required")

    with store.view() as txn:
        return txn.get(key)


def delete_value(store: Store, key: BytesLike) -> bytes:
    """
    Delete ``key``. Deleting a key that does not exist also succeeds.

    Raises:
        ValidationError: If key is empty
        StoreError: If the write transaction fails
    """
    key = _as_bytes(key)
    if not key:
        raise ValidationError("Key is required")

    with store.update() as txn:
        txn.delete(key)

    logger.info(f"Deleted key {key!r}")
    return key


def list_entries(paginator: Paginator, page_request: PageRequest) -> PageResult:
    """Return one page of all entries in key order."""
    return paginator.paginate(page_request)


def search_entries(paginator: Paginator, keyword: Optional[str], page_request: PageRequest) -> PageResult:
    """
    Return one page of the entries whose key contains ``keyword``.

    Raises:
        ValidationError: If keyword is missing or empty
    """
    if not keyword:
        raise ValidationError("Keyword is required")
    return paginator.paginate(page_request, predicate=KeywordFilter(keyword))
