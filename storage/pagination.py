"""
Enumeration and pagination over the ordered key space.

Listing and search share one pipeline:

    enumerate_entries(txn)  ->  KeywordFilter (search only)  ->  Paginator

The paginator runs two passes over the (filtered) sequence: a count pass that
only looks at keys, and a fetch pass that skips ``offset`` matches and copies
values for at most ``page_size`` of them. Every call scans from the lowest
key, so cost is linear in the size of the key space.
"""

import logging
import re
from contextlib import closing
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional

from django.conf import settings

from storage.store import Item, ReadTransaction, Store

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

SNAPSHOT_SINGLE = "single"
SNAPSHOT_SPLIT = "split"
SNAPSHOT_MODES = (SNAPSHOT_SINGLE, SNAPSHOT_SPLIT)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _positive_int(raw, default: int) -> int:
    """Parse ``raw`` as a positive integer, falling back to ``default``."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        number = raw
    elif isinstance(raw, str) and _INTEGER_RE.fullmatch(raw):
        try:
            number = int(raw)
        except ValueError:
            # More digits than int() will convert
            return default
    else:
        return default
    return number if number >= 1 else default


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_params(cls, page=None, page_size=None) -> "PageRequest":
        """
        Build a page request from raw query values.

        Missing, non-numeric, zero and negative values fall back to the
        defaults (page 1, page size 10). Page size has no upper bound.
        """
        return cls(
            page=_positive_int(page, DEFAULT_PAGE),
            page_size=_positive_int(page_size, DEFAULT_PAGE_SIZE),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class KeyValue:
    key: bytes
    value: bytes


@dataclass
class PageResult:
    """
    One window of matching entries.

    ``total`` counts every match, not just the window, so an empty ``items``
    with ``total > 0`` means the request ran past the last page.
    """

    page: int
    page_size: int
    total: int = 0
    items: List[KeyValue] = field(default_factory=list)


def enumerate_entries(txn: ReadTransaction, prefetch_size: Optional[int] = None) -> Iterator[Item]:
    """
    Lazily walk every entry visible to ``txn``, lowest key first.

    Keys are pulled from the store in batches of ``prefetch_size``; values stay
    in the store until ``Item.value_copy()`` is called. The iterator cannot be
    rewound: call again for a new cursor, or open a new transaction for a new
    snapshot.
    """
    return txn.iterate(prefetch_size=prefetch_size)


class KeywordFilter:
    """Keep items whose key contains ``keyword`` (byte-wise, case-sensitive)."""

    def __init__(self, keyword: str):
        if not keyword:
            raise ValueError("keyword must be non-empty")
        self.keyword = keyword
        self._needle = keyword.encode("utf-8")

    def matches(self, key: bytes) -> bool:
        return self._needle in key

    def __call__(self, items: Iterable[Item]) -> Iterator[Item]:
        for item in items:
            if self.matches(item.key):
                yield item


class Paginator:
    """
    Turn a (possibly filtered) enumeration into a ``PageResult``.

    ``snapshot_mode`` decides how many read transactions a page costs:

    - ``"single"``: the count pass and the fetch pass use two cursors inside
      one read transaction, so ``total`` and ``items`` describe the same
      snapshot.
    - ``"split"``: each pass opens its own read transaction. A write
      committed between the passes can make ``total`` disagree with
      ``items``.
    """

    def __init__(self, store: Store, snapshot_mode: str = SNAPSHOT_SINGLE):
        if snapshot_mode not in SNAPSHOT_MODES:
            raise ValueError(
                f"Unknown snapshot mode {snapshot_mode!r}, expected one of {SNAPSHOT_MODES}"
            )
        self.store = store
        self.snapshot_mode = snapshot_mode

    @classmethod
    def from_settings(cls, store: Store) -> "Paginator":
        conf = getattr(settings, "KV_STORE", {})
        return cls(store, snapshot_mode=conf.get("SNAPSHOT_MODE", SNAPSHOT_SINGLE))

    def paginate(
        self, page_request: PageRequest, predicate: Optional[Callable[[Iterable[Item]], Iterator[Item]]] = None
    ) -> PageResult:
        """
        Count every match and return the window selected by ``page_request``.

        Args:
            page_request: Normalized page number and size.
            predicate: Optional filter stage applied to the enumeration,
                e.g. a ``KeywordFilter``.

        Returns:
            PageResult with the real total even when the window is empty.
        """
        result = PageResult(page=page_request.page, page_size=page_request.page_size)

        if self.snapshot_mode == SNAPSHOT_SINGLE:
            with self.store.view() as txn:
                result.total = self._count(txn, predicate)
                result.items = self._fetch(txn, predicate, page_request)
        else:
            with self.store.view() as txn:
                result.total = self._count(txn, predicate)
            with self.store.view() as txn:
                result.items = self._fetch(txn, predicate, page_request)

        logger.debug(
            f"Paginated {self.snapshot_mode} snapshot: page={result.page} "
            f"page_size={result.page_size} total={result.total} returned={len(result.items)}"
        )
        return result

    def _matches(self, txn: ReadTransaction, predicate) -> Iterator[Item]:
        items = enumerate_entries(txn)
        return predicate(items) if predicate is not None else items

    def _count(self, txn: ReadTransaction, predicate) -> int:
        with closing(self._matches(txn, predicate)) as matches:
            return sum(1 for _ in matches)

    def _fetch(self, txn: ReadTransaction, predicate, page_request: PageRequest) -> List[KeyValue]:
        offset, page_size = page_request.offset, page_request.page_size
        items = []
        with closing(self._matches(txn, predicate)) as matches:
            for position, item in enumerate(matches):
                # Skipped and filtered-out items never have their values copied
                if position < offset:
                    continue
                items.append(KeyValue(item.key, item.value_copy()))
                if len(items) >= page_size:
                    break
        return items
