"""Append-only list of strings paginated over a single-key state store.

Storage:
    <list_key>_meta       ListMetadata(last_page_number, total_count, page_size)
    <list_key>_page_<n>   PageRecord holding elements
                          [(n - 1) * page_size, n * page_size)

Invariant kept after every append:
    last_page_number == ceil(total_count / page_size)
    every page below last_page_number holds exactly page_size elements
    the last page holds total_count - (last_page_number - 1) * page_size

Append writes the page first and the metadata second, so metadata is the
commit point. If the metadata write fails, the page the next append targets
is left with one uncommitted element: reads never return it, and the next
append overwrites it. Any other mismatch between a page and the length the
metadata accounts for is corruption and fails the operation with
DataInconsistency.

No state is cached between calls; every operation re-reads the metadata.
"""

import logging
from collections.abc import Callable, Iterator
from typing import TypeVar

from pydantic import ValidationError

from exceptions import DataInconsistency, DecodeError, EncodeError, IndexOutOfRange, InvalidArgument, PageNotFound
from models.config import DEFAULT_PAGE_SIZE, ListConfig
from models.metadata import ListMetadata
from models.storage import PageRecord
from storage import layout
from storage.state import StateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PagedList:
    """A paginated, append-only sequence of strings.

    The store is passed in at construction; a PagedList holds nothing but
    its configuration and that reference.
    """

    def __init__(self, list_key: str, store: StateStore, page_size: int | None = DEFAULT_PAGE_SIZE):
        try:
            self.config = ListConfig(list_key=list_key, page_size=page_size)
        except ValidationError as e:
            raise InvalidArgument(f"Invalid list configuration: {e}") from e
        self.store = store

    def __repr__(self) -> str:
        return f"PagedList(list_key={self.list_key!r}, page_size={self.page_size})"

    @property
    def list_key(self) -> str:
        return self.config.list_key

    @property
    def page_size(self) -> int:
        return self.config.page_size

    @property
    def metadata_key(self) -> str:
        return layout.metadata_key(self.list_key)

    def page_key(self, page_number: int) -> str:
        return layout.page_key(self.list_key, page_number)

    # Metadata

    def load_metadata(self) -> ListMetadata:
        """Read the metadata record; a list that was never written is empty."""
        key = self.metadata_key
        data = self.store.get(key)
        if not data:
            return ListMetadata()

        try:
            meta = ListMetadata.from_bytes(data)
        except DecodeError as e:
            raise DecodeError(f"Cannot decode metadata [key:{key}]: {e}") from e

        if meta.page_size and meta.page_size != self.page_size:
            raise DataInconsistency(
                f"list {self.list_key!r} was written with page size {meta.page_size}, "
                f"opened with page size {self.page_size}"
            )
        expected_pages = layout.page_count(meta.total_count, self.page_size)
        if meta.last_page_number != expected_pages:
            raise DataInconsistency(
                f"list {self.list_key!r} has {meta.total_count} elements with page size {self.page_size}, "
                f"which needs {expected_pages} pages, but metadata records {meta.last_page_number}"
            )
        return meta

    def save_metadata(self, meta: ListMetadata) -> None:
        self.store.put(self.metadata_key, meta.to_bytes())

    # Pages

    def _load_page(self, page_number: int) -> list[str] | None:
        key = self.page_key(page_number)
        data = self.store.get(key)
        if not data:
            return None
        try:
            return PageRecord.from_bytes(data).values
        except DecodeError as e:
            raise DecodeError(f"Cannot decode page [key:{key}]: {e}") from e

    def _has_append_slot(self, meta: ListMetadata, page_number: int) -> bool:
        """Whether page_number is where the next append lands."""
        return page_number == layout.append_target(meta.total_count, meta.last_page_number, self.page_size)

    def _committed(self, values: list[str], meta: ListMetadata, page_number: int) -> list[str]:
        """Cut a stored page down to the elements metadata accounts for.

        The only surplus an interrupted append can leave is a single element
        on the page the next append targets. Anything else is corruption.
        """
        expected = layout.page_length(meta.total_count, page_number, self.page_size)
        if len(values) == expected:
            return values
        if len(values) == expected + 1 and self._has_append_slot(meta, page_number):
            logger.warning(
                "Ignoring uncommitted element at index %d on page %d of list %r",
                meta.total_count,
                page_number,
                self.list_key,
            )
            return values[:expected]
        raise DataInconsistency(
            f"page {page_number} of list {self.list_key!r} holds {len(values)} elements, "
            f"metadata accounts for {expected}"
        )

    def _read_page(self, meta: ListMetadata, page_number: int) -> list[str]:
        values = self._load_page(page_number)
        if values is None:
            raise DataInconsistency(
                f"page {page_number} of list {self.list_key!r} is missing "
                f"(metadata records {meta.last_page_number} pages)"
            )
        logger.debug("Read page %d of list %r (%d elements)", page_number, self.list_key, len(values))
        return self._committed(values, meta, page_number)

    # Operations

    def append(self, value: str) -> int:
        """Add value at the end of the list and return its index."""
        if not isinstance(value, str):
            raise InvalidArgument(f"Value must be a str, got {type(value).__name__}")

        meta = self.load_metadata()
        target = layout.append_target(meta.total_count, meta.last_page_number, self.page_size)

        values = self._load_page(target) or []
        values = self._committed(values, meta, target)
        values.append(value)
        try:
            record = PageRecord(values=values)
        except ValidationError as e:
            raise EncodeError(f"Cannot encode page {target} of list {self.list_key!r}: {e}") from e
        self.store.put(self.page_key(target), record.to_bytes())

        index = meta.total_count
        self.save_metadata(
            ListMetadata(last_page_number=target, total_count=meta.total_count + 1, page_size=self.page_size)
        )
        logger.debug("Appended index %d to page %d of list %r", index, target, self.list_key)
        return index

    def get_page(self, page_number: int) -> list[str]:
        """Elements stored on page_number (counting from 1)."""
        if page_number < 1:
            raise InvalidArgument(f"Page number must be >= 1, got {page_number}")

        meta = self.load_metadata()
        if page_number > meta.last_page_number:
            raise PageNotFound(f"Page {page_number} not found in list {self.list_key!r} ({meta.last_page_number} pages)")
        return self._read_page(meta, page_number)

    def length(self) -> int:
        return self.load_metadata().total_count

    def __len__(self) -> int:
        return self.length()

    def get(self, index: int) -> str:
        meta = self.load_metadata()
        if index < 0 or index >= meta.total_count:
            raise IndexOutOfRange(f"Index {index} out of range for list of length {meta.total_count}")

        return self._element(meta, index)

    def get_last(self) -> str:
        meta = self.load_metadata()
        if meta.is_empty:
            raise IndexOutOfRange(f"List {self.list_key!r} is empty")
        return self._element(meta, meta.total_count - 1)

    def _element(self, meta: ListMetadata, index: int) -> str:
        # _read_page fails on pages shorter than metadata claims, so offset is in bounds
        page_number, offset = layout.locate(index, self.page_size)
        return self._read_page(meta, page_number)[offset]

    def iter_range(self, start: int = 0, end: int = -1) -> Iterator[tuple[int, str]]:
        """Lazily yield (index, value) for indexes in [start, end).

        end == -1 means the end of the list. Bounds are checked before this
        returns; pages are read one at a time as the iterator advances, so
        abandoning it stops all further reads.
        """
        meta = self.load_metadata()
        if end == -1:
            end = meta.total_count
        if start < 0 or end > meta.total_count or start >= end:
            raise IndexOutOfRange(f"Range [{start}, {end}) out of range for list of length {meta.total_count}")
        return self._walk(meta, start, end)

    def _walk(self, meta: ListMetadata, start: int, end: int) -> Iterator[tuple[int, str]]:
        page_number, offset = layout.locate(start, self.page_size)
        index = start
        while index < end:
            values = self._read_page(meta, page_number)
            for value in values[offset : offset + end - index]:
                yield index, value
                index += 1
            page_number += 1
            offset = 0

    def range(self, start: int, end: int, visit: Callable[[int, str], T | None]) -> T | None:
        """Call visit(index, value) for each element in [start, end).

        visit returns None to continue. Any other return value stops the walk
        before the next element and is returned; exceptions raised by visit
        propagate unchanged.
        """
        for index, value in self.iter_range(start, end):
            result = visit(index, value)
            if result is not None:
                return result
        return None

    def __iter__(self) -> Iterator[str]:
        meta = self.load_metadata()
        if meta.is_empty:
            return iter(())
        return (value for _, value in self._walk(meta, 0, meta.total_count))

    def verify(self) -> ListMetadata:
        """Read every page through the consistency checks; return the metadata."""
        meta = self.load_metadata()
        for page_number in range(1, meta.last_page_number + 1):
            self._read_page(meta, page_number)
        return meta
