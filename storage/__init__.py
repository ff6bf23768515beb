"""Storage layer: state stores, key layout and the paged list built on them."""

from storage import layout
from storage.file_store import FileStateStore
from storage.paged_list import PagedList
from storage.state import MemoryStateStore, StateStore

__all__ = [
    "layout",
    "StateStore",
    "MemoryStateStore",
    "FileStateStore",
    "PagedList",
]
