"""Pydantic models for paged list configuration and stored records."""

from models.config import DEFAULT_PAGE_SIZE, ListConfig
from models.metadata import MAGIC, ListMetadata
from models.storage import PAGE_MAGIC, PageRecord, StateRecord, compute_checksum

__all__ = [
    "ListConfig",
    "ListMetadata",
    "PageRecord",
    "StateRecord",
    "compute_checksum",
    "DEFAULT_PAGE_SIZE",
    "MAGIC",
    "PAGE_MAGIC",
]
