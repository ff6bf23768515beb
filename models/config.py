"""Construction parameters for a paged list."""

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Page size used when none (or a non-positive one) is given
DEFAULT_PAGE_SIZE = 10


class ListConfig(BaseModel):
    """Identity and page size of one paged list.

    Both are fixed for the life of the list: every storage key is derived
    from list_key, and the page layout of already-written data depends on
    page_size. Appends record the page size in the list's metadata, so
    reopening a list with a different page size fails with a data
    inconsistency on the first metadata load.
    """

    model_config = ConfigDict(frozen=True)

    list_key: str = Field(min_length=1)
    page_size: int = DEFAULT_PAGE_SIZE

    @field_validator("list_key")
    @classmethod
    def validate_list_key(cls, v: str) -> str:
        try:
            v.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError(f"List key must be UTF-8 encodable: {e}") from e
        return v

    @field_validator("page_size", mode="before")
    @classmethod
    def default_page_size(cls, v: int | None) -> int:
        if v is None:
            return DEFAULT_PAGE_SIZE
        if isinstance(v, int) and not isinstance(v, bool) and v <= 0:
            logger.warning("Page size %d is not positive, using default %d", v, DEFAULT_PAGE_SIZE)
            return DEFAULT_PAGE_SIZE
        return v
