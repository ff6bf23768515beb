"""Key derivation and index arithmetic for paged lists.

Key formats (stable, existing data depends on them):
    "<list_key>_meta"       metadata record
    "<list_key>_page_<n>"   page n, counting from 1

Metadata keys end in "_meta" and page keys end in a decimal page number, so
the two never collide. Splitting a page key at its last "_page_" recovers
(list_key, n) uniquely, so page keys never collide either.

Everything here is pure: no store access.
"""

from exceptions import InvalidArgument

META_SUFFIX = "_meta"
PAGE_INFIX = "_page_"


def metadata_key(list_key: str) -> str:
    return f"{list_key}{META_SUFFIX}"


def page_key(list_key: str, page_number: int) -> str:
    if page_number < 1:
        raise InvalidArgument(f"Page number must be >= 1, got {page_number}")
    return f"{list_key}{PAGE_INFIX}{page_number}"


def parse_key(key: str) -> tuple[str, int | None] | None:
    """Invert metadata_key/page_key.

    Returns (list_key, None) for a metadata key, (list_key, page_number) for
    a page key and None for anything else.
    """
    if key.endswith(META_SUFFIX) and len(key) > len(META_SUFFIX):
        return key[: -len(META_SUFFIX)], None

    list_key, infix, number = key.rpartition(PAGE_INFIX)
    if not infix or not list_key or not number.isdecimal() or not number.isascii():
        return None
    # Only canonical numbers are produced by page_key
    if number.startswith("0"):
        return None
    return list_key, int(number)


def locate(index: int, page_size: int) -> tuple[int, int]:
    """Map a zero-based element index to (page_number, offset_in_page)."""
    if index < 0:
        raise InvalidArgument(f"Index must be >= 0, got {index}")
    return index // page_size + 1, index % page_size


def append_target(total_count: int, last_page_number: int, page_size: int) -> int:
    """Page that receives the next appended element.

    The last page while it has room, otherwise a fresh page. An empty list
    (0, 0) starts at page 1.
    """
    if total_count % page_size != 0:
        return last_page_number
    return last_page_number + 1


def page_count(total_count: int, page_size: int) -> int:
    """Number of pages needed to hold total_count elements."""
    return -(-total_count // page_size)


def page_length(total_count: int, page_number: int, page_size: int) -> int:
    """Committed number of elements on page_number (0 for pages outside the list)."""
    last = page_count(total_count, page_size)
    if page_number < 1 or page_number > last:
        return 0
    if page_number < last:
        return page_size
    return total_count - (last - 1) * page_size
