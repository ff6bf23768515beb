"""List metadata model.

Struct format reference (https://docs.python.org/3/library/struct.html):
    <  = little-endian byte order
    4s = 4-byte string (e.g., magic bytes)
    B  = unsigned char (1 byte)
    I  = unsigned int (4 bytes)
    Q  = unsigned long long (8 bytes)
"""

import struct
from typing import ClassVar

from pydantic import BaseModel, Field

from exceptions import DecodeError, EncodeError

# ListMetadata format: [magic:4][version:1][last_page_number:8][total_count:8][page_size:4]
LIST_METADATA_FMT = "<4sBQQI"
LIST_METADATA_SIZE = 25  # 4 + 1 + 8 + 8 + 4

# Magic bytes to identify paged list metadata records
MAGIC = b"PGLM"


class ListMetadata(BaseModel):
    """The single bookkeeping record kept per list.

    It is the commit point of every append: page contents beyond what this
    record accounts for are not part of the list.

    Layout (25 bytes):
        [magic:4][version:1][last_page_number:8][total_count:8][page_size:4]

    Fields:
        MAGIC: "PGLM" - identifies this as a paged list metadata record
        version: Format version for compatibility checking
        last_page_number: Highest allocated page (0 = empty list)
        total_count: Number of elements appended so far
        page_size: Page size the pages were written with (0 = not recorded)
    """

    FORMAT_VERSION: ClassVar[int] = 1
    SIZE: ClassVar[int] = LIST_METADATA_SIZE

    last_page_number: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0)
    page_size: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    def to_bytes(self) -> bytes:
        """Serialize to bytes. See module docstring for format details."""
        try:
            return struct.pack(
                LIST_METADATA_FMT,
                MAGIC,
                self.FORMAT_VERSION,
                self.last_page_number,
                self.total_count,
                self.page_size,
            )
        except struct.error as e:
            raise EncodeError(f"Cannot encode metadata {self!r}: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "ListMetadata":
        """Deserialize from bytes."""
        if len(data) != LIST_METADATA_SIZE:
            raise DecodeError(f"Data length mismatch: expected {LIST_METADATA_SIZE} bytes, got {len(data)}")

        magic, version, last_page_number, total_count, page_size = struct.unpack(LIST_METADATA_FMT, data)

        if magic != MAGIC:
            raise DecodeError(f"Invalid magic bytes: expected {MAGIC!r}, got {magic!r}")
        if version != cls.FORMAT_VERSION:
            raise DecodeError(f"Unsupported metadata version: {version}")

        return cls(last_page_number=last_page_number, total_count=total_count, page_size=page_size)
