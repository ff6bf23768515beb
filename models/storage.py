"""Storage-related models: list pages and state-store log records.

Struct format reference (https://docs.python.org/3/library/struct.html):
    <  = little-endian byte order
    4s = 4-byte string (e.g., magic bytes)
    I  = unsigned int (4 bytes)
    Q  = unsigned long long (8 bytes)
"""

import struct
import zlib
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, StrictStr, field_validator

from exceptions import DecodeError, EncodeError

# PageRecord format: [magic:4][count:4][checksum:4] followed by count entries of [len:4][utf-8 bytes]
PAGE_RECORD_FMT = "<4sII"
PAGE_RECORD_HEADER_SIZE = 12  # 4 + 4 + 4
PAGE_ENTRY_LEN_FMT = "<I"
PAGE_ENTRY_LEN_SIZE = 4

# Magic bytes to identify paged list page records
PAGE_MAGIC = b"PGLP"

# StateRecord format: [key_len:4][value_len:4][seq:8][checksum:4][key][value]
STATE_RECORD_FMT = "<IIQI"
STATE_RECORD_HEADER_SIZE = 20  # 4 + 4 + 8 + 4


def compute_checksum(data: bytes) -> int:
    """Compute CRC32 checksum of data."""
    return zlib.crc32(data) & 0xFFFFFFFF


class PageRecord(BaseModel):
    """One physical page of a paged list: an ordered run of string values.

    The checksum covers the entry area only, so an empty page still carries
    a valid (zero-length) checksum.

    Layout:
        [magic:4][count:4][checksum:4][len_0:4][value_0]...[len_n:4][value_n]
    """

    HEADER_SIZE: ClassVar[int] = PAGE_RECORD_HEADER_SIZE

    values: list[StrictStr] = []

    def __len__(self) -> int:
        return len(self.values)

    def to_bytes(self) -> bytes:
        """Serialize to bytes. See class docstring for the layout."""
        entries: list[bytes] = []
        for position, value in enumerate(self.values):
            try:
                encoded = value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise EncodeError(f"Value at position {position} cannot be encoded as UTF-8: {e}") from e
            entries.append(struct.pack(PAGE_ENTRY_LEN_FMT, len(encoded)) + encoded)

        body = b"".join(entries)
        header = struct.pack(PAGE_RECORD_FMT, PAGE_MAGIC, len(self.values), compute_checksum(body))
        return header + body

    @classmethod
    def from_bytes(cls, data: bytes, verify_checksum: bool = True) -> "PageRecord":
        """Deserialize from bytes, optionally verifying checksum."""
        if len(data) < PAGE_RECORD_HEADER_SIZE:
            raise DecodeError(f"Data too short: expected at least {PAGE_RECORD_HEADER_SIZE} bytes, got {len(data)}")

        magic, count, checksum = struct.unpack(PAGE_RECORD_FMT, data[:PAGE_RECORD_HEADER_SIZE])

        if magic != PAGE_MAGIC:
            raise DecodeError(f"Invalid magic bytes: expected {PAGE_MAGIC!r}, got {magic!r}")

        body = data[PAGE_RECORD_HEADER_SIZE:]
        if verify_checksum:
            expected = compute_checksum(body)
            if checksum != expected:
                raise DecodeError(f"Checksum mismatch: expected {expected}, got {checksum}")

        values = []
        offset = 0
        for _ in range(count):
            if len(body) < offset + PAGE_ENTRY_LEN_SIZE:
                raise DecodeError("Data too short for page entries")
            (length,) = struct.unpack(PAGE_ENTRY_LEN_FMT, body[offset : offset + PAGE_ENTRY_LEN_SIZE])
            offset += PAGE_ENTRY_LEN_SIZE

            if len(body) < offset + length:
                raise DecodeError("Data too short for page entries")
            try:
                values.append(body[offset : offset + length].decode("utf-8"))
            except UnicodeDecodeError as e:
                raise DecodeError(f"Page entry is not valid UTF-8: {e}") from e
            offset += length

        if offset != len(body):
            raise DecodeError(f"Trailing bytes after {count} entries: {len(body) - offset}")

        return cls(values=values)


class StateRecord(BaseModel):
    """A single put, as appended to a file-backed state store's log.

    The seq field orders records: replaying the log in file order and keeping
    the latest seq per key reconstructs the store. The checksum covers key
    and value so a torn write at the end of the log is detectable.
    """

    # arbitrary_types_allowed permits bytes fields without Pydantic coercion
    model_config = ConfigDict(arbitrary_types_allowed=True)

    HEADER_SIZE: ClassVar[int] = STATE_RECORD_HEADER_SIZE

    key: str
    value: bytes
    seq: int

    @field_validator("value", mode="before")
    @classmethod
    def ensure_bytes(cls, v: bytes | str) -> bytes:
        if isinstance(v, str):
            return v.encode("utf-8")
        return v

    def to_bytes(self) -> bytes:
        """Serialize to bytes. See module docstring for format details."""
        key = self.key.encode("utf-8")
        header = struct.pack(STATE_RECORD_FMT, len(key), len(self.value), self.seq, compute_checksum(key + self.value))
        return header + key + self.value

    @staticmethod
    def payload_size(header: bytes) -> int:
        """Number of key + value bytes following an encoded header."""
        if len(header) < STATE_RECORD_HEADER_SIZE:
            raise DecodeError(f"Data too short: expected at least {STATE_RECORD_HEADER_SIZE} bytes, got {len(header)}")
        key_len, value_len, _, _ = struct.unpack(STATE_RECORD_FMT, header[:STATE_RECORD_HEADER_SIZE])
        return key_len + value_len

    @classmethod
    def from_bytes(cls, data: bytes) -> "StateRecord":
        """Deserialize from bytes, verifying the checksum."""
        if len(data) < STATE_RECORD_HEADER_SIZE:
            raise DecodeError(f"Data too short: expected at least {STATE_RECORD_HEADER_SIZE} bytes, got {len(data)}")

        key_len, value_len, seq, checksum = struct.unpack(STATE_RECORD_FMT, data[:STATE_RECORD_HEADER_SIZE])

        expected_len = STATE_RECORD_HEADER_SIZE + key_len + value_len
        if len(data) < expected_len:
            raise DecodeError(f"Data too short: expected {expected_len} bytes, got {len(data)}")

        payload = data[STATE_RECORD_HEADER_SIZE:expected_len]
        expected = compute_checksum(payload)
        if checksum != expected:
            raise DecodeError(f"Checksum mismatch: expected {expected}, got {checksum}")

        try:
            key = payload[:key_len].decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Record key is not valid UTF-8: {e}") from e

        return cls(key=key, value=payload[key_len:], seq=seq)

    @property
    def encoded_size(self) -> int:
        return STATE_RECORD_HEADER_SIZE + len(self.key.encode("utf-8")) + len(self.value)
