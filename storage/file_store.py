"""Durable state store backed by an append-only log file.

File layout:
    [magic:4][version:4]            file header
    [StateRecord][StateRecord]...   one record per put, in put order

Opening a file replays the log into an in-memory index of
key -> (offset, length) pointing at the latest value for each key. Values
themselves stay on disk and are read back on get. Replay stops at the first
record that is short or fails its checksum; that tail (a put interrupted by a
crash) is truncated away.
"""

import logging
import os
import struct
from pathlib import Path
from typing import Self

from pydantic import ValidationError

from exceptions import DecodeError, StoreError
from models.storage import StateRecord

logger = logging.getLogger(__name__)

FILE_HEADER_FMT = "<4sI"
FILE_HEADER_SIZE = 8  # 4 + 4
FILE_MAGIC = b"PGLS"
FILE_FORMAT_VERSION = 1


class FileStateStore:
    """StateStore implementation persisting every put to a log file.

    Writes are buffered until sync() or close(); get sees them immediately.
    """

    def __init__(self, path: Path | str, create: bool = True):
        self.path = Path(path)
        self._file = None
        self._index: dict[str, tuple[int, int]] = {}
        self._end = FILE_HEADER_SIZE
        self._next_seq = 1
        self._record_count = 0

        if self.path.exists():
            self._open_existing()
        elif create:
            self._create_new()
        else:
            raise FileNotFoundError(f"State file not found: {self.path}")

    def _create_new(self) -> None:
        """Create a new, empty log file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "w+b")
        self._file.write(struct.pack(FILE_HEADER_FMT, FILE_MAGIC, FILE_FORMAT_VERSION))
        self._file.flush()

    def _open_existing(self) -> None:
        """Open an existing log file, validate its header and replay it."""
        self._file = open(self.path, "r+b")

        header = self._file.read(FILE_HEADER_SIZE)
        if len(header) < FILE_HEADER_SIZE:
            self.close()
            raise DecodeError(f"Data too short for state file header: {self.path}")

        magic, version = struct.unpack(FILE_HEADER_FMT, header)
        if magic != FILE_MAGIC:
            self.close()
            raise DecodeError(f"Invalid magic bytes: expected {FILE_MAGIC!r}, got {magic!r}")
        if version != FILE_FORMAT_VERSION:
            self.close()
            raise DecodeError(f"Unsupported state file version: {version}")

        self._replay()

    def _replay(self) -> None:
        file_size = self.path.stat().st_size
        offset = FILE_HEADER_SIZE

        while offset < file_size:
            self._file.seek(offset)
            header = self._file.read(StateRecord.HEADER_SIZE)
            if len(header) < StateRecord.HEADER_SIZE:
                break
            payload = self._file.read(StateRecord.payload_size(header))
            try:
                record = StateRecord.from_bytes(header + payload)
            except DecodeError:
                break

            self._index_record(offset, record)
            offset += record.encoded_size

        if offset < file_size:
            logger.warning("Truncating %d bytes of incomplete log tail in %s", file_size - offset, self.path)
            self._file.truncate(offset)
            self._file.flush()

        self._end = offset

    def _index_record(self, offset: int, record: StateRecord) -> None:
        value_offset = offset + StateRecord.HEADER_SIZE + len(record.key.encode("utf-8"))
        self._index[record.key] = (value_offset, len(record.value))
        self._next_seq = max(self._next_seq, record.seq + 1)
        self._record_count += 1

    def _require_open(self, key: str | None = None) -> None:
        if self._file is None:
            raise StoreError("State store is closed", key)

    def get(self, key: str) -> bytes | None:
        """Read the latest value for key, or None if it was never written."""
        self._require_open(key)

        entry = self._index.get(key)
        if entry is None:
            return None

        offset, length = entry
        try:
            self._file.seek(offset)
            data = self._file.read(length)
        except OSError as e:
            raise StoreError(f"Read failed: {e}", key) from e

        if len(data) < length:
            raise StoreError(f"Incomplete value read: expected {length} bytes, got {len(data)}", key)
        return data

    def put(self, key: str, value: bytes) -> None:
        """Append a record for key; it supersedes any earlier one."""
        self._require_open(key)

        try:
            record = StateRecord(key=key, value=bytes(value), seq=self._next_seq)
            data = record.to_bytes()
        except (UnicodeEncodeError, ValidationError) as e:
            raise StoreError(f"Cannot encode record: {e}", key) from e

        try:
            self._file.seek(self._end)
            self._file.write(data)
        except OSError as e:
            raise StoreError(f"Write failed: {e}", key) from e

        self._index_record(self._end, record)
        self._end += record.encoded_size

    def keys(self, prefix: str = "") -> list[str]:
        """Sorted keys with a stored value, optionally filtered by prefix."""
        self._require_open()
        return sorted(k for k in self._index if k.startswith(prefix))

    @property
    def record_count(self) -> int:
        """Number of records in the log, superseded ones included."""
        return self._record_count

    @property
    def size(self) -> int:
        """Log size in bytes."""
        return self._end

    def sync(self) -> None:
        """Flush all writes to disk."""
        if self._file is not None:
            try:
                self._file.flush()
                os.fsync(self._file.fileno())
            except OSError as e:
                raise StoreError(f"Sync failed: {e}") from e

    def close(self) -> None:
        """Flush and close the log file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
