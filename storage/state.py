"""State store interface and the in-memory implementation.

A paged list only ever calls get and put on its store; anything else here
(transactions, key listing) is for hosts and tooling.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol, runtime_checkable

from exceptions import NoActiveTransactions, UnbalancedTransaction


@runtime_checkable
class StateStore(Protocol):
    """Minimal single-key state interface.

    get returns None (or empty bytes) for keys that were never written.
    put raises StoreError when the write fails.
    """

    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, value: bytes) -> None: ...


class MemoryStateStore:
    """Dictionary-backed state store with nested snapshot transactions.

    begin() pushes a copy of the current scope; writes go to the innermost
    snapshot until it is committed into its parent or rolled back.
    """

    def __init__(self):
        self._data: dict[str, bytes] = {}
        self._transactions: list[dict[str, bytes]] = []
        self._lock = threading.Lock()

    def _get_scope(self) -> dict[str, bytes]:
        if self._transactions:
            return self._transactions[-1]
        else:
            return self._data

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._get_scope().get(key)

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._get_scope()[key] = bytes(value)

    def keys(self, prefix: str = "") -> list[str]:
        """Sorted keys currently visible, optionally filtered by prefix."""
        with self._lock:
            return sorted(k for k in self._get_scope() if k.startswith(prefix))

    def clear(self) -> None:
        """Reset store to its initial state"""
        with self._lock:
            self._data = {}
            self._transactions = []

    @property
    def in_transaction(self) -> bool:
        return bool(self._transactions)

    def begin(self) -> None:
        with self._lock:
            self._transactions.append(self._get_scope().copy())

    def commit(self) -> None:
        """
        Replace the next oldest snapshot in the transaction stack with the
        current one. With a single active transaction this replaces _data.
        """
        with self._lock:
            if not self._transactions:
                raise NoActiveTransactions
            latest_snapshot = self._transactions.pop()
            if self._transactions:
                self._transactions[-1] = latest_snapshot
            else:
                self._data = latest_snapshot

    def rollback(self) -> None:
        """Discard the latest snapshot."""
        with self._lock:
            try:
                self._transactions.pop()
            except IndexError:
                raise NoActiveTransactions

    def _unwind(self, depth: int) -> None:
        """Drop every snapshot above the first depth ones."""
        with self._lock:
            del self._transactions[depth:]

    @contextmanager
    def transaction(self) -> Iterator["MemoryStateStore"]:
        """Commit the block's writes together, or none of them if it raises.

        The block must leave the transaction stack as it found it, or
        UnbalancedTransaction is raised. Nested begin() calls left open are
        discarded along with the block's own writes. A block that already
        committed or rolled back its own snapshot has nothing left to undo.
        """
        self.begin()
        depth = len(self._transactions)
        try:
            yield self
        except BaseException:
            self._unwind(depth - 1)
            raise

        current = len(self._transactions)
        if current > depth:
            self._unwind(depth - 1)
        if current != depth:
            raise UnbalancedTransaction(
                f"transaction block entered at depth {depth} ended at depth {current}"
            )
        self.commit()
