"""Exceptions raised by the paged list and the state stores behind it."""


class PagedListError(Exception):
    """Base class for paged list failures."""


class StoreError(PagedListError):
    """The underlying state store failed a get or put."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message if key is None else f"{message} [key:{key}]")
        self.key = key


class EncodeError(PagedListError, ValueError):
    """A metadata record or page could not be serialized."""


class DecodeError(PagedListError, ValueError):
    """Stored bytes could not be parsed back into a record."""


class InvalidArgument(PagedListError, ValueError):
    pass


class IndexOutOfRange(PagedListError, IndexError):
    pass


class PageNotFound(PagedListError, LookupError):
    pass


class DataInconsistency(PagedListError):
    """Metadata and the physically stored pages disagree."""

    def __init__(self, detail: str):
        super().__init__(f"data inconsistency: {detail}")
        self.detail = detail


class NoActiveTransactions(Exception):
    pass


class UnbalancedTransaction(Exception):
    """A transaction block ended with its own snapshot no longer innermost."""
