import pytest

from exceptions import NoActiveTransactions, UnbalancedTransaction
from storage.state import MemoryStateStore, StateStore


@pytest.fixture
def store():
    store_instance = MemoryStateStore()
    yield store_instance
    store_instance.clear()


def test_satisfies_protocol(store) -> None:
    assert isinstance(store, StateStore)


def test_put_and_get(store) -> None:
    store.put("name", b"Jamie")
    assert store.get("name") == b"Jamie"


def test_get_missing_key_returns_none(store) -> None:
    assert store.get("Something") is None


def test_put_overwrites(store) -> None:
    store.put("name", b"Jamie")
    store.put("name", b"Richard")
    assert store.get("name") == b"Richard"


def test_put_copies_mutable_buffers(store) -> None:
    buffer = bytearray(b"abc")
    store.put("buf", buffer)
    buffer[0] = ord("x")
    assert store.get("buf") == b"abc"


def test_keys_with_prefix(store) -> None:
    for key in ["b_meta", "a_meta", "a_page_1", "c"]:
        store.put(key, b"1")

    assert store.keys() == ["a_meta", "a_page_1", "b_meta", "c"]
    assert store.keys("a_") == ["a_meta", "a_page_1"]


def test_begin_transaction(store) -> None:
    store.put("name", b"richard")
    store.begin()
    store.put("name", b"not richard")
    assert store.in_transaction
    assert store.get("name") == b"not richard"


def test_rollback_transaction(store) -> None:
    store.put("name", b"richard")
    store.begin()
    store.put("name", b"not richard")
    store.put("other", b"value")
    store.rollback()
    assert store.get("name") == b"richard"
    assert store.get("other") is None

    with pytest.raises(NoActiveTransactions):
        store.rollback()


def test_commit_transaction(store) -> None:
    store.put("name", b"richard")
    store.begin()
    store.put("name", b"not richard")
    store.commit()
    assert store.get("name") == b"not richard"
    assert not store.in_transaction

    with pytest.raises(NoActiveTransactions):
        store.commit()


def test_nested_transactions(store) -> None:
    store.put("name", b"richard")
    store.begin()
    store.put("name", b"not richard")

    store.begin()
    store.put("name", b"something else")
    assert store.get("name") == b"something else"

    store.rollback()
    assert store.get("name") == b"not richard"

    store.commit()
    assert store.get("name") == b"not richard"


def test_nested_commit_keeps_outer_writes(store) -> None:
    store.begin()
    store.put("outer", b"1")
    store.begin()
    store.put("inner", b"2")
    store.commit()
    store.commit()

    assert store.get("outer") == b"1"
    assert store.get("inner") == b"2"


def test_transaction_context_commits(store) -> None:
    with store.transaction():
        store.put("a", b"1")
        store.put("b", b"2")

    assert store.get("a") == b"1"
    assert store.get("b") == b"2"
    assert not store.in_transaction


def test_transaction_context_rolls_back_on_error(store) -> None:
    store.put("a", b"0")
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.put("a", b"1")
            store.put("b", b"2")
            raise RuntimeError("boom")

    assert store.get("a") == b"0"
    assert store.get("b") is None
    assert not store.in_transaction


def test_transaction_context_with_inner_begin_left_open(store) -> None:
    store.put("a", b"0")
    with pytest.raises(UnbalancedTransaction):
        with store.transaction():
            store.put("a", b"1")
            store.begin()
            store.put("b", b"2")

    assert store.get("a") == b"0"
    assert store.get("b") is None
    assert not store.in_transaction


def test_transaction_context_with_own_snapshot_committed_early(store) -> None:
    store.begin()
    store.put("outer", b"1")
    with pytest.raises(UnbalancedTransaction):
        with store.transaction():
            store.put("inner", b"2")
            store.commit()

    assert store.in_transaction
    assert store.get("inner") == b"2"
    store.rollback()
    assert store.get("outer") is None
    assert store.get("inner") is None


def test_transaction_context_rolls_back_open_inner_on_error(store) -> None:
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.put("a", b"1")
            store.begin()
            store.put("b", b"2")
            raise RuntimeError("boom")

    assert store.get("a") is None
    assert store.get("b") is None
    assert not store.in_transaction


def test_transaction_context_nested_inside_outer(store) -> None:
    store.begin()
    with store.transaction():
        store.put("a", b"1")

    assert store.in_transaction
    store.rollback()
    assert store.get("a") is None


def test_clear(store) -> None:
    store.put("a", b"1")
    store.begin()
    store.clear()
    assert store.get("a") is None
    assert not store.in_transaction
