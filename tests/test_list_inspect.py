"""Tests for the state file inspection tool."""

import sys
from pathlib import Path

import pytest

from storage.file_store import FileStateStore
from storage.paged_list import PagedList
from tools import list_inspect


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "state.db"


@pytest.fixture
def store(db_path: Path) -> FileStateStore:
    store = FileStateStore(db_path)
    lst = PagedList("orders", store, page_size=3)
    for value in ["a", "b", "c", "d"]:
        lst.append(value)
    yield store
    store.close()


class TestCorruptRecords:
    """Undecodable records are reported, not raised."""

    def test_summary_with_corrupt_metadata(self, store: FileStateStore, capsys):
        store.put("broken_meta", b"garbage")

        list_inspect.print_summary(store)

        out = capsys.readouterr().out
        assert "'broken'" in out
        assert "CORRUPT" in out
        assert "total_count: 4" in out
        assert "page_size: 3" in out

    def test_list_with_corrupt_metadata(self, store: FileStateStore, capsys):
        store.put("broken_meta", b"garbage")

        list_inspect.print_list(store, "broken")

        assert "CORRUPT metadata" in capsys.readouterr().out

    def test_list_with_corrupt_page(self, store: FileStateStore, capsys):
        store.put("orders_page_1", b"garbage-bytes-here")

        list_inspect.print_list(store, "orders")

        out = capsys.readouterr().out
        assert "[page 1] CORRUPT" in out
        assert "[page 2] 1 element(s)" in out

    def test_page_with_corrupt_record(self, store: FileStateStore, capsys):
        store.put("orders_page_2", b"garbage-bytes-here")

        list_inspect.print_page(store, "orders", 2)

        assert "CORRUPT" in capsys.readouterr().out

    def test_verify_reports_failure(self, store: FileStateStore, capsys):
        store.put("orders_page_1", b"garbage-bytes-here")

        assert not list_inspect.verify_list(store, "orders", 3)
        assert "FAILED" in capsys.readouterr().out


class TestMain:
    """Tests for the command line entry point."""

    def test_summary(self, store: FileStateStore, db_path: Path, monkeypatch, capsys):
        store.sync()
        monkeypatch.setattr(sys, "argv", ["list_inspect.py", "--db", str(db_path), "--summary"])

        list_inspect.main()

        assert "'orders': 2 page record(s)" in capsys.readouterr().out

    def test_verify_page_size_mismatch(self, store: FileStateStore, db_path: Path, monkeypatch):
        store.sync()
        monkeypatch.setattr(
            sys, "argv", ["list_inspect.py", "--db", str(db_path), "--list", "orders", "--verify", "--page-size", "2"]
        )

        with pytest.raises(SystemExit) as excinfo:
            list_inspect.main()
        assert excinfo.value.code == 2

    def test_unreadable_state_file(self, db_path: Path, monkeypatch, capsys):
        db_path.write_bytes(b"XXXX\x01\x00\x00\x00")
        monkeypatch.setattr(sys, "argv", ["list_inspect.py", "--db", str(db_path)])

        with pytest.raises(SystemExit) as excinfo:
            list_inspect.main()
        assert excinfo.value.code == 2
        assert "Invalid magic bytes" in capsys.readouterr().err
