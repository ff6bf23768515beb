#!/usr/bin/env python3
"""State file inspection tool for debugging paged lists.

Usage:
    uv run python tools/list_inspect.py --db ./tmp/dev.db --summary
    uv run python tools/list_inspect.py --db ./tmp/dev.db --list orders
    uv run python tools/list_inspect.py --db ./tmp/dev.db --list orders --page 3
    uv run python tools/list_inspect.py --db ./tmp/dev.db --list orders --verify --page-size 50
"""

import argparse
import logging
import sys
from collections import defaultdict
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from exceptions import PagedListError
from models.config import DEFAULT_PAGE_SIZE
from models.metadata import ListMetadata
from models.storage import PageRecord
from storage import layout
from storage.file_store import FileStateStore
from storage.paged_list import PagedList


def discover_lists(store: FileStateStore) -> dict[str, list[int | None]]:
    """Group stored keys by list identity. None stands for the metadata key."""
    lists: dict[str, list[int | None]] = defaultdict(list)
    for key in store.keys():
        parsed = layout.parse_key(key)
        if parsed is not None:
            list_key, page_number = parsed
            lists[list_key].append(page_number)
    return lists


def print_summary(store: FileStateStore) -> None:
    """Print file statistics and every list found in the file."""
    print("=" * 50)
    print("STATE FILE SUMMARY")
    print("=" * 50)
    print()

    keys = store.keys()
    print("=== File Statistics ===")
    print(f"  Path: {store.path}")
    print(f"  Size: {store.size} bytes")
    print(f"  Log Records: {store.record_count}")
    print(f"  Live Keys: {len(keys)}")
    print(f"  Superseded Records: {store.record_count - len(keys)}")
    print()

    print("=== Lists ===")
    lists = discover_lists(store)
    if not lists:
        print("  No paged lists found")
    for list_key, entries in sorted(lists.items()):
        pages = sorted(n for n in entries if n is not None)
        has_meta = None in entries
        print(f"  {list_key!r}: {len(pages)} page record(s){'' if has_meta else ' (NO METADATA)'}")
        if has_meta:
            try:
                meta = ListMetadata.from_bytes(store.get(layout.metadata_key(list_key)))
            except PagedListError as e:
                print(f"    CORRUPT: {e}")
                continue
            print(f"    total_count: {meta.total_count}")
            print(f"    last_page_number: {meta.last_page_number}")
            print(f"    page_size: {meta.page_size or 'not recorded'}")
    print()


def print_list(store: FileStateStore, list_key: str) -> None:
    """Print the metadata record and per-page sizes of one list."""
    data = store.get(layout.metadata_key(list_key))
    print(f"=== List {list_key!r} ===")
    if not data:
        print("  No metadata (empty list)")
        print()
        return

    try:
        meta = ListMetadata.from_bytes(data)
    except PagedListError as e:
        print(f"  CORRUPT metadata: {e}")
        print()
        return
    print(f"  total_count: {meta.total_count}")
    print(f"  last_page_number: {meta.last_page_number}")
    print(f"  page_size: {meta.page_size or 'not recorded'}")
    for page_number in range(1, meta.last_page_number + 1):
        page_data = store.get(layout.page_key(list_key, page_number))
        if not page_data:
            print(f"    [page {page_number}] MISSING")
            continue
        try:
            page = PageRecord.from_bytes(page_data)
        except PagedListError as e:
            print(f"    [page {page_number}] CORRUPT: {e}")
            continue
        print(f"    [page {page_number}] {len(page)} element(s)")
    print()


def print_page(store: FileStateStore, list_key: str, page_number: int) -> None:
    """Print the raw stored contents of a page, committed or not."""
    key = layout.page_key(list_key, page_number)
    data = store.get(key)
    print(f"=== Page {page_number} of {list_key!r} (key {key!r}) ===")
    if not data:
        print("  (not stored)")
        print()
        return

    try:
        page = PageRecord.from_bytes(data)
    except PagedListError as e:
        print(f"  CORRUPT: {e}")
        print()
        return
    print(f"  Size: {len(data)} bytes")
    print(f"  Element Count: {len(page)}")
    for i, value in enumerate(page.values[:20]):
        print(f"    [{i}] {_value_repr(value)}")
    if len(page) > 20:
        print(f"    ... and {len(page) - 20} more elements")
    print()


def verify_list(store: FileStateStore, list_key: str, page_size: int) -> bool:
    """Check every page of a list against its metadata."""
    lst = PagedList(list_key, store, page_size=page_size)
    print(f"=== Verify {list_key!r} (page size {lst.page_size}) ===")
    try:
        meta = lst.verify()
    except PagedListError as e:
        print(f"  FAILED: {e}")
        print()
        return False
    print(f"  OK: {meta.total_count} element(s) on {meta.last_page_number} page(s)")
    print()
    return True


def _value_repr(value: str, max_len: int = 40) -> str:
    """Format a value for display."""
    if len(value) > max_len:
        return repr(value[:max_len] + "...")
    return repr(value)


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect paged lists in a state file")
    parser.add_argument("--db", required=True, help="Path to state file")
    parser.add_argument("--summary", action="store_true", help="Show file summary")
    parser.add_argument("--list", dest="list_key", help="List identity to inspect")
    parser.add_argument("--page", type=int, help="Show a specific page of --list")
    parser.add_argument("--verify", action="store_true", help="Check --list for inconsistencies")
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Page size used by --list")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Error: State file not found: {db_path}", file=sys.stderr)
        sys.exit(1)

    if (args.page is not None or args.verify) and not args.list_key:
        parser.error("--page and --verify require --list")

    try:
        with FileStateStore(db_path, create=False) as store:
            if args.summary or not args.list_key:
                print_summary(store)
            elif args.verify:
                if not verify_list(store, args.list_key, args.page_size):
                    sys.exit(2)
            elif args.page is not None:
                print_page(store, args.list_key, args.page)
            else:
                print_list(store, args.list_key)
    except PagedListError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
