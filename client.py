import argparse
import logging

from exceptions import (
    DataInconsistency,
    InvalidArgument,
    IndexOutOfRange,
    NoActiveTransactions,
    PagedListError,
    PageNotFound,
)
from models.config import DEFAULT_PAGE_SIZE
from storage import FileStateStore, MemoryStateStore, PagedList


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive paged list shell")
    parser.add_argument("--db", help="Path to a state file (default: in-memory store)")
    parser.add_argument("--list", dest="list_key", default="default", help="List identity")
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Elements per page")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log page reads and writes")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    store = FileStateStore(args.db) if args.db else MemoryStateStore()
    lst = PagedList(args.list_key, store, page_size=args.page_size)
    prompt = f"""
    Welcome to paged list shell! (list {lst.list_key!r}, page size {lst.page_size})
    Commands:
        append <value>        - Appends a value to the end of the list
        get <index>           - Returns the value at the given index
        last                  - Returns the last value
        page <number>         - Returns all values on a page (counting from 1)
        len                   - Returns the number of values
        range <start> [end]   - Prints values from start up to (not including) end
        exit                  - Exits the program

        begin                 - Begins a transaction (in-memory store only)
        commit                - Commits current transaction
        rollback              - Rollback current transaction
    """
    print(prompt)

    try:
        while True:
            try:
                command = input("> ").strip()
                if not command:
                    continue
                if command.lower() == "exit":
                    print("Exiting...")
                    break

                action, _, rest = command.partition(" ")
                action = action.lower()

                if action == "append":
                    if not rest:
                        print("Invalid command. Use append <value>.")
                        continue
                    index = lst.append(rest)
                    print(f"Appended {rest!r} at index {index}")
                elif action == "get":
                    print(f"[{rest}] {lst.get(int(rest))}")
                elif action == "last":
                    print(lst.get_last())
                elif action == "page":
                    print(f"Page {rest}: {lst.get_page(int(rest))}")
                elif action == "len":
                    print(lst.length())
                elif action == "range":
                    bounds = [int(part) for part in rest.split()]
                    start = bounds[0] if bounds else 0
                    end = bounds[1] if len(bounds) > 1 else -1
                    lst.range(start, end, lambda i, value: print(f"[{i}] {value}"))
                elif action in ("begin", "commit", "rollback"):
                    if not isinstance(store, MemoryStateStore):
                        print("Transactions require the in-memory store")
                        continue
                    try:
                        getattr(store, action)()
                    except NoActiveTransactions:
                        print(f"Cannot {action} with no active transactions")
                else:
                    print("Unknown command.")
            except InvalidArgument as e:
                print(f"Invalid argument: {e}")
            except (IndexOutOfRange, PageNotFound) as e:
                print(e)
            except DataInconsistency as e:
                print(f"List is corrupt: {e}")
            except PagedListError as e:
                print(f"Error: {e}")
            except ValueError as e:
                print(f"Expected an integer argument: {e}")
            except (KeyboardInterrupt, EOFError):
                print("\nExiting...")
                break
    finally:
        if isinstance(store, FileStateStore):
            store.sync()
            store.close()


if __name__ == '__main__':
    main()
