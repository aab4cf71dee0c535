import logging
from typing import List, Optional

from .config import parse_config
from .core import PriorityMap
from .exceptions import CorruptStoreError, PriorityMapError
from .storage import MapStore
from .utils import descending, format_map, parse_element, parse_priorities

log = logging.getLogger("priority_map")

# commands that only read the store
READ_ONLY = {"show", "peek"}


def run_command(args, pmap: PriorityMap) -> None:
    """Apply one parsed CLI command to `pmap`, printing any result."""
    cmd = args.command
    if cmd == "show":
        print(format_map(pmap, limit=args.limit))
    elif cmd == "peek":
        print(pmap.peek_highest())
    elif cmd == "pop":
        print(pmap.remove_highest())
    elif cmd == "clear":
        pmap.clear()
    elif cmd == "add":
        element = parse_element(args.element, args.json)
        if args.unique:
            pmap.add_or_update(element, args.priority)
        else:
            pmap.add(element, args.priority)
    elif cmd == "remove":
        if not pmap.remove_element(parse_element(args.element, args.json)):
            log.warning("Element %s not found", args.element)
    elif cmd == "move":
        pmap.move_priority(args.source, args.destination)
    elif cmd == "merge":
        pmap.merge_priorities(parse_priorities(args.priorities), args.destination)
    else:
        raise ValueError(f"Unknown command: {cmd}")


def main(argv: Optional[List[str]] = None) -> int:
    args, logger = parse_config(argv)
    store = MapStore(args.store, comparator=descending if args.descending else None)
    try:
        pmap = store.load(strict=True)
    except CorruptStoreError as e:
        logger.error("%s; refusing to touch it", e)
        return 1

    try:
        run_command(args, pmap)
    except PriorityMapError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    except ValueError as e:
        # bad --json element or priority list
        logger.error("Invalid argument: %s", e)
        return 2

    if args.command not in READ_ONLY:
        try:
            store.save(pmap)
        except (OSError, TypeError):
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
