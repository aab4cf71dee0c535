# priority_map/config.py
import argparse
import logging
from typing import List, Optional
from . import settings

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("priority-map", description="Inspect and edit a stored priority map")

    p.add_argument('--store', default=settings.store_path(), help='Path to the JSON store file')
    p.add_argument('--log-level', default=settings.log_level())
    p.add_argument('--descending', action=argparse.BooleanOptionalAction, default=settings.descending(),
                   help='Treat smaller numbers as higher priority')
    p.add_argument('--json', action='store_true', default=False,
                   help='Parse ELEMENT arguments as JSON values instead of plain strings')
    p.add_argument('--limit', type=int, default=settings.preview_limit(),
                   help='Max elements shown per bucket by "show" (0 = all)')

    sub = p.add_subparsers(dest='command', required=True)

    sub.add_parser('show', help='Print every bucket')
    sub.add_parser('peek', help='Print the next element without removing it')
    sub.add_parser('pop', help='Remove and print the next element')
    sub.add_parser('clear', help='Remove everything')

    add = sub.add_parser('add', help='Append ELEMENT to the bucket for PRIORITY')
    add.add_argument('element')
    add.add_argument('priority', type=int)
    add.add_argument('--unique', action='store_true', default=False,
                     help='Skip if an equal element is already in that bucket')

    rm = sub.add_parser('remove', help='Remove every occurrence of ELEMENT')
    rm.add_argument('element')

    mv = sub.add_parser('move', help='Move bucket SRC onto the end of bucket DST')
    mv.add_argument('source', type=int)
    mv.add_argument('destination', type=int)

    merge = sub.add_parser('merge', help='Merge comma-separated PRIORITIES into DST')
    merge.add_argument('destination', type=int)
    merge.add_argument('priorities', help='e.g. 1,2,3')

    return p

def parse_config(argv: Optional[List[str]] = None):
    p = build_parser()
    args = p.parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger("priority_map")
    return args, logger
