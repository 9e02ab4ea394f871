"""
Operator command line for the cache.

    pagecache clear [--key KEY] [--namespace NS]
    pagecache size [--namespace NS]
    pagecache count [--namespace NS]
    pagecache purge [--namespace NS]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .constants import APP_NAME, APP_VERSION
from .core.config import get_settings
from .core.logging import configure_logging
from .domain.cache.exceptions import CacheException
from .services.cache.cache_facade import CacheFacade


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME, description="Inspect and maintain the content cache."
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {APP_VERSION}"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    clear = commands.add_parser("clear", help="Clear one key, a namespace or everything")
    clear.add_argument("--key", help="Key to clear")
    clear.add_argument("--namespace", help="Namespace to clear")

    for name, help_text in (
        ("size", "Total stored bytes"),
        ("count", "Number of stored entries"),
        ("purge", "Delete expired entries"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("--namespace", help="Limit to one namespace")

    return parser


async def run(args: argparse.Namespace, cache: CacheFacade) -> int:
    try:
        if args.command == "clear":
            result = await cache.clear(args.key, args.namespace)
        elif args.command == "size":
            result = await cache.size(args.namespace)
        elif args.command == "count":
            result = await cache.count(args.namespace)
        else:
            result = await cache.purge_expired(args.namespace)
    finally:
        await cache.close()
    print(result)
    return 0


def main(argv: Optional[List[str]] = None, cache: Optional[CacheFacade] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
        configure_logging(settings.LOG_LEVEL)
        cache = cache or CacheFacade.from_settings(settings)
        return asyncio.run(run(args, cache))
    except CacheException as e:
        print(f"{APP_NAME}: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
