"""
Command-line interface for the catalog.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from flora_catalog import __version__, discovery
from flora_catalog.aggregator import Aggregator
from flora_catalog.cache import RecordCache
from flora_catalog.config import get_settings
from flora_catalog.errors import CatalogError, FetchError, RateLimited
from flora_catalog.favorites import Favorites
from flora_catalog.flows.warm import warm_catalog
from flora_catalog.schemas import CanonicalRecord, Kingdom, SearchOptions
from flora_catalog.store import DataStore


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="flora-catalog",
        description="Search plants and fungi across Perenual, iNaturalist, and Toxic Shrooms",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    search_parser = subparsers.add_parser("search", help="Search all enabled sources")
    search_parser.add_argument("query", nargs="?", default="", help="Search text (empty: browse)")
    search_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    search_parser.add_argument(
        "--kingdom",
        choices=[k.value for k in Kingdom],
        default=None,
        help="Restrict results to one kingdom",
    )
    search_parser.add_argument("--json", action="store_true", help="Print records as JSON")

    show_parser = subparsers.add_parser("show", help="Show one record by id")
    show_parser.add_argument("record_id", help="Record id, e.g. perenual_42 or inat_48662")
    show_parser.add_argument("--json", action="store_true", help="Print the record as JSON")

    random_parser = subparsers.add_parser("random", help="Show a random plant or mushroom")
    random_parser.add_argument("--mushroom", action="store_true", help="Pick a fungus instead")

    fav_parser = subparsers.add_parser("favorites", help="Manage favorites")
    fav_sub = fav_parser.add_subparsers(dest="fav_command")
    fav_sub.add_parser("list", help="List favorites")
    fav_add = fav_sub.add_parser("add", help="Add a record to favorites")
    fav_add.add_argument("record_id")
    fav_remove = fav_sub.add_parser("remove", help="Remove a favorite")
    fav_remove.add_argument("record_id")

    cache_parser = subparsers.add_parser("cache", help="Manage the local cache")
    cache_sub = cache_parser.add_subparsers(dest="cache_command")
    cache_clear = cache_sub.add_parser("clear", help="Delete cache entries")
    cache_clear.add_argument("--prefix", default=None, help="Only keys starting with this")

    warm_parser = subparsers.add_parser("warm", help="Pre-fill the cache (Prefect flow)")
    warm_parser.add_argument("queries", nargs="*", help="Queries to warm (default: browse)")

    return parser


def _store() -> DataStore:
    settings = get_settings()
    return DataStore(settings.data_dir, quota_bytes=settings.store_quota_bytes)


def _aggregator() -> Aggregator:
    return Aggregator.from_settings(get_settings())


def _print_record(record: CanonicalRecord, *, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(record.to_payload(), indent=2))
        return
    print(f"{record.id:<32} {record.display_name}  [{record.source}]")


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Data dir: {settings.data_dir}")
    for tag, config in settings.source_config().items():
        print(f"Source {tag}: {'enabled' if config.enabled else 'disabled'}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command."""
    if args.page < 1:
        print("Error: --page must be >= 1", file=sys.stderr)
        return 2

    options = SearchOptions(
        page=args.page,
        kingdom=Kingdom(args.kingdom) if args.kingdom else None,
    )
    records = asyncio.run(_aggregator().search_merged(args.query, options=options))

    if args.json:
        print(json.dumps([r.to_payload() for r in records], indent=2))
        return 0
    if not records:
        print("No results found.")
        return 0
    for record in records:
        _print_record(record)
    print(f"{len(records)} results")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Handle the 'show' command."""
    try:
        record = asyncio.run(_aggregator().fetch_by_id(args.record_id))
    except RateLimited as e:
        print(e.message, file=sys.stderr)
        return 1
    except (FetchError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        _print_record(record, as_json=True)
        return 0
    print(record.display_name)
    print(f"Source: {record.source}")
    print(record.description)
    print(f"More: {record.external_reference_url}")
    return 0


def cmd_random(args: argparse.Namespace) -> int:
    """Handle the 'random' command."""
    aggregator = _aggregator()
    pick = discovery.random_mushroom if args.mushroom else discovery.random_plant
    try:
        record = asyncio.run(pick(aggregator))
    except RateLimited as e:
        print(e.message, file=sys.stderr)
        return 1
    except CatalogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _print_record(record)
    return 0


def cmd_favorites(args: argparse.Namespace) -> int:
    """Handle the 'favorites' command."""
    favorites = Favorites(_store())

    if args.fav_command == "add":
        try:
            record = asyncio.run(_aggregator().fetch_by_id(args.record_id))
        except (FetchError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if favorites.add(record):
            print(f"Added {record.display_name}")
        else:
            print(f"{record.display_name} is already a favorite")
        return 0

    if args.fav_command == "remove":
        if favorites.remove(args.record_id):
            print(f"Removed {args.record_id}")
            return 0
        print(f"{args.record_id} is not a favorite", file=sys.stderr)
        return 1

    items = favorites.load()
    if not items:
        print("No favorites yet.")
    for record in items:
        _print_record(record)
    return 0


def cmd_cache(args: argparse.Namespace) -> int:
    """Handle the 'cache' command."""
    if args.cache_command != "clear":
        print("Usage: flora-catalog cache clear [--prefix PREFIX]", file=sys.stderr)
        return 1
    removed = RecordCache(_store()).clear(args.prefix)
    print(f"Removed {removed} cache entries")
    return 0


def cmd_warm(args: argparse.Namespace) -> int:
    """Handle the 'warm' command: run the cache warming flow."""
    summaries = warm_catalog(queries=args.queries or None)
    print(f"Warmed {len(summaries)} searches")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug or get_settings().debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "search": cmd_search,
        "show": cmd_show,
        "random": cmd_random,
        "favorites": cmd_favorites,
        "cache": cmd_cache,
        "warm": cmd_warm,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
