"""
searchkit command line tool.

Examples:
    python -m searchkit.cli -c config.toml search movies "alien" --param hitsPerPage=5
    python -m searchkit.cli -c config.toml browse movies --max-pages 3
    python -m searchkit.cli -c config.toml get-settings movies
    python -m searchkit.cli -c config.toml --print-config
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from . import utils
from .config import ConfigManager
from .dispatch import SearchClientError
from .index import BrowseIterator, Index, Query, SearchClient
from .logging_utils import initLogging

logger = logging.getLogger(__name__)


def parseParams(params: Optional[List[str]]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs, values are JSON-decoded when possible."""
    ret: Dict[str, Any] = {}
    for param in params or []:
        key, sep, value = param.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid parameter '{param}', expected key=value")
        try:
            ret[key] = json.loads(value)
        except json.JSONDecodeError:
            ret[key] = value
    return ret


def parseArguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="searchkit - query a hosted search cluster, dood!")
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    searchParser = subparsers.add_parser("search", help="Search an index")
    searchParser.add_argument("index", help="Index name")
    searchParser.add_argument("query", nargs="?", default="", help="Query text")
    searchParser.add_argument("--param", action="append", help="Extra query parameter as key=value")

    browseParser = subparsers.add_parser("browse", help="Browse all content of an index")
    browseParser.add_argument("index", help="Index name")
    browseParser.add_argument("--param", action="append", help="Extra query parameter as key=value")
    browseParser.add_argument("--max-pages", type=int, default=0, help="Stop after this many pages (0: all)")

    settingsParser = subparsers.add_parser("get-settings", help="Print index settings")
    settingsParser.add_argument("index", help="Index name")

    args = parser.parse_args(argv)
    if not args.print_config and args.command is None:
        parser.error("a command is required unless --print-config is given")

    args.config = os.path.abspath(args.config)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]
    return args


def prettyPrintConfig(configManager: ConfigManager) -> None:
    """Pretty-print the loaded configuration, dood!"""
    print("=== searchkit configuration ===")
    print(utils.jsonDumps(configManager.config, indent=2))


def printJson(data: Any) -> None:
    print(utils.jsonDumps(data, indent=2))


async def browseAll(index: Index, query: Query, maxPages: int = 0) -> int:
    """Print every browse page, returns the number of pages printed."""
    finished: asyncio.Future[int] = asyncio.get_running_loop().create_future()
    pages = 0

    def onPage(iterator: BrowseIterator, content, error) -> None:
        nonlocal pages
        if error is not None:
            finished.set_exception(error)
            return

        pages += 1
        printJson(content)
        if maxPages and pages >= maxPages:
            iterator.cancel()
            finished.set_result(pages)
        elif not iterator.hasNext():
            finished.set_result(pages)

    iterator = index.browseAll(query, onPage)
    try:
        return await finished
    finally:
        if not finished.done():
            iterator.cancel()


async def runCommand(args: argparse.Namespace, configManager: ConfigManager) -> None:
    async with SearchClient.fromConfig(configManager.getClientConfig()) as client:
        index = client.getIndex(args.index)

        cacheConfig = configManager.getCacheConfig()
        if cacheConfig["enabled"]:
            index.enableSearchCache(ttl=cacheConfig["ttl"], maxSize=cacheConfig["max-size"])

        match args.command:
            case "search":
                printJson(await index.search(Query(query=args.query, **parseParams(args.param))))
            case "browse":
                pages = await browseAll(index, Query(**parseParams(args.param)), args.max_pages)
                logger.info(f"Browsed {pages} pages of {args.index}")
            case "get-settings":
                printJson(await index.getSettings())
            case _:
                raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parseArguments(argv)

    try:
        configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir)
        if args.print_config:
            prettyPrintConfig(configManager)
            return 0

        initLogging(configManager.getLoggingConfig())
        asyncio.run(runCommand(args, configManager))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except (SearchClientError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
