"""
Main entry point for metasearch.

Runs one search across the enabled engines and prints the merged response
as JSON on stdout. Logs go to stderr.
"""

import asyncio
import json
import sys

from metasearch.search.dispatcher import Dispatcher
from metasearch.search.engines import build_registry, get_available_engines
from metasearch.search.http_client import HttpxClient
from metasearch.search.provider import DispatchResponse
from metasearch.utils.config import get_settings
from metasearch.utils.logging import configure_logging, get_logger


async def run_search(
    query: str,
    page: int = 0,
    safe_search: int = 0,
    engines: list[str] | None = None,
    user_agent: str | None = None,
) -> DispatchResponse:
    """Run a search with the configured engines.

    Args:
        query: Search query.
        page: Zero-based page index.
        safe_search: Safe search level (0-2).
        engines: Restrict the search to these engine tags.
        user_agent: User agent sent upstream. Random if None.

    Returns:
        Merged dispatch response.
    """
    logger = get_logger(__name__)
    settings = get_settings()

    registry = build_registry(settings)

    async with HttpxClient(settings.http) as client:
        dispatcher = Dispatcher(registry, client, timeout=settings.search.request_timeout)
        response = await dispatcher.dispatch(
            query,
            page=page,
            user_agent=user_agent,
            safe_search=safe_search,
            engines=engines,
        )

    logger.info(
        "Search finished",
        result_count=len(response.results),
        ok=response.ok,
        no_results=response.no_results,
    )
    return response


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="metasearch - query several search engines at once"
    )
    parser.add_argument("query", type=str, help="Search query")
    parser.add_argument(
        "--page", "-p",
        type=int,
        default=0,
        help="Zero-based result page (default: 0)",
    )
    parser.add_argument(
        "--safe-search",
        type=int,
        choices=[0, 1, 2],
        default=0,
        help="Safe search level (default: 0)",
    )
    parser.add_argument(
        "--engines", "-e",
        type=str,
        default=None,
        help=f"Comma-separated engine tags (implemented: {', '.join(get_available_engines())})",
    )
    parser.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="User agent sent upstream (default: random browser UA)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: from settings)",
    )

    args = parser.parse_args(argv)

    if args.page < 0:
        parser.error("--page must be non-negative")

    configure_logging(log_level=args.log_level, json_format=False)

    engines = None
    if args.engines:
        engines = [name.strip() for name in args.engines.split(",") if name.strip()]

    response = asyncio.run(
        run_search(
            args.query,
            page=args.page,
            safe_search=args.safe_search,
            engines=engines,
            user_agent=args.user_agent,
        )
    )

    json.dump(response.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")

    return 0 if response.ok else 1


if __name__ == "__main__":
    sys.exit(main())
