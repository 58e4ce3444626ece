"""
Command-line interface for restpager.
"""

import argparse
import asyncio
import json
import sys
from typing import Any

from restpager.clients.api_client import ApiClient
from restpager.clients.oauth import TokenProvider
from restpager.settings import RestPagerSettings, get_settings
from restpager.utils.errors import RestPagerError
from restpager.utils.logging_config import initialize_logging


def parse_params(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``key=value`` arguments into query parameters."""
    params: dict[str, str] = {}
    for value in values or []:
        key, sep, param = value.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Invalid parameter '{value}', expected key=value")
        params[key] = param
    return params


async def fetch_items(
    settings: RestPagerSettings,
    path: str,
    page_size: int | None = None,
    max_items: int | None = None,
    params: dict[str, Any] | None = None,
) -> int:
    """
    Print every item of a paginated endpoint as one JSON line.

    Returns:
        Number of items printed
    """
    if max_items is not None and max_items <= 0:
        return 0

    provider = TokenProvider(settings.oauth_config())
    try:
        if settings.refresh_token:
            await provider.refresh_token(settings.refresh_token)

        async with ApiClient(
            provider,
            base_url=settings.api_base_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        ) as client:
            paginator = client.paginate(path, dict, page_size=page_size, params=params)
            count = 0
            async for item in paginator:
                print(json.dumps(item, ensure_ascii=False))
                count += 1
                if max_items is not None and count >= max_items:
                    await paginator.aclose()
                    break
            return count
    finally:
        await provider.aclose()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Client for paginated OAuth2-protected REST APIs"
    )
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write logs to ~/.cache/restpager/logs",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Authorize URL command
    authorize_parser = subparsers.add_parser(
        "authorize-url", help="Print the OAuth2 authorization URL"
    )
    authorize_parser.add_argument("--state", help="Opaque state value echoed back")
    authorize_parser.add_argument(
        "--show-dialog",
        action="store_true",
        help="Force the consent dialog even if already approved",
    )

    # Fetch command
    fetch_parser = subparsers.add_parser(
        "fetch", help="Fetch every item of a paginated endpoint as JSON lines"
    )
    fetch_parser.add_argument("path", help="Endpoint path, e.g. /me/tracks")
    fetch_parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Items per request (default: RESTPAGER_PAGE_SIZE)",
    )
    fetch_parser.add_argument(
        "--max-items",
        type=int,
        default=None,
        help="Stop after this many items",
    )
    fetch_parser.add_argument(
        "--param",
        action="append",
        metavar="KEY=VALUE",
        help="Extra query parameter (repeatable)",
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    initialize_logging(file=args.log_file)
    settings = get_settings()

    try:
        if args.command == "authorize-url":
            provider = TokenProvider(settings.oauth_config())
            print(provider.get_authorize_url(state=args.state, show_dialog=args.show_dialog))
            return 0

        if args.command == "fetch":
            try:
                params = parse_params(args.param)
            except argparse.ArgumentTypeError as e:
                parser.error(str(e))
            asyncio.run(
                fetch_items(
                    settings,
                    args.path,
                    page_size=args.page_size,
                    max_items=args.max_items,
                    params=params,
                )
            )
            return 0
    except RestPagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
