# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
flighttracker CLI.

Usage:
    flighttracker search [OPTIONS]        # Search for flights
    flighttracker readme [RESULT_JSON]    # Render the README snapshot
    flighttracker serve [OPTIONS]         # Start the HTTP service
    flighttracker version                 # Show version information

Examples:
    # Search the default site
    flighttracker search --origin Johannesburg --destination Athens \\
        --depart-date "June 15, 2026" --return-date "June 29, 2026"

    # Compare sites and save the response
    flighttracker search ... --site google_flights --site kayak --output result.json

    # Update the README from a saved response
    flighttracker readme result.json --output README.md
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from flighttracker.config import TrackerConfig
from flighttracker.core.search import FlightSearch
from flighttracker.core.sites import list_sites
from flighttracker.exceptions import ConfigurationError
from flighttracker.models import ExtractionKind, SearchRequest, SearchResponse
from flighttracker.reporting.readme import load_response, write_readme
from flighttracker.utils.logger import configure_logging


def get_version() -> str:
    """Get the flighttracker version."""
    import flighttracker
    return getattr(flighttracker, "__version__", "unknown")


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    version = get_version()

    if args.json:
        import platform
        info = {
            "flighttracker": version,
            "python": platform.python_version(),
            "platform": platform.system(),
        }
        print(json.dumps(info, indent=2))
    else:
        print(f"flighttracker {version}")

    return 0


def build_config(args: argparse.Namespace) -> TrackerConfig:
    """Environment configuration with command-line overrides applied."""
    config = TrackerConfig.from_env()

    if args.free_text:
        config.plan = dataclasses.replace(
            config.plan, extraction_mode=ExtractionKind.FREE_TEXT, allow_free_text=True
        )
    if args.sites and len(args.sites) == 1:
        config.plan = dataclasses.replace(config.plan, site=args.sites[0])
    if args.max_attempts:
        config.retry = dataclasses.replace(config.retry, max_attempts=args.max_attempts)

    return config


async def run_search(
    config: TrackerConfig,
    request: SearchRequest,
    sites: Optional[List[str]] = None,
) -> Dict[str, SearchResponse]:
    """Run one search per site and return the responses keyed by site."""
    async with FlightSearch(config) as search:
        if sites and len(sites) > 1:
            results = await search.search_sites(request, sites)
        else:
            result = await search.search(request)
            results = {result.site: result}
        return {site: search.to_response(request, result) for site, result in results.items()}


def cmd_search(args: argparse.Namespace) -> int:
    """Search for flights and print the response JSON."""
    try:
        request = SearchRequest(
            origin=args.origin,
            destination=args.destination,
            depart_date=args.depart_date,
            return_date=args.return_date,
        )
    except ValidationError as e:
        print(f"Error: invalid search request: {e}", file=sys.stderr)
        return 2

    try:
        config = build_config(args)
        responses = asyncio.run(run_search(config, request, args.sites))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if len(responses) == 1:
        output = next(iter(responses.values())).to_json()
    else:
        output = json.dumps({site: r.to_dict() for site, r in responses.items()}, indent=2)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
    print(output)

    return 0 if any(r.success for r in responses.values()) else 1


def cmd_readme(args: argparse.Namespace) -> int:
    """Render the README snapshot from a search response."""
    if args.result and args.result.lstrip().startswith("{"):
        raw = args.result
    elif args.result:
        try:
            raw = Path(args.result).read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error reading search results: {e}", file=sys.stderr)
            return 1
    else:
        raw = sys.stdin.read()

    try:
        response = load_response(raw, site=args.site)
    except (ValueError, ValidationError) as e:
        print(f"Error parsing search results: {e}", file=sys.stderr)
        return 1

    path = write_readme(response, args.output)
    status = "Successful" if response.success else "Failed"
    print(f"README updated: {path} ({status})")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP service."""
    from flighttracker.cli.serve import run_server

    run_server(host=args.host, port=args.port, reload=args.reload, log_level=args.log_level.lower())
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="flighttracker",
        description="flighttracker - Autonomous flight price tracking on remote browsers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  search      Search for flights
  readme      Render the README snapshot from a search response
  serve       Start the HTTP service
  version     Show version information
""",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("FLIGHTTRACKER_LOG_LEVEL", "INFO"),
        help="Set logging level (default: INFO)",
    )
    parser.add_argument(
        "--human-readable", "--human",
        action="store_true",
        default=os.environ.get("FLIGHTTRACKER_LOG_FORMAT", "json").lower() == "human",
        help="Use human-readable log format instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # version command
    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")
    version_parser.set_defaults(func=cmd_version)

    # search command
    search_parser = subparsers.add_parser("search", help="Search for flights")
    search_parser.add_argument("--origin", required=True, help="Departure city or airport")
    search_parser.add_argument("--destination", required=True, help="Arrival city or airport")
    search_parser.add_argument("--depart-date", required=True, help='Outbound date, e.g. "June 15, 2026"')
    search_parser.add_argument("--return-date", required=True, help='Return date, e.g. "June 29, 2026"')
    search_parser.add_argument(
        "--site",
        dest="sites",
        action="append",
        choices=list_sites(),
        help="Site to search; repeat to compare several sites",
    )
    search_parser.add_argument("--max-attempts", type=int, help="Attempts per site (default: 3)")
    search_parser.add_argument(
        "--free-text",
        action="store_true",
        help="Use the free-text agent report instead of structured extraction",
    )
    search_parser.add_argument("--output", "-o", help="Also write the response JSON to this file")
    search_parser.set_defaults(func=cmd_search)

    # readme command
    readme_parser = subparsers.add_parser("readme", help="Render the README snapshot")
    readme_parser.add_argument(
        "result",
        nargs="?",
        help="Search response JSON, or a file containing it (default: stdin)",
    )
    readme_parser.add_argument(
        "--site",
        choices=list_sites(),
        help="Site to render from a multi-site result (default: cheapest successful site)",
    )
    readme_parser.add_argument("--output", "-o", default="README.md", help="README path (default: README.md)")
    readme_parser.set_defaults(func=cmd_readme)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument(
        "--host",
        default=os.environ.get("FLIGHTTRACKER_HOST", "0.0.0.0"),
        help="Host to bind to (default: 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("FLIGHTTRACKER_PORT", "8000")),
        help="Port to bind to (default: 8000)",
    )
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=getattr(args, "log_level", "INFO"),
        human_readable=getattr(args, "human_readable", False),
    )

    if hasattr(args, "func"):
        sys.exit(args.func(args))

    parser.print_help()
    sys.exit(0)


if __name__ == "__main__":
    main()
