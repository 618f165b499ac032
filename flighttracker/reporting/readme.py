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
Markdown snapshot of the latest search.

Renders a SearchResponse into the README the scheduled tracker commits
after every run: route, dates, status, cheapest offer, all offers and,
on failure, the error verbatim.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from flighttracker.models import Offer, SearchResponse

DEFAULT_ROUTE = {
    "origin": "Johannesburg",
    "destination": "Athens",
    "departDate": "June 15, 2026",
    "returnDate": "June 29, 2026",
}

TITLE = "# Autonomous AI Flight Tracker"
INTRO = (
    "This project uses an AI web agent (Stagehand) driving remote Kernel browsers "
    "to search for flights and track prices over time."
)


def load_response(raw: Union[str, bytes], site: Optional[str] = None) -> SearchResponse:
    """
    Parse a SearchResponse from its JSON text.

    Accepts either a single response or the site-keyed map written by a
    multi-site search. For a map, the response for ``site`` is returned when
    given, otherwise the successful response with the lowest cheapest price
    (the first response when none succeeded).

    Raises:
        ValueError: Invalid JSON, an empty map, or an unknown site
        pydantic.ValidationError: A response with the wrong shape
    """
    payload = json.loads(raw)
    if isinstance(payload, dict) and "success" not in payload:
        responses = {key: SearchResponse.model_validate(item) for key, item in payload.items()}
        return select_response(responses, site)
    return SearchResponse.model_validate(payload)


def select_response(responses: Dict[str, SearchResponse], site: Optional[str] = None) -> SearchResponse:
    """Pick the response to render from a site-keyed map."""
    if not responses:
        raise ValueError("No search responses to render")
    if site is not None:
        if site not in responses:
            raise ValueError(f"No response for site {site!r}; available: {', '.join(responses)}")
        return responses[site]

    best: Optional[SearchResponse] = None
    best_price = float("inf")
    for response in responses.values():
        if not response.success or response.data is None:
            continue
        price = response.data.cheapest_flight.numeric_price
        price = float("inf") if price is None else price
        if best is None or price < best_price:
            best, best_price = response, price
    return best if best is not None else next(iter(responses.values()))


def _cheapest_table(offer: Offer) -> List[str]:
    return [
        "| Airline | Price | Duration |",
        "|---------|-------|----------|",
        f"| **{offer.airline}** | **{offer.price}** | **{offer.duration}** |",
    ]


def _offers_table(offers: List[Offer]) -> List[str]:
    lines = [
        "| # | Airline | Price | Duration |",
        "|---|---------|-------|----------|",
    ]
    for index, offer in enumerate(offers, start=1):
        lines.append(f"| {index} | {offer.airline} | {offer.price} | {offer.duration} |")
    lines.append("")
    lines.append(f"**Total options found:** {len(offers)}")
    return lines


def build_readme(response: SearchResponse, timestamp: Optional[datetime] = None) -> str:
    """
    Render the README for one search response.

    Args:
        response: Output of the search-flights action
        timestamp: Update time, defaults to now (UTC)

    Returns:
        README contents as Markdown
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    date_str = f"{timestamp:%B} {timestamp.day}, {timestamp.year}"

    route = dict(DEFAULT_ROUTE)
    if response.data is not None:
        route.update(response.data.search_params.to_payload())

    status = "✅ Successful" if response.success else "❌ Failed"

    lines = [
        TITLE,
        "",
        INTRO,
        "",
        "## Latest Flight Search Results",
        "",
        f"**Last Updated:** {date_str}",
        f"**Status:** {status}",
        "",
        f"**Route:** {route['origin']} → {route['destination']}",
        f"**Dates:** {route['departDate']} to {route['returnDate']}",
        "",
    ]

    if response.success and response.data is not None:
        lines += ["### 🎯 Cheapest Flight Found", ""]
        lines += _cheapest_table(response.data.cheapest_flight)
        lines += ["", "### ✈️ All Flight Options", ""]
        if response.data.all_flights:
            lines += _offers_table(response.data.all_flights)
        else:
            lines.append("*No flight options extracted*")
        if response.data.session_inspector_url:
            lines += ["", f"**Session:** [{response.data.session_inspector_url}]({response.data.session_inspector_url})"]
    else:
        lines += [
            "### ⚠️ Search Error",
            "",
            "The flight search encountered issues:",
            "",
            "```",
            response.error or response.message,
            "```",
            "",
            "**Note:** The automated search will try again on the next scheduled run.",
        ]

    lines += [
        "",
        "---",
        "",
        f"*Last automated update: {timestamp.isoformat()}*",
        "",
    ]
    return "\n".join(lines)


def write_readme(
    response: SearchResponse,
    path: Union[str, Path] = "README.md",
    timestamp: Optional[datetime] = None,
) -> Path:
    """Render and write the README, returning its path."""
    path = Path(path)
    path.write_text(build_readme(response, timestamp), encoding="utf-8")
    return path
