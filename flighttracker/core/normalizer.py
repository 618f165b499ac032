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
Result normalization.

Turns a RawExtraction into a SearchSuccess, or raises EmptyResultError when
the extraction holds nothing usable. Two input shapes are handled:

Structured records:
    One dict per flight row, validated into Offer models.

Free-text agent reports:
    CHEAPEST FLIGHT: Emirates - $612 - 14h 30m

    ALL OPTIONS FOUND:
    1. Emirates - $612 - 14h 30m
    2. Qatar Airways - $655 - 16h 5m
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from flighttracker.config import DEFAULT_FAILURE_MARKERS
from flighttracker.core.pricing import pick_cheapest
from flighttracker.exceptions import EmptyResultError, StepExecutionError
from flighttracker.models import FreeTextExtraction, Offer, SearchSuccess, StructuredExtraction
from flighttracker.utils.logger import logger

CHEAPEST_MARKER = "CHEAPEST FLIGHT"

_CHEAPEST_LINE = re.compile(r"CHEAPEST FLIGHT:\s*(.+?)\s+-\s+(.+?)\s+-\s+(.+)")
_OPTION_LINE = re.compile(r"^\s*\d+\.\s+(.+?)\s+-\s+(.+?)\s+-\s+(.+?)\s*$")
_EMPHASIS = re.compile(r"[*`]+")


@dataclass
class AgentReport:
    """Offers and designated cheapest parsed out of a free-text report."""

    cheapest: Optional[Offer]
    offers: List[Offer]


def _offer(airline: str, price: str, duration: str) -> Offer:
    return Offer(airline=airline.strip(), price=price.strip(), duration=duration.strip())


def parse_agent_message(message: str) -> AgentReport:
    """
    Parse a free-text agent report.

    Numbered option lines become offers in document order. The first
    "CHEAPEST FLIGHT: airline - price - duration" line, when well formed,
    becomes the designated cheapest. Anything else is ignored. Markdown
    emphasis (``**bold**``, ``*italic*``, backticks) is dropped before
    matching.
    """
    message = _EMPHASIS.sub("", message)
    cheapest = None
    match = _CHEAPEST_LINE.search(message)
    if match:
        cheapest = _offer(*match.groups())

    offers = []
    for line in message.splitlines():
        option = _OPTION_LINE.match(line)
        if option:
            offers.append(_offer(*option.groups()))

    return AgentReport(cheapest=cheapest, offers=offers)


class ResultNormalizer:
    """
    Reduces raw extraction output to a canonical SearchSuccess.

    Attributes:
        failure_markers: Phrases that mark a free-text report as failed,
            matched case-insensitively
    """

    def __init__(self, failure_markers: Iterable[str] = DEFAULT_FAILURE_MARKERS) -> None:
        self.failure_markers = tuple(marker.lower() for marker in failure_markers)

    def normalize(
        self,
        raw: Union[StructuredExtraction, FreeTextExtraction],
        session_ref: str,
        site: str = "google_flights",
    ) -> SearchSuccess:
        """
        Normalize one extraction.

        Args:
            raw: Output of StepSequencer.run
            session_ref: Id of the session that produced it
            site: Site key recorded on the result

        Returns:
            SearchSuccess with offers in extraction order

        Raises:
            EmptyResultError: If no usable offer was extracted
            StepExecutionError: If a free-text report carries a failure marker
        """
        if isinstance(raw, StructuredExtraction):
            offers = self._offers_from_records(raw.records)
            cheapest = None
        else:
            offers, cheapest = self._offers_from_message(raw.message)

        if not offers:
            raise EmptyResultError("No flights were extracted from the results page")

        if cheapest is None:
            cheapest = pick_cheapest(offers, lambda offer: offer.price)
            if cheapest is None:
                raise EmptyResultError("No extracted flight has a comparable price")

        return SearchSuccess(offers=offers, cheapest=cheapest, session_ref=session_ref, site=site)

    def _offers_from_records(self, records: Sequence[Dict[str, Any]]) -> List[Offer]:
        offers = []
        for index, record in enumerate(records):
            try:
                offers.append(Offer.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping malformed flight record {index}: {e.error_count()} errors")
        return offers

    def _offers_from_message(self, message: str):
        lowered = message.lower()
        for marker in self.failure_markers:
            if marker in lowered:
                raise StepExecutionError(f"Agent reported failure: {message.strip()[:200]}", step="extract")

        if CHEAPEST_MARKER not in message:
            raise EmptyResultError("Agent report has no CHEAPEST FLIGHT line")

        report = parse_agent_message(message)
        offers = report.offers
        cheapest = report.cheapest

        if cheapest is not None and cheapest not in offers:
            offers = [cheapest] + offers
        return offers, cheapest
