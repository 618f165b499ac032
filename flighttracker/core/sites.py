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

"""Flight search sites the step plan can target."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from flighttracker.exceptions import ConfigurationError


@dataclass(frozen=True)
class SiteProfile:
    """
    Everything the step plan needs to know about one search site.

    The form labels are quoted into natural-language instructions for the
    web agent, so they should match the visible placeholder text.
    """

    key: str
    name: str
    url: str
    origin_field: str = "Where from?"
    destination_field: str = "Where to?"
    search_button: str = "Search"
    results_hint: str = "flight results are visible on the page with prices displayed"


GOOGLE_FLIGHTS = SiteProfile(
    key="google_flights",
    name="Google Flights",
    url="https://www.google.com/travel/flights",
)

KAYAK = SiteProfile(
    key="kayak",
    name="Kayak",
    url="https://www.kayak.com/flights",
    origin_field="From?",
    destination_field="To?",
)

SKYSCANNER = SiteProfile(
    key="skyscanner",
    name="Skyscanner",
    url="https://www.skyscanner.com",
    origin_field="From",
    destination_field="To",
)

SITES: Dict[str, SiteProfile] = {
    site.key: site for site in (GOOGLE_FLIGHTS, KAYAK, SKYSCANNER)
}


def get_site(key: str) -> SiteProfile:
    """
    Look up a site profile by key.

    Keys are case-insensitive and accept dashes ("google-flights").

    Raises:
        ConfigurationError: If no site is registered under the key
    """
    normalised = key.strip().lower().replace("-", "_")
    try:
        return SITES[normalised]
    except KeyError:
        raise ConfigurationError(
            f"Unknown site '{key}'. Available: {', '.join(sorted(SITES))}"
        ) from None


def list_sites() -> List[str]:
    return sorted(SITES)
