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
Pydantic models for flight search requests, offers and results.

The wire format of the search-flights action uses camelCase field names
(departDate, allFlights, cheapestFlight, ...). Python code uses snake_case
attributes; every camelCase field is declared through an alias and models
accept either spelling on input.

Example:
    >>> from flighttracker.models import SearchRequest
    >>> request = SearchRequest.model_validate({
    ...     "origin": "Johannesburg",
    ...     "destination": "Athens",
    ...     "departDate": "June 15, 2026",
    ...     "returnDate": "June 29, 2026",
    ... })
    >>> request.depart_date
    'June 15, 2026'
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator, model_validator

from flighttracker.core.pricing import derive_price
from flighttracker.exceptions import ExhaustedRetriesError


class SearchRequest(BaseModel):
    """
    Immutable input of one flight search.

    Dates are natural-language strings handed to the web agent as-is;
    they are never parsed here.

    Attributes:
        origin: Departure city or airport
        destination: Arrival city or airport
        depart_date: Outbound date (wire name: departDate)
        return_date: Return date (wire name: returnDate)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    origin: StrictStr = Field(..., min_length=1, description="Departure city or airport")
    destination: StrictStr = Field(..., min_length=1, description="Arrival city or airport")
    depart_date: StrictStr = Field(..., min_length=1, alias="departDate", description="Outbound date")
    return_date: StrictStr = Field(..., min_length=1, alias="returnDate", description="Return date")

    @field_validator("origin", "destination", "depart_date", "return_date")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_payload(self) -> Dict[str, str]:
        """Return the camelCase payload as sent to the search-flights action."""
        return self.model_dump(by_alias=True)


class Offer(BaseModel):
    """One extracted flight option."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    airline: str = Field(..., description="Airline name")
    price: str = Field(..., description="Price as displayed, currency included")
    duration: str = Field("", description="Total travel time as displayed")
    stops: Optional[int] = Field(None, ge=0, description="Number of stops")
    departure_time: Optional[str] = Field(None, alias="departureTime")
    arrival_time: Optional[str] = Field(None, alias="arrivalTime")

    @property
    def numeric_price(self) -> Optional[float]:
        """Price magnitude used for comparisons, None when unparseable."""
        return derive_price(self.price)

    def summary(self) -> str:
        return f"{self.airline} - {self.price} - {self.duration}"


class FlightRecord(BaseModel):
    """Schema handed to the structured extractor for a single result row."""

    airline: str = Field(..., description="The airline name (e.g., 'Emirates', 'Lufthansa')")
    price: str = Field(..., description="The total price as displayed (e.g., '$1,234', '€890')")
    duration: str = Field(..., description="Total flight duration (e.g., '14h 30m', '18h 5m')")
    stops: int = Field(..., description="Number of stops (0 for nonstop, 1, 2, etc.)")
    departure_time: str = Field(..., description="Departure time from origin")
    arrival_time: str = Field(..., description="Arrival time at destination")


class FlightResults(BaseModel):
    """Schema for the whole results page."""

    flights: List[FlightRecord] = Field(..., description="Array of flight options found on the page")
    total_results: int = Field(0, description="Total number of flights found")


class ExtractionKind(str, Enum):
    """How the final plan step extracts results."""

    STRUCTURED = "structured"
    FREE_TEXT = "free_text"


class StructuredExtraction(BaseModel):
    """Schema-constrained extraction output: one dict per flight row."""

    kind: Literal["structured"] = "structured"
    records: List[Dict[str, Any]] = Field(default_factory=list)


class FreeTextExtraction(BaseModel):
    """Free-text agent report that still has to be pattern-parsed."""

    kind: Literal["free_text"] = "free_text"
    message: str = ""


RawExtraction = Annotated[
    Union[StructuredExtraction, FreeTextExtraction],
    Field(discriminator="kind"),
]


class SearchSuccess(BaseModel):
    """
    Successful search outcome.

    Attributes:
        offers: Offers in extraction order, never price order
        cheapest: The offer with the lowest derived price; always in offers
        session_ref: Identifier of the browser session that produced them
        site: Site key the offers came from
        attempts: Attempt number that succeeded
    """

    success: Literal[True] = True
    offers: List[Offer]
    cheapest: Offer
    session_ref: str
    site: str = "google_flights"
    attempts: int = 1

    @model_validator(mode="after")
    def _cheapest_is_an_offer(self) -> "SearchSuccess":
        if not self.offers:
            raise ValueError("a successful search needs at least one offer")
        if self.cheapest not in self.offers:
            raise ValueError("cheapest offer must be one of the offers")
        return self

    def raise_for_failure(self) -> None:
        """No-op, mirrors SearchFailure.raise_for_failure."""


class SearchFailure(BaseModel):
    """
    Failed search outcome after every attempt was used.

    Attributes:
        message: Message of the last attempt's error
        attempts_exhausted: Number of attempts made
        error_type: Class name of the last error
    """

    success: Literal[False] = False
    message: str
    attempts_exhausted: int = Field(..., ge=1)
    error_type: Optional[str] = None
    site: str = "google_flights"

    def raise_for_failure(self) -> None:
        """Raise ExhaustedRetriesError describing this failure."""
        raise ExhaustedRetriesError(
            f"Flight search failed after {self.attempts_exhausted} attempts: {self.message}",
            attempts=self.attempts_exhausted,
            last_error=self.message,
        )


SearchResult = Union[SearchSuccess, SearchFailure]


class SearchData(BaseModel):
    """Payload of a successful SearchResponse."""

    model_config = ConfigDict(populate_by_name=True)

    search_params: SearchRequest = Field(..., alias="searchParams")
    total_flights: int = Field(..., alias="totalFlights")
    all_flights: List[Offer] = Field(..., alias="allFlights")
    cheapest_flight: Offer = Field(..., alias="cheapestFlight")
    session_inspector_url: Optional[str] = Field(None, alias="sessionInspectorUrl")


class SearchResponse(BaseModel):
    """
    Serialized output of the search-flights action.

    Example:
        >>> response = SearchResponse.from_result(request, result)
        >>> print(response.to_json())
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="Whether flights were found")
    data: Optional[SearchData] = Field(None, description="Search results on success")
    error: Optional[str] = Field(None, description="Last error message on failure")
    message: str = Field(..., description="Human-readable outcome")

    @classmethod
    def from_result(
        cls,
        request: SearchRequest,
        result: SearchResult,
        inspector_url: Optional[str] = None,
    ) -> "SearchResponse":
        """
        Build the wire response for a search result.

        Args:
            request: The request that was searched
            result: Outcome returned by the retry controller
            inspector_url: Base URL of the session inspector; the session id
                is appended to it

        Returns:
            SearchResponse instance
        """
        if isinstance(result, SearchFailure):
            return cls(
                success=False,
                error=result.message,
                message=f"Flight search failed after {result.attempts_exhausted} attempts",
            )

        session_url = None
        if inspector_url:
            session_url = f"{inspector_url.rstrip('/')}/{result.session_ref}"

        return cls(
            success=True,
            data=SearchData(
                search_params=request,
                total_flights=len(result.offers),
                all_flights=result.offers,
                cheapest_flight=result.cheapest,
                session_inspector_url=session_url,
            ),
            message=(
                f"Found {len(result.offers)} flights. "
                f"Cheapest: {result.cheapest.airline} - {result.cheapest.price}"
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
