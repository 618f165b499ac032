# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for flighttracker tests."""

from typing import Any, Dict, List, Optional

import pytest

from flighttracker.core.session import BrowserSession
from flighttracker.exceptions import ProvisioningError
from flighttracker.models import SearchRequest


class FakeProvisioner:
    """In-memory provisioner recording every create and delete."""

    def __init__(self, create_failures: int = 0, delete_error: Optional[Exception] = None):
        self.create_failures = create_failures
        self.delete_error = delete_error
        self.created: List[BrowserSession] = []
        self.create_kwargs: List[Dict[str, Any]] = []
        self.deleted: List[str] = []

    async def create(self, **kwargs) -> BrowserSession:
        self.create_kwargs.append(kwargs)
        if self.create_failures > 0:
            self.create_failures -= 1
            raise ProvisioningError("Browser pool exhausted")
        session = BrowserSession(
            id=f"session-{len(self.created) + 1}",
            cdp_ws_url=f"wss://browsers.example/cdp/{len(self.created) + 1}",
        )
        self.created.append(session)
        return session

    async def delete(self, session_id: str) -> None:
        self.deleted.append(session_id)
        if self.delete_error is not None:
            raise self.delete_error


class FakeDriver:
    """
    RemoteActions double.

    Records every call in order. fail_on names a step instruction substring
    (or "navigate") whose call raises RuntimeError.
    """

    def __init__(
        self,
        records: Optional[List[Dict[str, Any]]] = None,
        message: str = "",
        fail_on: Optional[str] = None,
        wait_forever: bool = False,
    ):
        self.records = records or []
        self.message = message
        self.fail_on = fail_on
        self.wait_forever = wait_forever
        self.calls: List[tuple] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    def _maybe_fail(self, kind: str, argument: str) -> None:
        self.calls.append((kind, argument))
        if self.fail_on and (self.fail_on == kind or self.fail_on in argument):
            raise RuntimeError(f"remote call failed: {argument}")

    async def navigate(self, url: str) -> None:
        self._maybe_fail("navigate", url)

    async def perform_action(self, instruction: str) -> None:
        self._maybe_fail("act", instruction)

    async def wait_for_condition(self, description: str) -> None:
        self._maybe_fail("wait", description)
        if self.wait_forever:
            import asyncio
            await asyncio.Event().wait()

    async def extract_structured(self, instruction: str) -> List[Dict[str, Any]]:
        self._maybe_fail("extract", instruction)
        return list(self.records)

    async def extract_free_text(self, instruction: str) -> str:
        self._maybe_fail("extract", instruction)
        return self.message


JNB_ATH_RECORDS = [
    {"airline": "Emirates", "price": "$612", "duration": "14h 30m", "stops": 1,
     "departure_time": "6:25 PM", "arrival_time": "11:55 AM+1"},
    {"airline": "Qatar Airways", "price": "$655", "duration": "16h 5m", "stops": 1,
     "departure_time": "7:10 PM", "arrival_time": "1:15 PM+1"},
    {"airline": "Ethiopian", "price": "$538", "duration": "18h 40m", "stops": 1,
     "departure_time": "1:35 PM", "arrival_time": "9:15 AM+1"},
    {"airline": "Turkish Airlines", "price": "$701", "duration": "15h 20m", "stops": 1,
     "departure_time": "7:00 PM", "arrival_time": "11:20 AM+1"},
    {"airline": "Lufthansa", "price": "$812", "duration": "17h 45m", "stops": 1,
     "departure_time": "8:40 PM", "arrival_time": "2:25 PM+1"},
    {"airline": "KLM", "price": "$845", "duration": "19h 10m", "stops": 1,
     "departure_time": "9:30 PM", "arrival_time": "4:40 PM+1"},
    {"airline": "Air France", "price": "$903", "duration": "20h 5m", "stops": 1,
     "departure_time": "8:05 PM", "arrival_time": "4:10 PM+1"},
    {"airline": "British Airways", "price": "$995", "duration": "22h 15m", "stops": 2,
     "departure_time": "5:50 PM", "arrival_time": "4:05 PM+1"},
]


@pytest.fixture
def search_request() -> SearchRequest:
    """Default Johannesburg to Athens request."""
    return SearchRequest(
        origin="Johannesburg",
        destination="Athens",
        departDate="June 15, 2026",
        returnDate="June 29, 2026",
    )


@pytest.fixture
def jnb_ath_records() -> List[Dict[str, Any]]:
    """Eight extracted offers priced $538 to $995."""
    return [dict(record) for record in JNB_ATH_RECORDS]


@pytest.fixture
def provisioner() -> FakeProvisioner:
    return FakeProvisioner()


@pytest.fixture
def sleeps() -> List[float]:
    """List filled by the recording_sleep fixture."""
    return []


@pytest.fixture
def recording_sleep(sleeps):
    """Async sleep replacement that records delays instead of waiting."""
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)
    return _sleep
