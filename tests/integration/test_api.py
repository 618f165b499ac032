# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Integration tests for the flighttracker HTTP service."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from flighttracker.exceptions import ConfigurationError
from flighttracker.models import Offer, SearchFailure, SearchResponse, SearchSuccess
from flighttracker.service.app import create_app
from flighttracker.service.auth import APIKeyManager

PAYLOAD = {
    "origin": "Johannesburg",
    "destination": "Athens",
    "departDate": "June 15, 2026",
    "returnDate": "June 29, 2026",
}


@pytest.fixture
def mock_search():
    """Create a mock FlightSearch."""
    search = MagicMock()
    search.session_manager.active_count = 0
    search.close = AsyncMock()

    cheap = Offer(airline="Ethiopian", price="$538", duration="18h 40m")
    offers = [Offer(airline="Emirates", price="$612", duration="14h 30m"), cheap]
    search.search = AsyncMock(return_value=SearchSuccess(offers=offers, cheapest=cheap, session_ref="abc123"))
    search.to_response = lambda request, result: SearchResponse.from_result(
        request, result, inspector_url="https://app.onkernel.com/sessions"
    )
    return search


@pytest.fixture
def test_client(mock_search):
    app = create_app(search_factory=lambda: mock_search, api_key_manager=APIKeyManager())
    with TestClient(app) as client:
        yield client
    mock_search.close.assert_awaited_once()


@pytest.fixture
def secured_client(mock_search):
    app = create_app(search_factory=lambda: mock_search, api_key_manager=APIKeyManager(["secret-key"]))
    with TestClient(app) as client:
        yield client


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["active_sessions"] == 0
        assert data["sites"] == ["google_flights", "kayak", "skyscanner"]

    def test_health_needs_no_key(self, secured_client):
        assert secured_client.get("/health").status_code == status.HTTP_200_OK


class TestSearchFlightsEndpoint:
    """Tests for POST /actions/search-flights."""

    def test_success(self, test_client, mock_search):
        response = test_client.post("/actions/search-flights", json=PAYLOAD)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Found 2 flights. Cheapest: Ethiopian - $538"
        assert data["data"]["totalFlights"] == 2
        assert data["data"]["searchParams"] == PAYLOAD
        assert data["data"]["sessionInspectorUrl"] == "https://app.onkernel.com/sessions/abc123"
        assert "error" not in data

        request = mock_search.search.await_args.args[0]
        assert request.depart_date == "June 15, 2026"

    def test_failure_is_200(self, test_client, mock_search):
        mock_search.search.return_value = SearchFailure(
            message="Flight results not visible after 45000ms", attempts_exhausted=3
        )

        response = test_client.post("/actions/search-flights", json=PAYLOAD)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "success": False,
            "error": "Flight results not visible after 45000ms",
            "message": "Flight search failed after 3 attempts",
        }

    @pytest.mark.parametrize("missing", ["origin", "returnDate"])
    def test_invalid_payload(self, test_client, missing):
        payload = {k: v for k, v in PAYLOAD.items() if k != missing}
        response = test_client.post("/actions/search-flights", json=payload)
        assert response.status_code == 422

    def test_site_query(self, test_client, mock_search):
        test_client.post("/actions/search-flights?site=kayak", json=PAYLOAD)
        assert mock_search.search.await_args.kwargs["site"] == "kayak"

    def test_unknown_site(self, test_client, mock_search):
        mock_search.search.side_effect = ConfigurationError("Unknown site 'expedia'")
        response = test_client.post("/actions/search-flights?site=expedia", json=PAYLOAD)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAuthentication:
    """Tests for X-API-Key authentication."""

    def test_missing_key(self, secured_client):
        response = secured_client.post("/actions/search-flights", json=PAYLOAD)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_wrong_key(self, secured_client):
        response = secured_client.post(
            "/actions/search-flights", json=PAYLOAD, headers={"X-API-Key": "wrong"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_valid_key(self, secured_client):
        response = secured_client.post(
            "/actions/search-flights", json=PAYLOAD, headers={"X-API-Key": "secret-key"}
        )
        assert response.status_code == status.HTTP_200_OK

    def test_keys_from_env(self):
        manager = APIKeyManager.from_env({"FLIGHTTRACKER_API_KEYS": "a, b,,"})
        assert manager.enabled
        assert manager.validate_key("b")
        assert not manager.validate_key("c")

    def test_disabled_without_keys(self):
        assert not APIKeyManager.from_env({}).enabled
