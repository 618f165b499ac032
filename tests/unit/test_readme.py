# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the README reporter."""

import json
from datetime import datetime, timezone

import pytest

from flighttracker.models import Offer, SearchFailure, SearchResponse, SearchSuccess
from flighttracker.reporting.readme import build_readme, load_response, select_response, write_readme

TIMESTAMP = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def success_response(search_request):
    cheap = Offer(airline="Ethiopian", price="$538", duration="18h 40m")
    offers = [Offer(airline="Emirates", price="$612", duration="14h 30m"), cheap]
    result = SearchSuccess(offers=offers, cheapest=cheap, session_ref="abc123")
    return SearchResponse.from_result(search_request, result, inspector_url="https://app.onkernel.com/sessions")


@pytest.fixture
def failure_response(search_request):
    result = SearchFailure(message="Agent reported failure: unable to recover", attempts_exhausted=3)
    return SearchResponse.from_result(search_request, result)


class TestBuildReadme:
    """Tests for build_readme()."""

    def test_success(self, success_response):
        readme = build_readme(success_response, TIMESTAMP)

        assert "**Status:** ✅ Successful" in readme
        assert "**Route:** Johannesburg → Athens" in readme
        assert "**Dates:** June 15, 2026 to June 29, 2026" in readme
        assert "| **Ethiopian** | **$538** | **18h 40m** |" in readme
        assert "| 1 | Emirates | $612 | 14h 30m |" in readme
        assert "**Total options found:** 2" in readme
        assert "https://app.onkernel.com/sessions/abc123" in readme
        assert "**Last Updated:** March 2, 2026" in readme
        assert readme.rstrip().endswith("*Last automated update: 2026-03-02T09:00:00+00:00*")

    def test_failure(self, failure_response):
        readme = build_readme(failure_response, TIMESTAMP)

        assert "**Status:** ❌ Failed" in readme
        assert "Agent reported failure: unable to recover" in readme
        assert "Cheapest Flight Found" not in readme

    def test_failure_uses_default_route(self, failure_response):
        readme = build_readme(failure_response, TIMESTAMP)
        assert "**Route:** Johannesburg → Athens" in readme
        assert "**Dates:** June 15, 2026 to June 29, 2026" in readme


class TestReadmeIO:
    """Tests for loading responses and writing the README."""

    def test_load_response(self, success_response):
        loaded = load_response(success_response.to_json())
        assert loaded.data.cheapest_flight.airline == "Ethiopian"

    def test_load_invalid(self):
        with pytest.raises(ValueError):
            load_response("not json")

    def test_write_readme(self, tmp_path, success_response):
        path = write_readme(success_response, tmp_path / "README.md", TIMESTAMP)
        assert path.read_text(encoding="utf-8").startswith("# Autonomous AI Flight Tracker")


class TestMultiSiteResults:
    """Tests for site-keyed results from a multi-site search."""

    @pytest.fixture
    def cheaper_response(self, search_request):
        offer = Offer(airline="Turkish Airlines", price="$501", duration="16h 05m")
        result = SearchSuccess(offers=[offer], cheapest=offer, session_ref="def456")
        return SearchResponse.from_result(search_request, result)

    def test_cheapest_successful_site(self, success_response, failure_response, cheaper_response):
        raw = json.dumps({
            "kayak": failure_response.to_dict(),
            "google_flights": success_response.to_dict(),
            "skyscanner": cheaper_response.to_dict(),
        })
        loaded = load_response(raw)
        assert loaded.data.cheapest_flight.airline == "Turkish Airlines"

    def test_explicit_site(self, success_response, cheaper_response):
        raw = json.dumps({"google_flights": success_response.to_dict(), "skyscanner": cheaper_response.to_dict()})
        assert load_response(raw, site="google_flights").data.cheapest_flight.airline == "Ethiopian"

    def test_all_failed_returns_first(self, failure_response, search_request):
        other = SearchResponse.from_result(
            search_request, SearchFailure(message="Flight results not visible after 45000ms", attempts_exhausted=3)
        )
        loaded = load_response(json.dumps({"kayak": failure_response.to_dict(), "skyscanner": other.to_dict()}))
        assert loaded.error == "Agent reported failure: unable to recover"

    def test_unknown_site(self, success_response):
        with pytest.raises(ValueError, match="No response for site 'kayak'"):
            load_response(json.dumps({"google_flights": success_response.to_dict()}), site="kayak")

    def test_empty_map(self):
        with pytest.raises(ValueError):
            load_response("{}")

    def test_site_ignored_for_single_response(self, success_response):
        assert load_response(success_response.to_json(), site="kayak").success

    def test_select_response_ignores_unpriced(self, success_response, search_request):
        offer = Offer(airline="Mystery Air", price="Price unavailable", duration="")
        unpriced = SearchResponse.from_result(
            search_request, SearchSuccess(offers=[offer], cheapest=offer, session_ref="x1")
        )
        chosen = select_response({"kayak": unpriced, "google_flights": success_response})
        assert chosen is success_response
