# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the Stagehand action driver."""

import sys
from types import ModuleType, SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from flighttracker.config import AgentConfig
from flighttracker.core.driver import StagehandDriver, _records_from
from flighttracker.core.session import BrowserSession
from flighttracker.exceptions import StepExecutionError, TimeoutError
from flighttracker.models import FlightRecord, FlightResults


@pytest.fixture
def session():
    return BrowserSession(id="abc123", cdp_ws_url="wss://proxy.onkernel.com/abc123")


@pytest.fixture
def mock_stagehand():
    """Create a mock Stagehand client with a mock page."""
    stagehand = MagicMock()
    stagehand.init = AsyncMock()
    stagehand.close = AsyncMock()
    stagehand.page = MagicMock()
    stagehand.page.goto = AsyncMock()
    stagehand.page.act = AsyncMock()
    stagehand.page.observe = AsyncMock(return_value=[{"description": "results"}])
    stagehand.page.extract = AsyncMock()
    return stagehand


@pytest.fixture
def started_driver(session, mock_stagehand):
    driver = StagehandDriver(session, AgentConfig(model_api_key="sk"), poll_interval=0)
    driver._stagehand = mock_stagehand
    return driver


@pytest.fixture
def stagehand_module(mock_stagehand):
    """Stand-in for the stagehand package, installed into sys.modules for one test."""
    module = ModuleType("stagehand")
    module.Stagehand = MagicMock(return_value=mock_stagehand)
    module.StagehandConfig = MagicMock(side_effect=lambda **kwargs: kwargs)
    with patch.dict(sys.modules, {"stagehand": module}):
        yield module


class TestLifecycle:
    """Tests for start() and close()."""

    @pytest.mark.asyncio
    async def test_start_attaches_over_cdp(self, session, mock_stagehand, stagehand_module):
        driver = StagehandDriver(session, AgentConfig(model_name="gpt-4o", model_api_key="sk"))

        async with driver:
            config = stagehand_module.StagehandConfig.call_args.kwargs
            assert config["env"] == "LOCAL"
            assert config["local_browser_launch_options"] == {"cdp_url": session.cdp_ws_url}
            assert config["model_name"] == "gpt-4o"
            mock_stagehand.init.assert_awaited_once()

        mock_stagehand.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_attach_failure(self, session, mock_stagehand, stagehand_module):
        mock_stagehand.init.side_effect = RuntimeError("CDP connection refused")
        driver = StagehandDriver(session)

        with pytest.raises(StepExecutionError) as exc_info:
            await driver.start()
        assert exc_info.value.step == "attach"

    @pytest.mark.asyncio
    async def test_close_errors_are_logged(self, started_driver, mock_stagehand):
        mock_stagehand.close.side_effect = RuntimeError("already closed")
        await started_driver.close()
        assert started_driver._stagehand is None

    def test_page_requires_start(self, session):
        with pytest.raises(StepExecutionError):
            StagehandDriver(session).page


class TestActions:
    """Tests for RemoteActions operations."""

    @pytest.mark.asyncio
    async def test_navigate_and_act(self, started_driver, mock_stagehand):
        await started_driver.navigate("https://www.google.com/travel/flights")
        await started_driver.perform_action("Set the departure date to June 15, 2026")

        mock_stagehand.page.goto.assert_awaited_once_with("https://www.google.com/travel/flights")
        mock_stagehand.page.act.assert_awaited_once_with("Set the departure date to June 15, 2026")

    @pytest.mark.asyncio
    async def test_wait_polls_until_found(self, started_driver, mock_stagehand):
        mock_stagehand.page.observe.side_effect = [[], [], [{"description": "results"}]]
        await started_driver.wait_for_condition("flight results are visible")
        assert mock_stagehand.page.observe.await_count == 3

    @pytest.mark.asyncio
    async def test_wait_observe_timeout(self, started_driver, mock_stagehand):
        mock_stagehand.page.observe.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")
        with pytest.raises(TimeoutError):
            await started_driver.wait_for_condition("flight results are visible")

    @pytest.mark.asyncio
    async def test_extract_structured(self, started_driver, mock_stagehand):
        mock_stagehand.page.extract.return_value = FlightResults(
            flights=[
                FlightRecord(
                    airline="KLM", price="$845", duration="19h 10m", stops=1,
                    departure_time="9:30 PM", arrival_time="4:40 PM",
                )
            ],
            total_results=1,
        )

        records = await started_driver.extract_structured("Extract all visible flight options")

        assert records[0]["airline"] == "KLM"
        assert mock_stagehand.page.extract.await_args.kwargs["schema"] is FlightResults

    @pytest.mark.asyncio
    async def test_extract_free_text(self, started_driver, mock_stagehand):
        agent = MagicMock()
        agent.execute = AsyncMock(return_value=SimpleNamespace(message="CHEAPEST FLIGHT: KLM - $845 - 19h"))
        mock_stagehand.agent.return_value = agent

        message = await started_driver.extract_free_text("Report the flights")

        assert message.startswith("CHEAPEST FLIGHT")
        assert agent.execute.await_args.kwargs["max_steps"] == 50


class TestRecordsFrom:
    """Tests for extract() result normalization."""

    def test_dict_with_flights(self):
        assert _records_from({"flights": [{"airline": "KLM"}]}) == [{"airline": "KLM"}]

    def test_wrapped_data(self):
        assert _records_from(SimpleNamespace(data={"flights": [{"airline": "KLM"}]})) == [{"airline": "KLM"}]

    def test_plain_list(self):
        assert _records_from([{"airline": "KLM"}, "noise"]) == [{"airline": "KLM"}]

    def test_none(self):
        assert _records_from(None) == []
