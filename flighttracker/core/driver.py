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
Action driver for remote browsers.

The step sequencer only talks to the RemoteActions protocol: navigate,
perform a natural-language action, wait for a described condition, and
extract results either against a schema or as an agent's free-text report.

StagehandDriver implements the protocol with the Stagehand web agent,
attached over CDP to a browser allocated by the SessionManager.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Protocol

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from flighttracker.config import AgentConfig
from flighttracker.core.session import BrowserSession
from flighttracker.exceptions import StepExecutionError, TimeoutError
from flighttracker.models import FlightResults
from flighttracker.utils.logger import logger

AGENT_INSTRUCTIONS = (
    "You are a helpful assistant that searches flight booking sites. "
    "Do not ask follow-up questions; complete the task with the information given."
)


class RemoteActions(Protocol):
    """Operations the step sequencer performs against a remote browser."""

    async def navigate(self, url: str) -> None:
        ...

    async def perform_action(self, instruction: str) -> None:
        ...

    async def wait_for_condition(self, description: str) -> None:
        ...

    async def extract_structured(self, instruction: str) -> List[Dict[str, Any]]:
        ...

    async def extract_free_text(self, instruction: str) -> str:
        ...


class StagehandDriver:
    """
    RemoteActions backed by Stagehand.

    Attributes:
        session: The browser session being driven
        config: Agent model and timing settings
        poll_interval: Seconds between observe calls in wait_for_condition

    Example:
        >>> async with StagehandDriver(session, AgentConfig()) as driver:
        ...     await driver.navigate("https://www.google.com/travel/flights")
        ...     await driver.perform_action("click on the 'Where from?' field")
    """

    def __init__(
        self,
        session: BrowserSession,
        config: Optional[AgentConfig] = None,
        poll_interval: float = 2.0,
    ) -> None:
        self.session = session
        self.config = config or AgentConfig()
        self.poll_interval = poll_interval
        self._stagehand = None

    async def start(self) -> None:
        """Attach Stagehand to the remote browser over CDP."""
        from stagehand import Stagehand, StagehandConfig

        stagehand_config = StagehandConfig(
            env="LOCAL",
            model_name=self.config.model_name,
            model_api_key=self.config.model_api_key,
            verbose=self.config.verbose,
            dom_settle_timeout_ms=self.config.dom_settle_timeout_ms,
            local_browser_launch_options={"cdp_url": self.session.cdp_ws_url},
        )
        self._stagehand = Stagehand(stagehand_config)
        try:
            await self._stagehand.init()
        except Exception as e:
            self._stagehand = None
            raise StepExecutionError(f"Failed to attach to browser {self.session.id}: {e}", step="attach") from e
        logger.debug(f"Stagehand attached to session {self.session.id}")

    async def close(self) -> None:
        if self._stagehand is None:
            return
        stagehand, self._stagehand = self._stagehand, None
        try:
            await stagehand.close()
        except Exception as e:
            logger.warning(f"Error detaching from session {self.session.id}: {e}")

    async def __aenter__(self) -> "StagehandDriver":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def page(self):
        if self._stagehand is None:
            raise StepExecutionError("Driver not started. Call start() first.")
        return self._stagehand.page

    async def navigate(self, url: str) -> None:
        await self.page.goto(url)

    async def perform_action(self, instruction: str) -> None:
        await self.page.act(instruction)

    async def wait_for_condition(self, description: str) -> None:
        """
        Observe the page until something matching the description appears.

        Polls forever; callers bound the wait (see StepSequencer).

        Raises:
            TimeoutError: If an observe call itself times out
        """
        while True:
            try:
                found = await self.page.observe(description)
            except PlaywrightTimeoutError as e:
                raise TimeoutError(f"Timed out observing: {description}") from e
            if found:
                return
            await asyncio.sleep(self.poll_interval)

    async def extract_structured(self, instruction: str) -> List[Dict[str, Any]]:
        """Extract flight rows against the FlightResults schema."""
        result = await self.page.extract(instruction, schema=FlightResults)
        return _records_from(result)

    async def extract_free_text(self, instruction: str) -> str:
        """Run an autonomous agent task and return its final report."""
        if self._stagehand is None:
            raise StepExecutionError("Driver not started. Call start() first.")
        agent = self._stagehand.agent(
            model=self.config.model_name,
            instructions=AGENT_INSTRUCTIONS,
            options={"apiKey": self.config.model_api_key},
        )
        result = await agent.execute(instruction=instruction, max_steps=self.config.max_steps)
        return getattr(result, "message", None) or ""


def _records_from(result: Any) -> List[Dict[str, Any]]:
    """Normalize an extract() return value into a list of row dicts."""
    if result is None:
        return []
    data = getattr(result, "data", result)
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    if isinstance(data, dict):
        data = data.get("flights", [])
    if not isinstance(data, list):
        return []
    records = []
    for row in data:
        if hasattr(row, "model_dump"):
            row = row.model_dump()
        if isinstance(row, dict):
            records.append(row)
    return records
