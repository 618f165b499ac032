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
Step sequencer for flight searches.

A search is a fixed, ordered plan of remote actions run against one browser
session:

    navigate -> fill origin -> select origin -> fill destination ->
    select destination -> depart date -> return date -> submit ->
    wait for results -> extract

Steps run strictly one after another and are never retried individually.
The first failing step aborts the whole plan; retrying is the job of the
RetryController, which starts over from navigation with a new session.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import AsyncContextManager, Awaitable, Callable, List, Optional, Union

from flighttracker.config import AgentConfig, PlanConfig
from flighttracker.core.driver import RemoteActions, StagehandDriver
from flighttracker.core.session import BrowserSession
from flighttracker.core.sites import SiteProfile, get_site
from flighttracker.exceptions import FlightTrackerError, StepExecutionError, TimeoutError
from flighttracker.models import (
    ExtractionKind,
    FreeTextExtraction,
    SearchRequest,
    StructuredExtraction,
)
from flighttracker.utils.logger import logger

DriverFactory = Callable[[BrowserSession], AsyncContextManager[RemoteActions]]

STRUCTURED_INSTRUCTION = (
    "Extract all visible flight options from the results page, including airline, "
    "price, duration, stops, departure time, and arrival time"
)

FREE_TEXT_INSTRUCTION = """Look at ALL the flight options shown on the results page for {origin} to {destination} ({depart_date} to {return_date}).
Extract the prices, airlines, and durations, and report your findings in exactly this format:

CHEAPEST FLIGHT: [airline] - [price] - [duration]

ALL OPTIONS FOUND:
1. [airline] - [price] - [duration]
2. [airline] - [price] - [duration]
(continue for all visible options)

Do not ask for confirmation. Your task is only complete when you have reported actual flight prices."""


@dataclass(frozen=True)
class PlanStep:
    """
    One remote action of the plan.

    Attributes:
        name: Step name used in logs and StepExecutionError
        action: "navigate", "act", "wait" or "extract"
        argument: URL, instruction or condition text
    """

    name: str
    action: str
    argument: str


def build_plan(site: SiteProfile, request: SearchRequest, mode: ExtractionKind) -> List[PlanStep]:
    """Return the ordered steps for one search of a site."""
    if mode is ExtractionKind.STRUCTURED:
        extraction = STRUCTURED_INSTRUCTION
    else:
        extraction = FREE_TEXT_INSTRUCTION.format(
            origin=request.origin,
            destination=request.destination,
            depart_date=request.depart_date,
            return_date=request.return_date,
        )

    return [
        PlanStep("navigate", "navigate", site.url),
        PlanStep(
            "fill_origin",
            "act",
            f'Click on the "{site.origin_field}" field and type "{request.origin}"',
        ),
        PlanStep(
            "select_origin",
            "act",
            f"Click on the first matching airport suggestion for {request.origin}",
        ),
        PlanStep(
            "fill_destination",
            "act",
            f'Click on the "{site.destination_field}" field and type "{request.destination}"',
        ),
        PlanStep(
            "select_destination",
            "act",
            f"Click on the first matching airport suggestion for {request.destination}",
        ),
        PlanStep("depart_date", "act", f"Set the departure date to {request.depart_date}"),
        PlanStep("return_date", "act", f"Set the return date to {request.return_date}"),
        PlanStep(
            "submit",
            "act",
            f"Click the {site.search_button} button to search for flights",
        ),
        PlanStep("wait_for_results", "wait", f"Wait until {site.results_hint}"),
        PlanStep("extract", "extract", extraction),
    ]


class StepSequencer:
    """
    Runs the search plan against one browser session.

    Attributes:
        site: Site the plan targets
        config: Plan timing and extraction settings
        driver_factory: Opens a RemoteActions driver bound to a session

    Example:
        >>> sequencer = StepSequencer(PlanConfig(site="kayak"))
        >>> raw = await sequencer.run(session, request)
        >>> raw.kind
        'structured'
    """

    def __init__(
        self,
        config: Optional[PlanConfig] = None,
        agent_config: Optional[AgentConfig] = None,
        driver_factory: Optional[DriverFactory] = None,
        site: Optional[SiteProfile] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or PlanConfig()
        self.site = site or get_site(self.config.site)
        self.agent_config = agent_config or AgentConfig()
        self.driver_factory = driver_factory or self._default_driver
        self._sleep = sleep

    def _default_driver(self, session: BrowserSession) -> StagehandDriver:
        return StagehandDriver(session, self.agent_config)

    async def run(
        self, session: BrowserSession, request: SearchRequest
    ) -> Union[StructuredExtraction, FreeTextExtraction]:
        """
        Run every step of the plan, in order.

        Args:
            session: The attempt's browser session
            request: What to search for

        Returns:
            StructuredExtraction or FreeTextExtraction, by extraction mode

        Raises:
            StepExecutionError: If a driver call fails
            TimeoutError: If results do not appear within results_timeout_ms
        """
        steps = build_plan(self.site, request, self.config.extraction_mode)

        try:
            async with self.driver_factory(session) as driver:
                for step in steps[:-1]:
                    await self._run_step(driver, step)
                return await self._extract(driver, steps[-1])
        except FlightTrackerError:
            raise
        except Exception as e:
            raise StepExecutionError(f"Browser driver failed: {e}", step="driver") from e

    async def _run_step(self, driver: RemoteActions, step: PlanStep) -> None:
        logger.info(f"[{self.site.key}] {step.name}")

        if step.action == "wait":
            await self._wait_for_results(driver, step)
            return

        try:
            if step.action == "navigate":
                await driver.navigate(step.argument)
            else:
                await driver.perform_action(step.argument)
        except FlightTrackerError:
            raise
        except Exception as e:
            raise StepExecutionError(f"Step '{step.name}' failed: {e}", step=step.name) from e

        if self.config.step_delay > 0:
            await self._sleep(self.config.step_delay)

    async def _wait_for_results(self, driver: RemoteActions, step: PlanStep) -> None:
        timeout_ms = self.config.results_timeout_ms
        try:
            await asyncio.wait_for(driver.wait_for_condition(step.argument), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Flight results not visible after {timeout_ms}ms", timeout_ms=timeout_ms
            ) from e
        except FlightTrackerError:
            raise
        except Exception as e:
            raise StepExecutionError(f"Step '{step.name}' failed: {e}", step=step.name) from e

        if self.config.results_settle > 0:
            await self._sleep(self.config.results_settle)

    async def _extract(
        self, driver: RemoteActions, step: PlanStep
    ) -> Union[StructuredExtraction, FreeTextExtraction]:
        logger.info(f"[{self.site.key}] {step.name} ({self.config.extraction_mode.value})")
        try:
            if self.config.extraction_mode is ExtractionKind.STRUCTURED:
                records = await driver.extract_structured(step.argument)
                logger.info(f"[{self.site.key}] Extracted {len(records)} flights")
                return StructuredExtraction(records=records)
            message = await driver.extract_free_text(step.argument)
            return FreeTextExtraction(message=message)
        except FlightTrackerError:
            raise
        except Exception as e:
            raise StepExecutionError(f"Step '{step.name}' failed: {e}", step=step.name) from e
