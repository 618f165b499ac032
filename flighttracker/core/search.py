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
FlightSearch: the main entry point of flighttracker.

Wires configuration into a provisioner, session manager, step sequencer,
normalizer and retry controller, and exposes one-site and multi-site
searches.

Example:
    >>> async with FlightSearch(TrackerConfig.from_env()) as search:
    ...     result = await search.search(SearchRequest(
    ...         origin="Johannesburg", destination="Athens",
    ...         departDate="June 15, 2026", returnDate="June 29, 2026",
    ...     ))
    ...     response = search.to_response(request, result)
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Dict, Iterable, Optional

from flighttracker.config import TrackerConfig
from flighttracker.core.normalizer import ResultNormalizer
from flighttracker.core.provisioning import KernelBrowserProvisioner
from flighttracker.core.retry import RetryController
from flighttracker.core.sequencer import DriverFactory, StepSequencer
from flighttracker.core.session import BrowserProvisioner, SessionManager
from flighttracker.core.sites import get_site
from flighttracker.models import SearchRequest, SearchResponse, SearchResult
from flighttracker.utils.logger import logger


class FlightSearch:
    """
    Flight search orchestrator.

    Every search (and every site of a multi-site tour) gets its own
    sequencer and retry controller; only the provisioner and session
    manager are shared.

    Attributes:
        config: Complete tracker configuration
        provisioner: Remote browser platform client
        session_manager: Session lifecycle manager over the provisioner
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        provisioner: Optional[BrowserProvisioner] = None,
        driver_factory: Optional[DriverFactory] = None,
    ) -> None:
        self.config = config or TrackerConfig()
        self.provisioner = provisioner or KernelBrowserProvisioner.from_config(self.config.provisioning)
        self.session_manager = SessionManager(self.provisioner, self.config.provisioning)
        self.driver_factory = driver_factory
        # Fail fast on an unknown site
        get_site(self.config.plan.site)

    async def close(self) -> None:
        await self.session_manager.release_all()
        close = getattr(self.provisioner, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "FlightSearch":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _controller(self, site: Optional[str] = None) -> RetryController:
        plan = self.config.plan
        if site is not None and site != plan.site:
            plan = dataclasses.replace(plan, site=site)
        sequencer = StepSequencer(
            config=plan,
            agent_config=self.config.agent,
            driver_factory=self.driver_factory,
        )
        return RetryController(
            self.session_manager,
            sequencer,
            ResultNormalizer(plan.failure_markers),
            self.config.retry,
        )

    async def search(
        self,
        request: SearchRequest,
        site: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ) -> SearchResult:
        """
        Search one site, retrying the whole plan on failure.

        Args:
            request: What to search for
            site: Site key, defaults to the configured site
            max_attempts: Override the configured attempt bound

        Returns:
            SearchSuccess or SearchFailure
        """
        controller = self._controller(site)
        logger.info(
            f"Searching {controller.sequencer.site.name}: {request.origin} -> {request.destination} "
            f"({request.depart_date} to {request.return_date})"
        )
        return await controller.execute(request, max_attempts=max_attempts)

    async def search_sites(
        self,
        request: SearchRequest,
        sites: Iterable[str],
        max_attempts: Optional[int] = None,
    ) -> Dict[str, SearchResult]:
        """
        Search several sites concurrently.

        Each site runs its own retry-controlled search with its own
        sessions. Results are keyed by site key, in the order given.

        Raises:
            ConfigurationError: If any site key is unknown
        """
        keys = list(dict.fromkeys(get_site(site).key for site in sites))
        results = await asyncio.gather(
            *(self.search(request, site=key, max_attempts=max_attempts) for key in keys)
        )
        return dict(zip(keys, results))

    def to_response(self, request: SearchRequest, result: SearchResult) -> SearchResponse:
        return SearchResponse.from_result(
            request, result, inspector_url=self.config.provisioning.inspector_url
        )
