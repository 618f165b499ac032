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
Whole-plan retry with linear backoff.

Unlike per-request retry, every attempt here starts from scratch: a fresh
browser session is acquired, the full step plan runs from navigation, and
the session is released before the next attempt begins.

Delays grow linearly with the attempt number (5s, 10s, ... by default) and
are only slept between attempts, never after the last one.

Example:
    >>> controller = RetryController(session_manager, sequencer, ResultNormalizer())
    >>> result = await controller.execute(request, max_attempts=3)
    >>> if result.success:
    ...     print(result.cheapest.summary())
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from flighttracker.config import RetryConfig
from flighttracker.core.normalizer import ResultNormalizer
from flighttracker.core.sequencer import StepSequencer
from flighttracker.core.session import SessionManager
from flighttracker.exceptions import RETRYABLE_ERRORS, ConfigurationError
from flighttracker.models import SearchFailure, SearchRequest, SearchResult, SearchSuccess
from flighttracker.utils.logger import logger

Backoff = Callable[[int], float]


def linear_backoff(unit: float) -> Backoff:
    """Return a backoff where attempt n waits n * unit seconds."""
    def delay(attempt: int) -> float:
        return attempt * unit
    return delay


class RetryController:
    """
    Runs acquire -> sequence -> normalize -> release until one attempt succeeds.

    Attempt failures never escape execute(): they are logged and, once every
    attempt is used, flattened into a SearchFailure. Cancellation is not an
    attempt failure and propagates after the session is released.

    Attributes:
        session_manager: Source of one fresh browser session per attempt
        sequencer: Step plan run against each session
        normalizer: Turns the plan's extraction into a SearchSuccess
        config: Default attempt bound and backoff unit
    """

    def __init__(
        self,
        session_manager: SessionManager,
        sequencer: StepSequencer,
        normalizer: Optional[ResultNormalizer] = None,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session_manager = session_manager
        self.sequencer = sequencer
        self.normalizer = normalizer or ResultNormalizer()
        self.config = config or RetryConfig()
        self._sleep = sleep

    async def _attempt(self, request: SearchRequest, attempt: int) -> SearchSuccess:
        site = self.sequencer.site.key
        context = {"site": site, "attempt": attempt}
        async with self.session_manager.session(context) as session:
            raw = await self.sequencer.run(session, request)
            result = self.normalizer.normalize(raw, session_ref=session.id, site=site)
        return result.model_copy(update={"attempts": attempt})

    async def execute(
        self,
        request: SearchRequest,
        max_attempts: Optional[int] = None,
        backoff: Optional[Backoff] = None,
    ) -> SearchResult:
        """
        Search with retries.

        Args:
            request: What to search for
            max_attempts: Attempt bound, defaults to config.max_attempts
            backoff: attempt -> delay in seconds, defaults to linear
                backoff with config.backoff_seconds

        Returns:
            SearchSuccess from the first successful attempt, or SearchFailure
            carrying the last attempt's error

        Raises:
            ConfigurationError: If max_attempts is below 1; raised before
                any session is acquired
        """
        if max_attempts is None:
            max_attempts = self.config.max_attempts
        if max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}")
        backoff = backoff or linear_backoff(self.config.backoff_seconds)
        site = self.sequencer.site.key

        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            logger.info(f"[{site}] Attempt {attempt}/{max_attempts}")
            try:
                result = await self._attempt(request, attempt)
            except Exception as e:
                last_error = e
                if isinstance(e, RETRYABLE_ERRORS):
                    logger.warning(f"[{site}] Attempt {attempt} failed ({type(e).__name__}): {e}")
                else:
                    logger.error(f"[{site}] Attempt {attempt} failed with unexpected error: {e}")

                if attempt < max_attempts:
                    delay = backoff(attempt)
                    logger.info(f"[{site}] Retrying in {delay}s")
                    await self._sleep(delay)
                continue

            if attempt > 1:
                logger.info(f"[{site}] Search succeeded after {attempt} attempts")
            logger.info(
                f"[{site}] Found {len(result.offers)} flights. "
                f"Cheapest: {result.cheapest.airline} - {result.cheapest.price}"
            )
            return result

        logger.error(f"[{site}] All {max_attempts} attempts failed")
        return SearchFailure(
            message=str(last_error) if last_error else "Flight search failed",
            attempts_exhausted=max_attempts,
            error_type=type(last_error).__name__ if last_error else None,
            site=site,
        )
