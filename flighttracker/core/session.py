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
Remote browser session lifecycle.

This module provides the SessionManager class which owns every remote
browser used by a search attempt. A session is acquired from a
BrowserProvisioner, handed to exactly one attempt, and released exactly once
no matter how the attempt ends.

Example:
    >>> manager = SessionManager(provisioner, ProvisioningConfig(stealth=True))
    >>> async with manager.session({"site": "google_flights"}) as browser:
    ...     print(browser.cdp_ws_url)
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Protocol

from flighttracker.config import ProvisioningConfig
from flighttracker.exceptions import ProvisioningError
from flighttracker.utils.logger import logger


@dataclass
class BrowserSession:
    """
    Handle to one remote browser.

    Attributes:
        id: Session identifier assigned by the platform
        cdp_ws_url: Chrome DevTools Protocol endpoint used to control it
        live_view_url: Optional live view URL for watching the browser
        created_at: Acquisition time (epoch seconds)
        released: Set once the session has been handed back
    """

    id: str
    cdp_ws_url: str
    live_view_url: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    released: bool = False

    def inspector_url(self, base_url: str) -> str:
        """Diagnostic URL for this session under the given inspector base."""
        return f"{base_url.rstrip('/')}/{self.id}"


class BrowserProvisioner(Protocol):
    """Remote platform that allocates and deletes browsers."""

    async def create(
        self,
        *,
        pool: Optional[str] = None,
        profile_id: Optional[str] = None,
        stealth: bool = True,
        invocation_id: Optional[str] = None,
    ) -> BrowserSession:
        ...

    async def delete(self, session_id: str) -> None:
        ...


class SessionManager:
    """
    Acquires and releases remote browser sessions.

    Pool, profile and stealth settings come from the ProvisioningConfig the
    manager was built with. The manager never retries: a provisioning failure
    goes straight to the caller.

    Attributes:
        provisioner: Platform client used to create and delete browsers
        config: Provisioning settings applied to every acquisition
    """

    def __init__(self, provisioner: BrowserProvisioner, config: Optional[ProvisioningConfig] = None) -> None:
        self.provisioner = provisioner
        self.config = config or ProvisioningConfig()
        self._active: Dict[str, BrowserSession] = {}
        self._total_acquired = 0

    async def acquire(self, context: Optional[Mapping[str, Any]] = None) -> BrowserSession:
        """
        Allocate a fresh remote browser.

        Args:
            context: Request context; an "invocation_id" key overrides the
                configured invocation

        Returns:
            A new BrowserSession

        Raises:
            ProvisioningError: If the platform cannot allocate a browser
        """
        context = context or {}
        invocation_id = context.get("invocation_id") or self.config.invocation_id

        try:
            session = await self.provisioner.create(
                pool=self.config.pool,
                profile_id=self.config.profile_id,
                stealth=self.config.stealth,
                invocation_id=invocation_id,
            )
        except ProvisioningError:
            raise
        except Exception as e:
            raise ProvisioningError(f"Failed to provision browser: {e}") from e

        self._active[session.id] = session
        self._total_acquired += 1
        logger.info(f"Browser session acquired: {session.id}")
        logger.info(f"Session Inspector: {session.inspector_url(self.config.inspector_url)}")
        return session

    async def release(self, session: BrowserSession) -> None:
        """
        Hand a session back to the platform.

        Idempotent: releasing an already released session does nothing.
        Delete failures are logged, never raised, so release is safe on
        every exit path.
        """
        if session.released:
            return

        session.released = True
        self._active.pop(session.id, None)

        try:
            await self.provisioner.delete(session.id)
            logger.info(f"Browser session released: {session.id}")
        except Exception as e:
            logger.error(f"Error releasing browser session {session.id}: {e}")

    @asynccontextmanager
    async def session(self, context: Optional[Mapping[str, Any]] = None) -> AsyncIterator[BrowserSession]:
        """Acquire a session for the duration of an async with block."""
        session = await self.acquire(context)
        try:
            yield session
        finally:
            await self.release(session)

    async def release_all(self) -> None:
        """Release every session still held, e.g. on service shutdown."""
        for session in list(self._active.values()):
            await self.release(session)

    @property
    def active_count(self) -> int:
        return len(self._active)

    def get_stats(self) -> Dict[str, int]:
        return {
            "active_sessions": len(self._active),
            "total_acquired": self._total_acquired,
        }
