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
Kernel browsers API client.

KernelBrowserProvisioner talks to the Kernel REST API over aiohttp:

    POST   {base_url}/browsers           -> {session_id, cdp_ws_url, browser_live_view_url}
    DELETE {base_url}/browsers/{id}

Requests carry the API key as a bearer token.

Example:
    >>> async with KernelBrowserProvisioner.from_config(config) as provisioner:
    ...     manager = SessionManager(provisioner, config)
    ...     async with manager.session() as browser:
    ...         ...
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Tuple

import aiohttp

from flighttracker.config import DEFAULT_KERNEL_URL, ProvisioningConfig
from flighttracker.core.session import BrowserSession
from flighttracker.exceptions import ConfigurationError, ProvisioningError
from flighttracker.utils.logger import logger


class KernelBrowserProvisioner:
    """
    Allocates and deletes remote browsers through the Kernel API.

    The underlying aiohttp session is opened lazily on first use, or by
    start(), and must be closed with close() (or by using the provisioner
    as an async context manager).

    Attributes:
        api_key: Kernel API key
        base_url: Kernel API base URL
        request_timeout: Total timeout per HTTP call, in seconds
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_KERNEL_URL,
        request_timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ConfigurationError("KERNEL_API_KEY is required to provision browsers")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self._http_session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config: ProvisioningConfig) -> "KernelBrowserProvisioner":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            request_timeout=config.request_timeout,
        )

    async def start(self) -> None:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                }
            )

    async def close(self) -> None:
        if self._http_session and not self._http_session.closed:
            await self._http_session.close()
        self._http_session = None

    async def __aenter__(self) -> "KernelBrowserProvisioner":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Any]:
        """Send one API call and return (status, decoded body)."""
        await self.start()
        async with self._http_session.request(
            method,
            f"{self.base_url}{path}",
            json=payload,
            timeout=aiohttp.ClientTimeout(total=self.request_timeout),
        ) as response:
            if response.content_type == "application/json":
                body = await response.json()
            else:
                body = await response.text()
            return response.status, body

    async def create(
        self,
        *,
        pool: Optional[str] = None,
        profile_id: Optional[str] = None,
        stealth: bool = True,
        invocation_id: Optional[str] = None,
    ) -> BrowserSession:
        """
        Create a remote browser.

        Raises:
            ProvisioningError: On transport errors, error statuses or a
                response without a session id and CDP URL
        """
        payload: Dict[str, Any] = {"stealth": stealth}
        if invocation_id:
            payload["invocation_id"] = invocation_id
        if pool:
            payload["pool"] = pool
        if profile_id:
            payload["profile"] = {"id": profile_id}

        try:
            status, body = await self._request("POST", "/browsers", payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProvisioningError(f"Browsers API unreachable: {e}") from e

        if status >= 400:
            raise ProvisioningError(f"Browsers API error {status}: {body}")

        if not isinstance(body, dict) or not body.get("session_id") or not body.get("cdp_ws_url"):
            raise ProvisioningError(f"Unexpected browsers API response: {body}")

        logger.debug(f"Kernel browser created: {body['session_id']}")
        return BrowserSession(
            id=body["session_id"],
            cdp_ws_url=body["cdp_ws_url"],
            live_view_url=body.get("browser_live_view_url"),
        )

    async def delete(self, session_id: str) -> None:
        """
        Delete a remote browser.

        A 404 means the browser is already gone and is not an error.

        Raises:
            ProvisioningError: On transport errors or other error statuses
        """
        try:
            status, body = await self._request("DELETE", f"/browsers/{session_id}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProvisioningError(f"Browsers API unreachable: {e}") from e

        if status == 404:
            logger.debug(f"Kernel browser {session_id} already deleted")
            return
        if status >= 400:
            raise ProvisioningError(f"Failed to delete browser {session_id}: {status} {body}")
