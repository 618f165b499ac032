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

"""API key authentication for the HTTP service.

Keys come from FLIGHTTRACKER_API_KEYS (comma-separated). When no key is
configured the service runs open and verify_api_key lets every request in.
"""

from __future__ import annotations

import os
import secrets
from typing import Iterable, Mapping, Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


class APIKeyManager:
    """Holds the set of accepted API keys."""

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self.keys = {key.strip() for key in keys if key and key.strip()}

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "APIKeyManager":
        env = os.environ if env is None else env
        return cls((env.get("FLIGHTTRACKER_API_KEYS") or "").split(","))

    @property
    def enabled(self) -> bool:
        return bool(self.keys)

    def validate_key(self, key: str) -> bool:
        """Constant-time check of a key against every accepted key."""
        matched = False
        for candidate in self.keys:
            if secrets.compare_digest(candidate.encode(), key.encode()):
                matched = True
        return matched


async def verify_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """
    Verify the X-API-Key header.

    Returns:
        The accepted key, or None when authentication is disabled

    Raises:
        HTTPException: If authentication is enabled and the key is missing
            or unknown
    """
    manager: APIKeyManager = request.app.state.api_key_manager
    if not manager.enabled:
        return None

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not manager.validate_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key
