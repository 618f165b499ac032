# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the Kernel browsers API client."""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from flighttracker.config import ProvisioningConfig
from flighttracker.core.provisioning import KernelBrowserProvisioner
from flighttracker.exceptions import ConfigurationError, ProvisioningError


@pytest.fixture
def kernel():
    return KernelBrowserProvisioner(api_key="sk_kernel", base_url="https://api.onkernel.com/")


class TestInit:
    """Tests for KernelBrowserProvisioner construction."""

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            KernelBrowserProvisioner(api_key=None)

    def test_from_config(self):
        config = ProvisioningConfig(api_key="sk", base_url="https://kernel.test", request_timeout=10)
        provisioner = KernelBrowserProvisioner.from_config(config)
        assert provisioner.base_url == "https://kernel.test"
        assert provisioner.request_timeout == 10

    def test_trailing_slash_stripped(self, kernel):
        assert kernel.base_url == "https://api.onkernel.com"


class TestCreate:
    """Tests for create()."""

    @pytest.mark.asyncio
    async def test_create_session(self, kernel):
        body = {
            "session_id": "abc123",
            "cdp_ws_url": "wss://proxy.onkernel.com/abc123",
            "browser_live_view_url": "https://live.onkernel.com/abc123",
        }
        with patch.object(kernel, "_request", AsyncMock(return_value=(200, body))) as request:
            session = await kernel.create(pool="flights", profile_id="p1", stealth=True, invocation_id="inv")

        request.assert_awaited_once_with(
            "POST",
            "/browsers",
            {"stealth": True, "invocation_id": "inv", "pool": "flights", "profile": {"id": "p1"}},
        )
        assert session.id == "abc123"
        assert session.cdp_ws_url == "wss://proxy.onkernel.com/abc123"
        assert session.live_view_url == "https://live.onkernel.com/abc123"

    @pytest.mark.asyncio
    async def test_minimal_payload(self, kernel):
        body = {"session_id": "abc", "cdp_ws_url": "wss://x"}
        with patch.object(kernel, "_request", AsyncMock(return_value=(201, body))) as request:
            await kernel.create()
        assert request.await_args.args[2] == {"stealth": True}

    @pytest.mark.asyncio
    async def test_error_status(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(return_value=(429, "pool exhausted"))):
            with pytest.raises(ProvisioningError) as exc_info:
                await kernel.create()
        assert "429" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))):
            with pytest.raises(ProvisioningError):
                await kernel.create()

    @pytest.mark.asyncio
    async def test_timeout(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(side_effect=asyncio.TimeoutError())):
            with pytest.raises(ProvisioningError):
                await kernel.create()

    @pytest.mark.asyncio
    async def test_incomplete_response(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(return_value=(200, {"session_id": "abc"}))):
            with pytest.raises(ProvisioningError):
                await kernel.create()


class TestDelete:
    """Tests for delete()."""

    @pytest.mark.asyncio
    async def test_delete(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(return_value=(204, ""))) as request:
            await kernel.delete("abc123")
        request.assert_awaited_once_with("DELETE", "/browsers/abc123")

    @pytest.mark.asyncio
    async def test_already_deleted(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(return_value=(404, "not found"))):
            await kernel.delete("abc123")

    @pytest.mark.asyncio
    async def test_error_status(self, kernel):
        with patch.object(kernel, "_request", AsyncMock(return_value=(500, "boom"))):
            with pytest.raises(ProvisioningError):
                await kernel.delete("abc123")


class TestLifecycle:
    """Tests for the aiohttp session lifecycle."""

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes(self, kernel):
        async with kernel as provisioner:
            assert provisioner._http_session is not None
            http_session = provisioner._http_session
        assert http_session.closed
        assert kernel._http_session is None

    @pytest.mark.asyncio
    async def test_close_without_start(self, kernel):
        await kernel.close()
        assert kernel._http_session is None
