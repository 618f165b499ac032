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
Configuration for flighttracker.

Each concern has its own dataclass with a from_env() constructor. Nothing
here is read at import time: configuration objects are built once by the
caller (CLI, service, tests) and passed down explicitly.

Environment Variables:
    KERNEL_API_KEY                    Kernel API key (required to provision browsers)
    KERNEL_BASE_URL                   Kernel API base URL
    FLIGHTTRACKER_BROWSER_POOL        Browser pool name
    FLIGHTTRACKER_BROWSER_PROFILE     Browser profile id (persists cookies)
    FLIGHTTRACKER_STEALTH             Request stealth browsers (default: true)
    KERNEL_INVOCATION_ID              Kernel invocation the browsers belong to
    FLIGHTTRACKER_INSPECTOR_URL       Base URL of the session inspector
    FLIGHTTRACKER_PROVISION_TIMEOUT   HTTP timeout for browser API calls, in seconds
    FLIGHTTRACKER_MODEL               Model used by the web agent
    FLIGHTTRACKER_MODEL_API_KEY       Model API key (falls back to OPENAI_API_KEY)
    FLIGHTTRACKER_DOM_SETTLE_MS       Agent DOM settle timeout
    FLIGHTTRACKER_AGENT_MAX_STEPS     Step cap for free-text agent runs (default: 50)
    FLIGHTTRACKER_AGENT_VERBOSE       Agent verbosity, 0-2
    FLIGHTTRACKER_SITE                Site to search (google_flights, kayak, skyscanner)
    FLIGHTTRACKER_RESULTS_TIMEOUT_MS  Bound on the results-visible wait
    FLIGHTTRACKER_STEP_DELAY          Pause after each form step, in seconds
    FLIGHTTRACKER_RESULTS_SETTLE      Pause once results are visible, in seconds
    FLIGHTTRACKER_EXTRACTION_MODE     structured or free_text
    FLIGHTTRACKER_ALLOW_FREE_TEXT     Enable the free-text extraction path
    FLIGHTTRACKER_FAILURE_MARKERS     Comma-separated failure phrases for free-text reports
    FLIGHTTRACKER_MAX_ATTEMPTS        Attempts per search (default: 3)
    FLIGHTTRACKER_BACKOFF_SECONDS     Linear backoff unit (default: 5)

Example:
    >>> config = TrackerConfig.from_env()
    >>> config.retry.max_attempts
    3
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from flighttracker.exceptions import ConfigurationError
from flighttracker.models import ExtractionKind

DEFAULT_KERNEL_URL = "https://api.onkernel.com"
DEFAULT_INSPECTOR_URL = "https://app.onkernel.com/sessions"
DEFAULT_FAILURE_MARKERS: Tuple[str, ...] = ("unable to recover", "browser issues")


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


@dataclass
class ProvisioningConfig:
    """
    Settings for allocating remote browsers.

    Attributes:
        api_key: Kernel API key
        base_url: Kernel API base URL
        pool: Browser pool to draw from, None for on-demand browsers
        profile_id: Profile whose cookies the browser starts with
        stealth: Ask for stealth browsers
        invocation_id: Kernel invocation the browsers belong to
        inspector_url: Base URL for session inspector links
        request_timeout: HTTP timeout for browser API calls, in seconds
    """

    api_key: Optional[str] = None
    base_url: str = DEFAULT_KERNEL_URL
    pool: Optional[str] = None
    profile_id: Optional[str] = None
    stealth: bool = True
    invocation_id: Optional[str] = None
    inspector_url: str = DEFAULT_INSPECTOR_URL
    request_timeout: float = 60.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ProvisioningConfig":
        env = os.environ if env is None else env
        return cls(
            api_key=env.get("KERNEL_API_KEY") or None,
            base_url=env.get("KERNEL_BASE_URL") or DEFAULT_KERNEL_URL,
            pool=env.get("FLIGHTTRACKER_BROWSER_POOL") or None,
            profile_id=env.get("FLIGHTTRACKER_BROWSER_PROFILE") or None,
            stealth=_env_bool(env, "FLIGHTTRACKER_STEALTH", True),
            invocation_id=env.get("KERNEL_INVOCATION_ID") or None,
            inspector_url=env.get("FLIGHTTRACKER_INSPECTOR_URL") or DEFAULT_INSPECTOR_URL,
            request_timeout=_env_float(env, "FLIGHTTRACKER_PROVISION_TIMEOUT", 60.0),
        )


@dataclass
class AgentConfig:
    """
    Settings for the web agent driving each browser.

    Attributes:
        model_name: Model used for act/observe/extract and the agent
        model_api_key: API key for that model
        dom_settle_timeout_ms: How long the agent waits for the DOM to settle
        max_steps: Step cap for free-text agent runs
        verbose: Agent library verbosity (0-2)
    """

    model_name: str = "gpt-4o"
    model_api_key: Optional[str] = None
    dom_settle_timeout_ms: int = 30_000
    max_steps: int = 50
    verbose: int = 1

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AgentConfig":
        env = os.environ if env is None else env
        return cls(
            model_name=env.get("FLIGHTTRACKER_MODEL") or "gpt-4o",
            model_api_key=env.get("FLIGHTTRACKER_MODEL_API_KEY") or env.get("OPENAI_API_KEY") or None,
            dom_settle_timeout_ms=_env_int(env, "FLIGHTTRACKER_DOM_SETTLE_MS", 30_000),
            max_steps=_env_int(env, "FLIGHTTRACKER_AGENT_MAX_STEPS", 50),
            verbose=_env_int(env, "FLIGHTTRACKER_AGENT_VERBOSE", 1),
        )


@dataclass
class PlanConfig:
    """
    Settings for the step plan run against each browser.

    Attributes:
        site: Site key (see flighttracker.core.sites)
        results_timeout_ms: Bound on the results-visible wait
        step_delay: Pause after each form step, in seconds
        results_settle: Extra pause once results are visible, in seconds
        extraction_mode: Structured (default) or free-text extraction
        allow_free_text: Capability flag gating the free-text path
        failure_markers: Phrases that mark a free-text report as failed
    """

    site: str = "google_flights"
    results_timeout_ms: int = 45_000
    step_delay: float = 1.0
    results_settle: float = 5.0
    extraction_mode: ExtractionKind = ExtractionKind.STRUCTURED
    allow_free_text: bool = False
    failure_markers: Tuple[str, ...] = DEFAULT_FAILURE_MARKERS

    def __post_init__(self) -> None:
        self.extraction_mode = ExtractionKind(self.extraction_mode)
        if self.results_timeout_ms <= 0:
            raise ConfigurationError("results_timeout_ms must be positive")
        if self.extraction_mode is ExtractionKind.FREE_TEXT and not self.allow_free_text:
            raise ConfigurationError(
                "Free-text extraction is disabled; set allow_free_text=True "
                "(FLIGHTTRACKER_ALLOW_FREE_TEXT=true) to use it"
            )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "PlanConfig":
        env = os.environ if env is None else env
        mode = env.get("FLIGHTTRACKER_EXTRACTION_MODE") or ExtractionKind.STRUCTURED.value
        try:
            extraction_mode = ExtractionKind(mode.strip().lower())
        except ValueError as e:
            raise ConfigurationError(f"Unknown extraction mode: {mode}") from e
        markers = env.get("FLIGHTTRACKER_FAILURE_MARKERS")
        return cls(
            site=env.get("FLIGHTTRACKER_SITE") or "google_flights",
            results_timeout_ms=_env_int(env, "FLIGHTTRACKER_RESULTS_TIMEOUT_MS", 45_000),
            step_delay=_env_float(env, "FLIGHTTRACKER_STEP_DELAY", 1.0),
            results_settle=_env_float(env, "FLIGHTTRACKER_RESULTS_SETTLE", 5.0),
            extraction_mode=extraction_mode,
            allow_free_text=_env_bool(env, "FLIGHTTRACKER_ALLOW_FREE_TEXT", False),
            failure_markers=(
                tuple(m.strip() for m in markers.split(",") if m.strip())
                if markers
                else DEFAULT_FAILURE_MARKERS
            ),
        )


@dataclass
class RetryConfig:
    """
    Settings for the retry controller.

    Attributes:
        max_attempts: Attempts per search, each with a fresh browser
        backoff_seconds: Linear backoff unit; attempt n waits n * backoff_seconds
    """

    max_attempts: int = 3
    backoff_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ConfigurationError("backoff_seconds must not be negative")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RetryConfig":
        env = os.environ if env is None else env
        return cls(
            max_attempts=_env_int(env, "FLIGHTTRACKER_MAX_ATTEMPTS", 3),
            backoff_seconds=_env_float(env, "FLIGHTTRACKER_BACKOFF_SECONDS", 5.0),
        )


@dataclass
class TrackerConfig:
    """Complete configuration for a FlightSearch."""

    provisioning: ProvisioningConfig = field(default_factory=ProvisioningConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    plan: PlanConfig = field(default_factory=PlanConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "TrackerConfig":
        env = os.environ if env is None else env
        return cls(
            provisioning=ProvisioningConfig.from_env(env),
            agent=AgentConfig.from_env(env),
            plan=PlanConfig.from_env(env),
            retry=RetryConfig.from_env(env),
        )
