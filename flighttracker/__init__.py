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
flighttracker - Autonomous flight price tracking on remote browsers.

Drives Kernel cloud browsers with the Stagehand web agent to search flight
sites, retries whole searches on failure, and normalizes the results into
offers with a designated cheapest one.
"""

__version__ = "0.1.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from flighttracker.config import (
    AgentConfig,
    PlanConfig,
    ProvisioningConfig,
    RetryConfig,
    TrackerConfig,
)
from flighttracker.core.search import FlightSearch
from flighttracker.exceptions import (
    ConfigurationError,
    EmptyResultError,
    ExhaustedRetriesError,
    FlightTrackerError,
    ProvisioningError,
    StepExecutionError,
    TimeoutError,
)
from flighttracker.models import (
    Offer,
    SearchFailure,
    SearchRequest,
    SearchResponse,
    SearchSuccess,
)

__all__ = [
    # Core
    "FlightSearch",
    # Config
    "AgentConfig",
    "PlanConfig",
    "ProvisioningConfig",
    "RetryConfig",
    "TrackerConfig",
    # Models
    "Offer",
    "SearchFailure",
    "SearchRequest",
    "SearchResponse",
    "SearchSuccess",
    # Exceptions
    "ConfigurationError",
    "EmptyResultError",
    "ExhaustedRetriesError",
    "FlightTrackerError",
    "ProvisioningError",
    "StepExecutionError",
    "TimeoutError",
]
