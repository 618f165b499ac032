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

"""Custom exceptions for flighttracker.

This module defines the exception hierarchy used throughout flighttracker.
All exceptions inherit from FlightTrackerError for easy catching and handling.

Exception Hierarchy:
    FlightTrackerError (base)
    ├── ProvisioningError - Remote browser could not be allocated (retryable)
    ├── StepExecutionError - A remote action or extraction call failed (retryable)
    ├── TimeoutError - Results did not appear in time (retryable)
    ├── EmptyResultError - Search finished but yielded no offers (retryable)
    ├── ExhaustedRetriesError - Every attempt failed (terminal)
    └── ConfigurationError - Invalid or missing configuration

Only ConfigurationError is raised outside of a search attempt. The retryable
errors are caught by the RetryController and flattened into a SearchFailure.

Example:
    result = await search.search(request)
    try:
        result.raise_for_failure()
    except ExhaustedRetriesError as e:
        logger.error(f"Search failed after {e.attempts} attempts: {e}")
"""

from typing import Optional


class FlightTrackerError(Exception):
    """Base exception for all flighttracker errors.

    Catch this to handle any error raised by the package with a single
    except clause.
    """
    pass


class ProvisioningError(FlightTrackerError):
    """Exception raised when a remote browser cannot be allocated.

    Examples:
        - Browser pool exhausted
        - Account quota reached
        - Browsers API unreachable or returned an error status
    """
    pass


class StepExecutionError(FlightTrackerError):
    """Exception raised when one step of the search plan fails.

    Wraps whatever the action driver raised. The failing step name is kept
    so attempt logs show where the sequence stopped.

    Attributes:
        step: Name of the plan step that failed
    """

    def __init__(self, message: str, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step


class TimeoutError(FlightTrackerError):
    """Exception raised when the results-visible condition is not met in time.

    Attributes:
        timeout_ms: The bound that was exceeded, in milliseconds
    """

    def __init__(self, message: str, timeout_ms: Optional[int] = None) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms


class EmptyResultError(FlightTrackerError):
    """Exception raised when a search completes but yields no usable offers.

    Usually a transient rendering issue on the results page, so it is
    retried like any other attempt failure.

    Examples:
        - Structured extraction returned an empty list
        - Agent message has no CHEAPEST FLIGHT marker
        - No offer carries a comparable price
    """
    pass


class ExhaustedRetriesError(FlightTrackerError):
    """Exception raised when every search attempt has failed.

    Never raised inside the retry loop. SearchFailure.raise_for_failure()
    produces it for callers that prefer exceptions over result values.

    Attributes:
        attempts: Number of attempts that were made
        last_error: Message of the final attempt's error
    """

    def __init__(self, message: str, attempts: int, last_error: Optional[str] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class ConfigurationError(FlightTrackerError):
    """Exception raised for configuration errors.

    Examples:
        - Missing KERNEL_API_KEY
        - Unknown site key
        - Free-text extraction requested without enabling it
    """
    pass


RETRYABLE_ERRORS = (
    ProvisioningError,
    StepExecutionError,
    TimeoutError,
    EmptyResultError,
)
