# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the exception hierarchy."""

import pytest

from flighttracker.exceptions import (
    RETRYABLE_ERRORS,
    ConfigurationError,
    EmptyResultError,
    ExhaustedRetriesError,
    FlightTrackerError,
    ProvisioningError,
    StepExecutionError,
    TimeoutError,
)


class TestHierarchy:
    """Tests for exception classes."""

    @pytest.mark.parametrize(
        "error_cls",
        [ProvisioningError, EmptyResultError, ConfigurationError],
    )
    def test_base_class(self, error_cls):
        assert issubclass(error_cls, FlightTrackerError)

    def test_step_name(self):
        error = StepExecutionError("click failed", step="submit")
        assert error.step == "submit"
        assert str(error) == "click failed"

    def test_timeout_is_not_builtin(self):
        error = TimeoutError("results not visible", timeout_ms=45_000)
        assert error.timeout_ms == 45_000
        assert isinstance(error, FlightTrackerError)

    def test_exhausted(self):
        error = ExhaustedRetriesError("failed", attempts=3, last_error="boom")
        assert error.attempts == 3
        assert error.last_error == "boom"

    def test_retryable_set(self):
        assert ExhaustedRetriesError not in RETRYABLE_ERRORS
        assert ConfigurationError not in RETRYABLE_ERRORS
        assert TimeoutError in RETRYABLE_ERRORS
