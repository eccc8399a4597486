"""Workflow configuration loaded from environment variables.

All configuration values have sensible defaults.  Polling aggressiveness
is tuned here (not per call) so operators can change it without touching
operation logic.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dataset_workflow.core.constants import (
    DEFAULT_BASELINE_RETRY_AFTER_S,
    DEFAULT_GEOCODING_CHECK_INTERVAL_S,
    DEFAULT_GEOCODING_MAX_CHECKS,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_S,
)
from dataset_workflow.core.exceptions import WorkflowError


class ConfigValidationError(WorkflowError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class WorkflowConfig:
    """Immutable workflow configuration.

    Attributes:
        base_url: Root URL of the publishing service (e.g. ``https://data.example.org``).
        max_poll_attempts: Polls allowed per accepted operation.
        baseline_retry_after_s: Wait before a poll when the server gives no Retry-After.
        geocoding_check_interval_s: Wait between pending-geocoding checks.
        geocoding_max_checks: Bound on pending-geocoding checks (0 = unbounded).
        request_timeout_s: Per-request HTTP timeout in seconds.
    """

    base_url: str = ""
    max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS
    baseline_retry_after_s: float = DEFAULT_BASELINE_RETRY_AFTER_S
    geocoding_check_interval_s: float = DEFAULT_GEOCODING_CHECK_INTERVAL_S
    geocoding_max_checks: int = DEFAULT_GEOCODING_MAX_CHECKS
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S

    @classmethod
    def from_env(cls) -> WorkflowConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``WORKFLOW_MAX_POLL_ATTEMPTS=abc``).
        """
        config = cls(
            base_url=os.getenv("WORKFLOW_BASE_URL", ""),
            max_poll_attempts=int(
                os.getenv("WORKFLOW_MAX_POLL_ATTEMPTS", str(DEFAULT_MAX_POLL_ATTEMPTS))
            ),
            baseline_retry_after_s=float(
                os.getenv("WORKFLOW_BASELINE_RETRY_AFTER_S", str(DEFAULT_BASELINE_RETRY_AFTER_S))
            ),
            geocoding_check_interval_s=float(
                os.getenv(
                    "WORKFLOW_GEOCODING_CHECK_INTERVAL_S",
                    str(DEFAULT_GEOCODING_CHECK_INTERVAL_S),
                )
            ),
            geocoding_max_checks=int(
                os.getenv("WORKFLOW_GEOCODING_MAX_CHECKS", str(DEFAULT_GEOCODING_MAX_CHECKS))
            ),
            request_timeout_s=float(
                os.getenv("WORKFLOW_REQUEST_TIMEOUT_S", str(DEFAULT_REQUEST_TIMEOUT_S))
            ),
        )
        validate_config(config)
        return config


def validate_config(config: WorkflowConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.max_poll_attempts < 1:
        raise ConfigValidationError(
            "WORKFLOW_MAX_POLL_ATTEMPTS",
            config.max_poll_attempts,
            "must be >= 1",
        )

    if config.baseline_retry_after_s < 0:
        raise ConfigValidationError(
            "WORKFLOW_BASELINE_RETRY_AFTER_S",
            config.baseline_retry_after_s,
            "must be >= 0 (seconds)",
        )

    if config.geocoding_check_interval_s < 0:
        raise ConfigValidationError(
            "WORKFLOW_GEOCODING_CHECK_INTERVAL_S",
            config.geocoding_check_interval_s,
            "must be >= 0 (seconds)",
        )

    if config.geocoding_max_checks < 0:
        raise ConfigValidationError(
            "WORKFLOW_GEOCODING_MAX_CHECKS",
            config.geocoding_max_checks,
            "must be >= 0 (0 disables the bound)",
        )

    if config.request_timeout_s <= 0:
        raise ConfigValidationError(
            "WORKFLOW_REQUEST_TIMEOUT_S",
            config.request_timeout_s,
            "must be > 0 (seconds)",
        )
