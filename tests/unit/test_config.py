"""Tests for workflow configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from dataset_workflow.core.config import ConfigValidationError, WorkflowConfig

_ENV_KEYS = (
    "WORKFLOW_BASE_URL",
    "WORKFLOW_MAX_POLL_ATTEMPTS",
    "WORKFLOW_BASELINE_RETRY_AFTER_S",
    "WORKFLOW_GEOCODING_CHECK_INTERVAL_S",
    "WORKFLOW_GEOCODING_MAX_CHECKS",
    "WORKFLOW_REQUEST_TIMEOUT_S",
)


def _clean_env() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}


class TestWorkflowConfigDefaults:
    """Verify default configuration values."""

    def test_default_polling(self) -> None:
        cfg = WorkflowConfig()
        assert cfg.max_poll_attempts == 200
        assert cfg.baseline_retry_after_s == 10.0

    def test_geocoding_drain_coarser_than_polling(self) -> None:
        cfg = WorkflowConfig()
        assert cfg.geocoding_check_interval_s > cfg.baseline_retry_after_s

    def test_geocoding_drain_unbounded_by_default(self) -> None:
        assert WorkflowConfig().geocoding_max_checks == 0

    def test_default_base_url(self) -> None:
        assert WorkflowConfig().base_url == ""


class TestWorkflowConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        env = {
            "WORKFLOW_BASE_URL": "https://data.example.org",
            "WORKFLOW_MAX_POLL_ATTEMPTS": "50",
            "WORKFLOW_BASELINE_RETRY_AFTER_S": "2.5",
            "WORKFLOW_GEOCODING_CHECK_INTERVAL_S": "45",
            "WORKFLOW_GEOCODING_MAX_CHECKS": "120",
            "WORKFLOW_REQUEST_TIMEOUT_S": "15",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = WorkflowConfig.from_env()

        assert cfg.base_url == "https://data.example.org"
        assert cfg.max_poll_attempts == 50
        assert cfg.baseline_retry_after_s == 2.5
        assert cfg.geocoding_check_interval_s == 45.0
        assert cfg.geocoding_max_checks == 120
        assert cfg.request_timeout_s == 15.0

    def test_defaults_when_env_missing(self) -> None:
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = WorkflowConfig.from_env()
        assert cfg == WorkflowConfig()

    def test_unparseable_number_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"WORKFLOW_MAX_POLL_ATTEMPTS": "abc"}, clear=False),
            pytest.raises(ValueError),
        ):
            WorkflowConfig.from_env()


class TestWorkflowConfigValidation:
    """Fail-fast range validation."""

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("WORKFLOW_MAX_POLL_ATTEMPTS", "0"),
            ("WORKFLOW_BASELINE_RETRY_AFTER_S", "-1"),
            ("WORKFLOW_GEOCODING_CHECK_INTERVAL_S", "-5"),
            ("WORKFLOW_GEOCODING_MAX_CHECKS", "-1"),
            ("WORKFLOW_REQUEST_TIMEOUT_S", "0"),
        ],
    )
    def test_out_of_range_rejected(self, key: str, value: str) -> None:
        with (
            patch.dict(os.environ, {key: value}, clear=False),
            pytest.raises(ConfigValidationError) as excinfo,
        ):
            WorkflowConfig.from_env()
        assert excinfo.value.key == key

    def test_zero_wait_is_allowed(self) -> None:
        with patch.dict(os.environ, {"WORKFLOW_BASELINE_RETRY_AFTER_S": "0"}, clear=False):
            cfg = WorkflowConfig.from_env()
        assert cfg.baseline_retry_after_s == 0.0

    def test_config_is_frozen(self) -> None:
        cfg = WorkflowConfig()
        with pytest.raises(AttributeError):
            cfg.max_poll_attempts = 1  # type: ignore[misc]
