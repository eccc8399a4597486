"""Shared workflow constants — single source of truth.

Centralises endpoint path segments, polling defaults and header names
used by the transport, the tracker and the named operations.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Endpoint path segments
# ---------------------------------------------------------------------------

API_BASE_PATH: str = "api"
VIEWS_BASE_PATH: str = "views"
GEOCODING_BASE_PATH: str = "geocoding"

# ---------------------------------------------------------------------------
# Polling defaults
# ---------------------------------------------------------------------------

DEFAULT_MAX_POLL_ATTEMPTS: int = 200
"""Polls allowed for one accepted operation before giving up."""

DEFAULT_BASELINE_RETRY_AFTER_S: float = 10.0
"""Wait before a poll when the server does not suggest one."""

DEFAULT_GEOCODING_CHECK_INTERVAL_S: float = 30.0
"""Wait between pending-geocoding checks while draining."""

DEFAULT_GEOCODING_MAX_CHECKS: int = 0
"""Maximum pending-geocoding checks; 0 means wait indefinitely."""

DEFAULT_REQUEST_TIMEOUT_S: float = 60.0

# ---------------------------------------------------------------------------
# Wire details
# ---------------------------------------------------------------------------

JSON_CONTENT_TYPE: str = "application/json"
RETRY_AFTER_HEADER: str = "Retry-After"
LOCATION_HEADER: str = "Location"

#: HTTP statuses meaning the poll ticket is no longer known to the server.
EXPIRED_TICKET_STATUSES: frozenset[int] = frozenset({404, 410})
