"""httpx-backed transport.

Concrete ``Transport`` that executes ``Request`` values with an
``httpx.Client`` and classifies the answers:

- ``202``                 → ``ACCEPTED`` (poll location + Retry-After)
- other ``2xx``           → ``OK``
- ``4xx``                 → ``CLIENT_ERROR``
- ``5xx`` / anything else → ``SERVER_ERROR``

Poll location resolution for ``202``:
    1. The ``Location`` header, if present.
    2. Otherwise a ``ticket`` in the JSON body, appended as a ``ticket``
       query parameter to the original request URI.
    3. Otherwise ``None`` — the tracker then re-issues the original call.

Authentication is configured on the injected client (headers, auth
flow); this module never handles credentials.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from dataset_workflow.core.constants import LOCATION_HEADER, RETRY_AFTER_HEADER
from dataset_workflow.core.exceptions import TransportError
from dataset_workflow.models.operation import PollPolicy
from dataset_workflow.models.requests import Response, ResponseKind
from dataset_workflow.transport.base import Transport
from dataset_workflow.utils.helpers import error_detail, parse_retry_after

if TYPE_CHECKING:
    from dataset_workflow.core.config import WorkflowConfig
    from dataset_workflow.models.requests import Request

logger = logging.getLogger(__name__)


class HttpxTransport(Transport):
    """Transport over a synchronous ``httpx.Client``.

    Args:
        base_url: Service root; relative request URIs resolve against it.
            Ignored when *client* is given (set it on the client instead).
        policy: Poll policy handed to the tracker.
        client: Pre-configured client (base URL, auth, headers).  When
            ``None`` a client is created and owned by this transport.
        timeout: Per-request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        base_url: str,
        policy: PollPolicy,
        *,
        client: httpx.Client | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._policy = policy
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=True,
        )

    @classmethod
    def from_config(cls, config: WorkflowConfig, *, client: httpx.Client | None = None) -> HttpxTransport:
        """Build a transport from ``WorkflowConfig``."""
        policy = PollPolicy(
            max_attempts=config.max_poll_attempts,
            baseline_retry_after=config.baseline_retry_after_s,
        )
        return cls(config.base_url, policy, client=client, timeout=config.request_timeout_s)

    def poll_policy(self) -> PollPolicy:
        return self._policy

    def submit(self, request: Request) -> Response:
        """Issue *request* and classify the answer.

        Raises:
            TransportError: On connection failures and timeouts.
        """
        headers = {"Accept": "application/json"}
        content: str | None = None
        if request.body is not None:
            headers["Content-Type"] = request.content_type
            content = request.body

        try:
            raw = self._client.request(
                request.method,
                request.uri,
                params=request.params or None,
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            msg = f"{request.describe()} failed before a response was received: {exc}"
            raise TransportError(msg) from exc

        response = classify(raw, request)
        logger.debug(
            "Transport response | request=%s | status=%d | kind=%s",
            request.describe(),
            response.status_code,
            response.kind.value,
        )
        return response

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Classification (module-private except ``classify``)
# ---------------------------------------------------------------------------


def classify(raw: httpx.Response, request: Request) -> Response:
    """Map an ``httpx.Response`` to a classified ``Response``."""
    status = raw.status_code
    payload = _decode_body(raw)

    if status == 202:
        return Response(
            ResponseKind.ACCEPTED,
            status_code=status,
            payload=payload,
            poll_location=_poll_location(raw, payload, request),
            retry_after=_retry_after(raw, payload),
        )
    if 200 <= status < 300:
        return Response(ResponseKind.OK, status_code=status, payload=payload)
    if 400 <= status < 500:
        return Response(
            ResponseKind.CLIENT_ERROR,
            status_code=status,
            payload=payload,
            detail=error_detail(payload, fallback=raw.reason_phrase),
        )
    return Response(
        ResponseKind.SERVER_ERROR,
        status_code=status,
        payload=payload,
        detail=error_detail(payload, fallback=raw.reason_phrase),
    )


def _decode_body(raw: httpx.Response) -> Any:
    if not raw.content:
        return None
    try:
        return raw.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw.text


def _poll_location(raw: httpx.Response, payload: Any, request: Request) -> str | None:
    location = raw.headers.get(LOCATION_HEADER)
    if location:
        return location
    if isinstance(payload, dict) and payload.get("ticket"):
        url = httpx.URL(request.uri, params={**request.params, "ticket": str(payload["ticket"])})
        return str(url)
    return None


def _retry_after(raw: httpx.Response, payload: Any) -> float | None:
    seconds = parse_retry_after(raw.headers.get(RETRY_AFTER_HEADER))
    if seconds is not None:
        return seconds
    if isinstance(payload, dict):
        hint = payload.get("retryAfter", payload.get("retry_after"))
        if hint is not None:
            return parse_retry_after(str(hint))
    return None
