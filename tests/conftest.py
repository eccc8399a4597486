"""Shared pytest fixtures for the dataset workflow test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from dataset_workflow.models.operation import PollPolicy
from dataset_workflow.models.requests import Request, Response
from dataset_workflow.transport.base import Transport
from dataset_workflow.utils.cancellation import CancellationToken, interruptible_sleep

ScriptItem = Response | Exception | Callable[[Request], Response]

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class ScriptedTransport(Transport):
    """In-memory transport that replays a fixed script of answers.

    Each ``submit`` pops the next script item: a ``Response`` is returned,
    an exception is raised, and a callable is invoked with the request.
    Every request is appended to ``requests`` and to the shared
    ``timeline`` (as ``("submit", "METHOD uri")``).
    """

    def __init__(
        self,
        script: list[ScriptItem],
        *,
        policy: PollPolicy | None = None,
        timeline: list[tuple[str, Any]] | None = None,
    ) -> None:
        self.script = list(script)
        self.requests: list[Request] = []
        self.policy = policy or PollPolicy(max_attempts=5, baseline_retry_after=10.0)
        self.timeline = timeline if timeline is not None else []

    def submit(self, request: Request) -> Response:
        self.requests.append(request)
        self.timeline.append(("submit", request.describe()))
        if not self.script:
            msg = f"Unexpected request: {request.describe()}"
            raise AssertionError(msg)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    def poll_policy(self) -> PollPolicy:
        return self.policy

    @property
    def uris(self) -> list[str]:
        return [r.uri for r in self.requests]


class RecordingSleeper:
    """Sleeper that records waits instead of blocking.

    Honours cancellation exactly like ``interruptible_sleep`` with a zero
    wait, and can fire a token after a given number of waits.
    """

    def __init__(self, timeline: list[tuple[str, Any]] | None = None) -> None:
        self.calls: list[float] = []
        self.timeline = timeline if timeline is not None else []
        self.cancel_after: int | None = None
        self.token: CancellationToken | None = None

    def __call__(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        self.calls.append(seconds)
        self.timeline.append(("sleep", seconds))
        if self.cancel_after is not None and len(self.calls) >= self.cancel_after and cancel:
            cancel.cancel("test cancellation")
        interruptible_sleep(0.0, cancel)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def timeline() -> list[tuple[str, Any]]:
    """Shared ordered log of sleeps and submissions."""
    return []


@pytest.fixture()
def sleeper(timeline: list[tuple[str, Any]]) -> RecordingSleeper:
    return RecordingSleeper(timeline)


@pytest.fixture()
def make_transport(
    timeline: list[tuple[str, Any]],
) -> Callable[..., ScriptedTransport]:
    """Factory: ``make_transport([responses...], max_attempts=5, baseline=10.0)``."""

    def _make(
        script: list[ScriptItem],
        *,
        max_attempts: int = 5,
        baseline: float = 10.0,
    ) -> ScriptedTransport:
        policy = PollPolicy(max_attempts=max_attempts, baseline_retry_after=baseline)
        return ScriptedTransport(script, policy=policy, timeline=timeline)

    return _make


@pytest.fixture()
def dataset_payload() -> dict[str, Any]:
    """Wire-format dataset metadata as returned by the views endpoint."""
    return {
        "id": "abcd-1234",
        "name": "Building Permits",
        "description": "Permits issued since 2010",
        "displayType": "table",
        "viewType": "tabular",
        "publicationStage": "published",
        "publicationGroup": 42,
        "rights": ["read", "write"],
        "owner": {"id": "user-0001"},
    }
