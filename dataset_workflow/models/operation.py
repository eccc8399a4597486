"""Long-running operation state and outcomes.

- ``PollPolicy``: attempt budget and baseline wait, owned by the transport.
- ``PendingOperation``: everything needed to resume an accepted operation.
- ``OutcomeState``: terminal/non-terminal labels for the workflow state machine.
- ``Success`` / ``Pending`` / ``Failure``: the ``OperationOutcome`` sum type.

Design notes:
- ``PendingOperation`` is a frozen value.  Consuming a poll attempt yields
  a new value, so the tracker holds no hidden state and a persisted
  value can be resumed by any process.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar, Union

from dataset_workflow.core.exceptions import (
    ContractError,
    OperationCancelledError,
    OperationPendingError,
    PollTimeoutError,
    WorkflowError,
)
from dataset_workflow.models.dataset import ResultShape
from dataset_workflow.models.requests import ModelValidationError, Request, check_min

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Poll policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """Transport-level polling configuration.

    Attributes:
        max_attempts: Polls allowed per accepted operation.
        baseline_retry_after: Seconds to wait when the server gives no Retry-After.
    """

    max_attempts: int
    baseline_retry_after: float

    def __post_init__(self) -> None:
        check_min("PollPolicy", "max_attempts", self.max_attempts, 1)
        check_min("PollPolicy", "baseline_retry_after", self.baseline_retry_after, 0)


# ---------------------------------------------------------------------------
# Pending operation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PendingOperation:
    """An operation the server accepted but has not finished.

    Attributes:
        poll_location: URI to poll, or ``None`` when the server gave none
            (the original request is then re-issued instead).
        retry_after: Seconds to wait before the next poll.
        attempts_remaining: Polls still allowed; never negative.
        original_request: The call that was accepted.
        result_shape: Payload type of the eventual result.
        attempts_made: Polls already issued for this operation.
    """

    poll_location: str | None
    retry_after: float
    attempts_remaining: int
    original_request: Request
    result_shape: ResultShape
    attempts_made: int = 0

    def __post_init__(self) -> None:
        check_min("PendingOperation", "retry_after", self.retry_after, 0)
        check_min("PendingOperation", "attempts_remaining", self.attempts_remaining, 0)
        check_min("PendingOperation", "attempts_made", self.attempts_made, 0)

    @property
    def exhausted(self) -> bool:
        return self.attempts_remaining == 0

    def with_attempt_consumed(
        self,
        *,
        poll_location: str | None = None,
        retry_after: float | None = None,
    ) -> PendingOperation:
        """Return a copy with one attempt spent and any new server hints applied."""
        if self.attempts_remaining <= 0:
            raise ModelValidationError(
                "PendingOperation", "attempts_remaining", self.attempts_remaining, "already exhausted"
            )
        return replace(
            self,
            poll_location=poll_location or self.poll_location,
            retry_after=self.retry_after if retry_after is None else retry_after,
            attempts_remaining=self.attempts_remaining - 1,
            attempts_made=self.attempts_made + 1,
        )

    def with_budget(self, attempts: int) -> PendingOperation:
        """Return a copy with a fresh poll budget (e.g. after a timeout)."""
        return replace(self, attempts_remaining=attempts)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict for cross-process resumption."""
        return {
            "poll_location": self.poll_location,
            "retry_after": self.retry_after,
            "attempts_remaining": self.attempts_remaining,
            "attempts_made": self.attempts_made,
            "original_request": self.original_request.to_dict(),
            "result_shape": self.result_shape.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingOperation:
        """Rebuild a ``PendingOperation`` from ``to_dict()`` output.

        Raises:
            ContractError: If required keys are missing, a field is malformed
                or the shape is unknown.
        """
        try:
            return cls(
                poll_location=data.get("poll_location"),
                retry_after=float(data["retry_after"]),
                attempts_remaining=int(data["attempts_remaining"]),
                attempts_made=int(data.get("attempts_made", 0)),
                original_request=Request.from_dict(data["original_request"]),
                result_shape=ResultShape(data["result_shape"]),
            )
        except KeyError as exc:
            msg = f"PendingOperation payload is missing key {exc.args[0]!r}"
            raise ContractError(msg, stage="deserialise") from exc
        except (TypeError, AttributeError) as exc:
            msg = f"PendingOperation payload has a malformed field: {exc}"
            raise ContractError(msg, stage="deserialise") from exc
        except ValueError as exc:
            if isinstance(exc, WorkflowError):
                raise
            msg = f"PendingOperation payload is invalid: {exc}"
            raise ContractError(msg, stage="deserialise") from exc


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class OutcomeState(enum.Enum):
    """Where an operation ended up.

    ``PENDING`` and ``CANCELLED`` are non-terminal: in both the server-side
    work may still be running and the operation can be resumed.
    """

    SUCCEEDED = "succeeded"
    PENDING = "pending"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Terminal success carrying the decoded payload."""

    payload: T

    @property
    def state(self) -> OutcomeState:
        return OutcomeState.SUCCEEDED

    @property
    def is_terminal(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.payload


@dataclass(frozen=True, slots=True)
class Pending:
    """Accepted but unfinished; resolve later with ``check_outstanding()``."""

    pending: PendingOperation

    @property
    def state(self) -> OutcomeState:
        return OutcomeState.PENDING

    @property
    def is_terminal(self) -> bool:
        return False

    def unwrap(self) -> Any:
        msg = "Operation is still pending; resolve it with check_outstanding() first"
        raise OperationPendingError(msg, pending=self.pending)


@dataclass(frozen=True, slots=True)
class Failure:
    """Failure carrying the error that ended the operation.

    Cancellation is the one non-terminal failure: the caller stopped
    waiting, but the server-side work continues and can be resumed.
    """

    error: WorkflowError

    @property
    def state(self) -> OutcomeState:
        if isinstance(self.error, PollTimeoutError):
            return OutcomeState.TIMED_OUT
        if isinstance(self.error, OperationCancelledError):
            return OutcomeState.CANCELLED
        return OutcomeState.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.state is not OutcomeState.CANCELLED

    def unwrap(self) -> Any:
        raise self.error


OperationOutcome = Union[Success[Any], Pending, Failure]
