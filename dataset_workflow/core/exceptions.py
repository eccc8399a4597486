"""Unified workflow exception taxonomy.

Provides a shared base exception hierarchy for the transport, the
long-running-operation tracker and the named workflow operations.  Every
domain exception inherits from ``WorkflowError`` and carries structured
context fields that enable consistent retry decisions and operator
diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``   the caller or the server said the request itself is
  wrong; re-sending it unchanged cannot help.
- ``TransientError``    no definitive answer arrived.  While polling, the
  outstanding slot is kept, so the caller retries with
  ``check_outstanding()`` instead of re-submitting.
- ``PermanentError``    the server gave a final error status; the
  operation is over and the slot is empty.
- ``ContractError``     the operation finished but its payload did not
  decode; re-polling returns the same payload.

``PollTimeoutError`` sits outside these four: its category is
``unknown`` because the server-side work may still complete.

Concrete workflow errors
------------------------
- ``ClientRequestError``: the server rejected the request as malformed.
- ``ServerRejection``: the server returned a definitive error status.
- ``PollTimeoutError``: attempt budget exhausted; outcome unknown.
- ``OperationPendingError``: a deferred result was read before it finished.
- ``OperationCancelledError``: caller aborted a wait.
- ``NoOutstandingOperationError``: nothing pending to resume.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and alerting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dataset_workflow.models.operation import PendingOperation


class WorkflowError(Exception):
    """Base exception for all workflow-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Workflow stage where the error occurred
            (e.g. ``"publish"``, ``"poll"``).
        code: Machine-readable error code (e.g. ``"POLL_TIMEOUT"``).
        retryable: Whether the caller may safely retry the operation.
        correlation_id: Dataset or request correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(WorkflowError):
    """The request or a model value is invalid.

    Never retryable: submitting the same request again gets the same answer.
    """

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(WorkflowError):
    """No definitive answer was received; the call may succeed if repeated.

    A transient failure while polling leaves the outstanding operation in
    place, so the retry is a resumed poll rather than a new submission.
    """

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(WorkflowError):
    """The server ended the operation with a final error.  Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(WorkflowError):
    """A finished operation returned a payload that does not decode.

    Never retryable: the result is fixed once the operation has completed.
    """

    default_stage = "decode"
    default_code = "RESULT_CONTRACT_VIOLATION"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Workflow errors
# ---------------------------------------------------------------------------


class ClientRequestError(ValidationError):
    """The server rejected the request as malformed (4xx).

    Attributes:
        status_code: HTTP status returned by the server.
        detail: Server-provided error detail, if any.
    """

    default_stage = "submit"
    default_code = "CLIENT_REQUEST_REJECTED"

    def __init__(self, message: str, *, status_code: int = 0, detail: str = "", **kwargs: object) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(message, **kwargs)


class ServerRejection(PermanentError):
    """The remote service returned a definitive error status.

    Attributes:
        status_code: HTTP status returned by the server (0 if not HTTP).
        detail: Server-provided error detail, if any.
    """

    default_stage = "submit"
    default_code = "SERVER_REJECTED"

    def __init__(self, message: str, *, status_code: int = 0, detail: str = "", **kwargs: object) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(message, **kwargs)


class PollTimeoutError(WorkflowError):
    """Attempt budget exhausted while waiting for an accepted operation.

    The operation may still be running server-side: the outcome is
    *unknown*, not failed.  ``poll_location`` and ``attempts_made`` let
    the caller resume via ``check_outstanding()`` or inspect the server.

    Attributes:
        poll_location: The URI that was being polled (may be ``None``).
        attempts_made: Number of polls issued before giving up.
        pending: The exhausted ``PendingOperation``, when one exists, so
            the caller can restore it with a fresh budget.
    """

    default_stage = "poll"
    default_code = "POLL_TIMEOUT"

    def __init__(
        self,
        message: str,
        *,
        poll_location: str | None = None,
        attempts_made: int = 0,
        pending: PendingOperation | None = None,
        **kwargs: object,
    ) -> None:
        self.poll_location = poll_location
        self.attempts_made = attempts_made
        self.pending = pending
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]

    @property
    def category(self) -> str:
        return "unknown"

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["poll_location"] = self.poll_location
        payload["attempts_made"] = self.attempts_made
        return payload


class OperationPendingError(WorkflowError):
    """The result of a deferred operation was read before it finished.

    Not a failure: the server is still working on it.  Wait for it with
    ``check_outstanding()``.

    Attributes:
        poll_location: Where the operation is being tracked (may be ``None``).
        pending: The stored ``PendingOperation``.
    """

    default_stage = "wait"
    default_code = "OPERATION_PENDING"

    def __init__(
        self,
        message: str,
        *,
        pending: PendingOperation | None = None,
        **kwargs: object,
    ) -> None:
        self.pending = pending
        self.poll_location = pending.poll_location if pending is not None else None
        super().__init__(message, **kwargs)  # type: ignore[arg-type]

    @property
    def category(self) -> str:
        return "pending"


class OperationCancelledError(WorkflowError):
    """A caller-supplied cancellation signal aborted a wait."""

    default_stage = "wait"
    default_code = "CANCELLED"


class NoOutstandingOperationError(ValidationError):
    """``check_outstanding()`` was called with nothing pending."""

    default_stage = "check_outstanding"
    default_code = "NO_OUTSTANDING_OPERATION"


class TransportError(TransientError):
    """The request never reached a definitive server answer (network, TLS, timeout)."""

    default_stage = "transport"
    default_code = "TRANSPORT_FAILED"
