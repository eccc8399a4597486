"""Async operation tracker — drive one accepted request to a terminal outcome.

The tracker turns a single ``ACCEPTED`` response into a
``PendingOperation`` (``create``) and then polls it (``resolve``):

1. Refuse to poll an exhausted operation (``PollTimeoutError``, no call).
2. Wait ``retry_after`` seconds (cancellable).
3. GET the poll location.  With no poll location, or when the server
   reports the ticket expired (404/410), re-issue the original request,
   unless it is not replayable.
4. Classify: ``OK`` decodes into ``result_shape``; ``ACCEPTED`` spends an
   attempt, adopts new server hints and loops; errors are terminal.

All polling state lives in the ``PendingOperation`` value.  Each spent
attempt is reported through ``on_progress`` so the owner can persist the
latest value and resume after a crash without re-spending budget.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dataset_workflow.core.constants import EXPIRED_TICKET_STATUSES
from dataset_workflow.core.exceptions import (
    ClientRequestError,
    ContractError,
    OperationCancelledError,
    PollTimeoutError,
    ServerRejection,
    WorkflowError,
)
from dataset_workflow.models.operation import Failure, PendingOperation, Success
from dataset_workflow.models.requests import Request, ResponseKind
from dataset_workflow.utils.cancellation import interruptible_sleep

if TYPE_CHECKING:
    from collections.abc import Callable

    from dataset_workflow.models.dataset import ResultShape
    from dataset_workflow.models.operation import OperationOutcome
    from dataset_workflow.models.requests import Response
    from dataset_workflow.transport.base import Transport
    from dataset_workflow.utils.cancellation import CancellationToken, Sleeper

logger = logging.getLogger(__name__)


class AsyncOperationTracker:
    """Polls accepted operations at the server-dictated cadence.

    Args:
        transport: Executes poll and replay requests.
        sleep: Cancellable wait; injectable for tests.
    """

    def __init__(self, transport: Transport, *, sleep: Sleeper = interruptible_sleep) -> None:
        self._transport = transport
        self._sleep = sleep

    def create(
        self,
        response: Response,
        original_request: Request,
        result_shape: ResultShape,
    ) -> PendingOperation:
        """Build the ``PendingOperation`` for an ``ACCEPTED`` response.

        Missing Retry-After falls back to the transport's baseline; the
        attempt budget comes from the transport's poll policy.
        """
        if response.kind is not ResponseKind.ACCEPTED:
            msg = f"Cannot track a {response.kind.value} response as pending"
            raise ValueError(msg)

        policy = self._transport.poll_policy()
        retry_after = response.retry_after
        if retry_after is None:
            retry_after = policy.baseline_retry_after

        pending = PendingOperation(
            poll_location=response.poll_location,
            retry_after=retry_after,
            attempts_remaining=policy.max_attempts,
            original_request=original_request,
            result_shape=result_shape,
        )
        logger.info(
            "Operation accepted | request=%s | poll_location=%s | retry_after=%.1fs | max_attempts=%d",
            original_request.describe(),
            pending.poll_location,
            pending.retry_after,
            pending.attempts_remaining,
        )
        return pending

    def resolve(
        self,
        pending: PendingOperation,
        cancel: CancellationToken | None = None,
        *,
        on_progress: Callable[[PendingOperation], None] | None = None,
    ) -> OperationOutcome:
        """Poll *pending* until it succeeds, fails, times out or is cancelled.

        Returns:
            ``Success`` with the decoded payload, or ``Failure`` carrying a
            ``PollTimeoutError``, ``OperationCancelledError``,
            ``ClientRequestError``, ``ServerRejection`` or ``ContractError``.

        Raises:
            TransportError: If a poll never reached the server.  The
                operation is still pending; resolve it again later.
        """
        current = pending
        while True:
            if current.exhausted:
                return Failure(_timeout_error(current))

            if current.poll_location is None and not current.original_request.replayable:
                return Failure(_lost_ticket_error(current, "the server gave no poll location"))

            try:
                self._sleep(current.retry_after, cancel)
            except OperationCancelledError as exc:
                logger.info(
                    "Polling cancelled | poll_location=%s | attempts_made=%d",
                    current.poll_location,
                    current.attempts_made,
                )
                return Failure(exc)

            response = self._poll_once(current)
            if isinstance(response, WorkflowError):
                return Failure(response)

            if response.kind is ResponseKind.ACCEPTED:
                current = current.with_attempt_consumed(
                    poll_location=response.poll_location,
                    retry_after=response.retry_after,
                )
                logger.info(
                    "Still processing | poll_location=%s | attempts_made=%d | attempts_remaining=%d | retry_after=%.1fs",
                    current.poll_location,
                    current.attempts_made,
                    current.attempts_remaining,
                    current.retry_after,
                )
                if on_progress is not None:
                    on_progress(current)
                continue

            return _terminal_outcome(current, response)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _poll_once(self, pending: PendingOperation) -> Response | WorkflowError:
        original = pending.original_request
        if pending.poll_location is None:
            logger.info("Re-issuing original request | request=%s", original.describe())
            return self._transport.submit(original)

        response = self._transport.submit(Request("GET", pending.poll_location))
        if response.status_code not in EXPIRED_TICKET_STATUSES:
            return response

        if not original.replayable:
            return _lost_ticket_error(
                pending, f"poll location answered HTTP {response.status_code}"
            )
        logger.warning(
            "Poll location expired, re-issuing original request | poll_location=%s | status=%d | request=%s",
            pending.poll_location,
            response.status_code,
            original.describe(),
        )
        return self._transport.submit(original)


# ---------------------------------------------------------------------------
# Outcome construction (module-private)
# ---------------------------------------------------------------------------


def _terminal_outcome(pending: PendingOperation, response: Response) -> OperationOutcome:
    if response.kind is ResponseKind.OK:
        try:
            payload = pending.result_shape.decode(response.payload)
        except ContractError as exc:
            logger.error(
                "Completed operation returned an unexpected payload | request=%s | error=%s",
                pending.original_request.describe(),
                exc.message,
            )
            return Failure(exc)
        logger.info(
            "Operation completed | request=%s | attempts_made=%d",
            pending.original_request.describe(),
            pending.attempts_made + 1,
        )
        return Success(payload)

    detail = response.detail or f"HTTP {response.status_code}"
    msg = f"{pending.original_request.describe()} failed while polling: {detail}"
    logger.error(
        "Operation failed | request=%s | status=%d | detail=%s",
        pending.original_request.describe(),
        response.status_code,
        detail,
    )
    if response.kind is ResponseKind.CLIENT_ERROR:
        return Failure(
            ClientRequestError(
                msg, status_code=response.status_code, detail=response.detail, stage="poll"
            )
        )
    return Failure(
        ServerRejection(msg, status_code=response.status_code, detail=response.detail, stage="poll")
    )


def _timeout_error(pending: PendingOperation) -> PollTimeoutError:
    msg = (
        f"{pending.original_request.describe()} still processing after "
        f"{pending.attempts_made} poll(s) of {pending.poll_location or 'the original request'}; "
        "outcome unknown"
    )
    logger.warning(
        "Poll budget exhausted | poll_location=%s | attempts_made=%d",
        pending.poll_location,
        pending.attempts_made,
    )
    return PollTimeoutError(
        msg,
        poll_location=pending.poll_location,
        attempts_made=pending.attempts_made,
        pending=pending,
    )


def _lost_ticket_error(pending: PendingOperation, reason: str) -> ServerRejection:
    msg = (
        f"Cannot resume {pending.original_request.describe()}: {reason} "
        "and the request is not safe to re-issue"
    )
    logger.error("Poll ticket lost | request=%s | reason=%s", pending.original_request.describe(), reason)
    return ServerRejection(msg, stage="poll", code="POLL_TICKET_LOST")
