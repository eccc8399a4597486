"""Named workflow operations over the dataset-publishing service.

Every operation follows the same submission algorithm:

1. Build the ``Request`` for the action.
2. Submit it through the transport.
3. ``OK``: decode and return.
4. ``ACCEPTED``: create a ``PendingOperation`` and, depending on the
   operation's ``CompletionMode``, store it in the outstanding slot and
   resolve it inline (publish, working copy), store it and return
   (visibility changes), or resolve it without storing (read-only
   geocoding checks, which are safe to re-issue).
5. ``CLIENT_ERROR`` / ``SERVER_ERROR``: raise; never retried.

``publish`` drains pending geocoding first because the server rejects
publication while geocoding is outstanding.

Example usage::

    workflow = WorkflowOperation.from_config(WorkflowConfig.from_env())
    copy = workflow.create_working_copy("abcd-1234")
    ...  # stage changes on copy.id
    published = workflow.publish(copy.id)
    workflow.make_public(published.id)
    workflow.check_outstanding()  # only if make_public was accepted
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from dataset_workflow.core.config import validate_config
from dataset_workflow.core.constants import (
    DEFAULT_GEOCODING_CHECK_INTERVAL_S,
    DEFAULT_GEOCODING_MAX_CHECKS,
)
from dataset_workflow.core.exceptions import (
    ClientRequestError,
    ContractError,
    NoOutstandingOperationError,
    PollTimeoutError,
    ServerRejection,
    WorkflowError,
)
from dataset_workflow.models.dataset import DatasetInfo, GeocodingResults, ResultShape
from dataset_workflow.models.operation import Failure, OutcomeState, Pending, Success
from dataset_workflow.models.requests import ResponseKind, check_min
from dataset_workflow.operations.endpoints import (
    Visibility,
    pending_geocoding_request,
    publication_request,
    visibility_request,
    working_copy_request,
)
from dataset_workflow.operations.outstanding import OutstandingSlot
from dataset_workflow.operations.tracker import AsyncOperationTracker
from dataset_workflow.transport.httpx_transport import HttpxTransport
from dataset_workflow.utils.cancellation import interruptible_sleep

if TYPE_CHECKING:
    import httpx

    from dataset_workflow.core.config import WorkflowConfig
    from dataset_workflow.models.operation import OperationOutcome, PendingOperation
    from dataset_workflow.models.requests import Request
    from dataset_workflow.transport.base import Transport
    from dataset_workflow.utils.cancellation import CancellationToken, Sleeper

logger = logging.getLogger(__name__)


class CompletionMode(enum.Enum):
    """What ``submit`` does with an accepted request.

    Values:
        AWAIT:           Store in the outstanding slot, then resolve inline.
        DEFER:           Store in the outstanding slot and return ``Pending``.
        AWAIT_UNTRACKED: Resolve inline without touching the slot.
    """

    AWAIT = "await"
    DEFER = "defer"
    AWAIT_UNTRACKED = "await_untracked"


class WorkflowOperation:
    """Publishing-workflow client with a single outstanding-operation slot.

    Instances are independent: two instances driving different datasets
    share no mutable state.  Calls on one instance are totally ordered.

    Args:
        transport: Executes requests and supplies the poll policy.
        geocoding_check_interval_s: Wait between pending-geocoding checks.
        geocoding_max_checks: Bound on pending-geocoding checks (0 = unbounded).
        sleep: Cancellable wait shared by both suspension points.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        geocoding_check_interval_s: float = DEFAULT_GEOCODING_CHECK_INTERVAL_S,
        geocoding_max_checks: int = DEFAULT_GEOCODING_MAX_CHECKS,
        sleep: Sleeper = interruptible_sleep,
    ) -> None:
        check_min("WorkflowOperation", "geocoding_check_interval_s", geocoding_check_interval_s, 0)
        check_min("WorkflowOperation", "geocoding_max_checks", geocoding_max_checks, 0)
        self._transport = transport
        self._tracker = AsyncOperationTracker(transport, sleep=sleep)
        self._slot = OutstandingSlot()
        self._sleep = sleep
        self._geocoding_check_interval_s = geocoding_check_interval_s
        self._geocoding_max_checks = geocoding_max_checks

    @classmethod
    def from_config(
        cls,
        config: WorkflowConfig,
        *,
        client: httpx.Client | None = None,
        sleep: Sleeper = interruptible_sleep,
    ) -> WorkflowOperation:
        """Build a workflow client over an ``HttpxTransport``.

        Pass a pre-configured *client* to supply authentication.
        """
        validate_config(config)
        return cls(
            HttpxTransport.from_config(config, client=client),
            geocoding_check_interval_s=config.geocoding_check_interval_s,
            geocoding_max_checks=config.geocoding_max_checks,
            sleep=sleep,
        )

    @property
    def transport(self) -> Transport:
        return self._transport

    # ------------------------------------------------------------------
    # Outstanding operation
    # ------------------------------------------------------------------

    @property
    def outstanding(self) -> PendingOperation | None:
        """The stored pending operation, for persistence (``to_dict()``)."""
        return self._slot.get()

    def restore_outstanding(
        self,
        pending: PendingOperation | None,
        *,
        attempts: int | None = None,
    ) -> None:
        """Load a persisted pending operation into the slot.

        Args:
            pending: Value previously read from ``outstanding`` or from a
                ``PollTimeoutError``.
            attempts: Fresh poll budget; keeps the stored budget when ``None``.

        Raises:
            NoOutstandingOperationError: If *pending* is ``None``, as on a
                geocoding-drain timeout, which has no poll ticket to resume.
        """
        if pending is None:
            msg = "Nothing to restore: the timed-out wait has no pending operation"
            raise NoOutstandingOperationError(msg, stage="restore_outstanding")
        if attempts is not None:
            check_min("PendingOperation", "attempts_remaining", attempts, 0)
            pending = pending.with_budget(attempts)
        self._slot.set(pending)
        logger.info(
            "Outstanding operation restored | request=%s | poll_location=%s | attempts_remaining=%d",
            pending.original_request.describe(),
            pending.poll_location,
            pending.attempts_remaining,
        )

    def check_outstanding(self, cancel: CancellationToken | None = None) -> OperationOutcome:
        """Resume polling the stored operation.

        Returns:
            The terminal outcome; ``Failure`` carrying
            ``OperationCancelledError`` if *cancel* fired (the slot is kept).

        Raises:
            NoOutstandingOperationError: If the slot is empty.
            TransportError: If a poll never reached the server (slot kept).
        """
        pending = self._slot.get()
        if pending is None:
            msg = "No long-running operation is outstanding"
            raise NoOutstandingOperationError(msg)
        return self._resolve_tracked(pending, cancel)

    # ------------------------------------------------------------------
    # Shared submission algorithm
    # ------------------------------------------------------------------

    def submit(
        self,
        request: Request,
        result_shape: ResultShape,
        *,
        mode: CompletionMode = CompletionMode.AWAIT,
        cancel: CancellationToken | None = None,
        correlation_id: str = "",
    ) -> OperationOutcome:
        """Submit *request* and reduce the answer to an ``OperationOutcome``.

        Raises:
            TransportError: If the submission never reached the server.
        """
        logger.info("Submitting | request=%s | mode=%s", request.describe(), mode.value)
        response = self._transport.submit(request)

        if response.kind is ResponseKind.OK:
            self._discard_outstanding(request)
            try:
                outcome: OperationOutcome = Success(result_shape.decode(response.payload))
            except ContractError as exc:
                outcome = Failure(exc)
        elif response.kind is ResponseKind.ACCEPTED:
            pending = self._tracker.create(response, request, result_shape)
            if mode is CompletionMode.AWAIT_UNTRACKED:
                outcome = self._tracker.resolve(pending, cancel)
                if outcome.is_terminal:
                    self._discard_outstanding(request)
            else:
                self._slot.set(pending)
                if mode is CompletionMode.DEFER:
                    return Pending(pending)
                outcome = self._resolve_tracked(pending, cancel)
        else:
            self._discard_outstanding(request)
            detail = response.detail or f"HTTP {response.status_code}"
            msg = f"{request.describe()} was rejected: {detail}"
            logger.error(
                "Request rejected | request=%s | status=%d | detail=%s",
                request.describe(),
                response.status_code,
                detail,
            )
            if response.kind is ResponseKind.CLIENT_ERROR:
                error: WorkflowError = ClientRequestError(
                    msg, status_code=response.status_code, detail=response.detail
                )
            else:
                error = ServerRejection(msg, status_code=response.status_code, detail=response.detail)
            outcome = Failure(error)

        if isinstance(outcome, Failure) and correlation_id and not outcome.error.correlation_id:
            outcome.error.correlation_id = correlation_id
        return outcome

    def _discard_outstanding(self, request: Request) -> None:
        """Empty the slot because *request* finished; a finished operation replaces older work."""
        previous = self._slot.clear()
        if previous is not None:
            logger.warning(
                "Discarding unresolved operation | previous=%s | poll_location=%s | superseded_by=%s",
                previous.original_request.describe(),
                previous.poll_location,
                request.describe(),
            )

    def _resolve_tracked(
        self,
        pending: PendingOperation,
        cancel: CancellationToken | None,
    ) -> OperationOutcome:
        latest = pending

        def _record(progress: PendingOperation) -> None:
            nonlocal latest
            if self._slot.set(progress, expected=latest):
                latest = progress

        outcome = self._tracker.resolve(pending, cancel, on_progress=_record)
        if outcome.state is not OutcomeState.CANCELLED:
            self._slot.clear(expected=latest)
        return outcome

    # ------------------------------------------------------------------
    # Named operations
    # ------------------------------------------------------------------

    def publish(self, dataset_id: str, cancel: CancellationToken | None = None) -> DatasetInfo:
        """Publish a working copy and return the published dataset.

        Waits for pending geocoding to drain before submitting.

        Raises:
            ClientRequestError, ServerRejection, PollTimeoutError,
            OperationCancelledError, ContractError, TransportError.
        """
        self.wait_for_pending_geocoding(dataset_id, cancel)
        outcome = self.submit(
            publication_request(dataset_id),
            ResultShape.DATASET_INFO,
            cancel=cancel,
            correlation_id=dataset_id,
        )
        info: DatasetInfo = outcome.unwrap()
        logger.info("Dataset published | dataset_id=%s | published_id=%s", dataset_id, info.id)
        return info

    def create_working_copy(
        self,
        dataset_id: str,
        cancel: CancellationToken | None = None,
    ) -> DatasetInfo:
        """Create an unpublished, mutable copy of *dataset_id*.

        Not idempotent: once accepted, only the poll ticket may be used
        to resume; the copy request itself is never re-issued.
        """
        outcome = self.submit(
            working_copy_request(dataset_id),
            ResultShape.DATASET_INFO,
            cancel=cancel,
            correlation_id=dataset_id,
        )
        info: DatasetInfo = outcome.unwrap()
        logger.info("Working copy created | dataset_id=%s | copy_id=%s", dataset_id, info.id)
        return info

    def set_visibility(self, dataset_id: str, visibility: Visibility) -> None:
        """Change who can view *dataset_id*.

        Fire-and-forget: if the server accepts the change for later
        processing, the operation is stored in the outstanding slot and
        this call returns without waiting; use ``check_outstanding()``
        to wait for it.
        """
        outcome = self.submit(
            visibility_request(dataset_id, visibility),
            ResultShape.NONE,
            mode=CompletionMode.DEFER,
            correlation_id=dataset_id,
        )
        if isinstance(outcome, Pending):
            logger.info(
                "Visibility change accepted | dataset_id=%s | value=%s | poll_location=%s",
                dataset_id,
                visibility.value,
                outcome.pending.poll_location,
            )
            return
        outcome.unwrap()
        logger.info("Visibility changed | dataset_id=%s | value=%s", dataset_id, visibility.value)

    def make_public(self, dataset_id: str) -> None:
        """Make *dataset_id* readable by anyone."""
        self.set_visibility(dataset_id, Visibility.PUBLIC)

    def make_private(self, dataset_id: str) -> None:
        """Restrict *dataset_id* to users it is shared with and site admins."""
        self.set_visibility(dataset_id, Visibility.PRIVATE)

    def find_pending_geocoding_results(
        self,
        dataset_id: str,
        cancel: CancellationToken | None = None,
    ) -> GeocodingResults:
        """Return the pending-geocoding counts for *dataset_id*.  Read-only."""
        outcome = self.submit(
            pending_geocoding_request(dataset_id),
            ResultShape.GEOCODING_RESULTS,
            mode=CompletionMode.AWAIT_UNTRACKED,
            cancel=cancel,
            correlation_id=dataset_id,
        )
        results: GeocodingResults = outcome.unwrap()
        return results

    def find_pending_geocoding(
        self,
        dataset_id: str,
        cancel: CancellationToken | None = None,
    ) -> int:
        """Return how many rows of *dataset_id* are still waiting to be geocoded."""
        return self.find_pending_geocoding_results(dataset_id, cancel).pending_count

    def wait_for_pending_geocoding(
        self,
        dataset_id: str,
        cancel: CancellationToken | None = None,
    ) -> int:
        """Block until *dataset_id* has no pending geocoding.

        Returns:
            The number of checks made (at least one).

        Raises:
            PollTimeoutError: If ``geocoding_max_checks`` is set and reached.
            OperationCancelledError: If *cancel* fires during a wait.
        """
        checks = 0
        while True:
            checks += 1
            pending_count = self.find_pending_geocoding(dataset_id, cancel)
            logger.info(
                "Geocoding check | dataset_id=%s | pending=%d | check=%d",
                dataset_id,
                pending_count,
                checks,
            )
            if pending_count <= 0:
                return checks
            if self._geocoding_max_checks and checks >= self._geocoding_max_checks:
                msg = (
                    f"Dataset {dataset_id!r} still has {pending_count} row(s) pending "
                    f"geocoding after {checks} check(s)"
                )
                raise PollTimeoutError(
                    msg,
                    attempts_made=checks,
                    stage="geocoding",
                    code="GEOCODING_TIMEOUT",
                    correlation_id=dataset_id,
                )
            self._sleep(self._geocoding_check_interval_s, cancel)

