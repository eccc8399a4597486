"""Cancellable waits for the two suspension points of the workflow.

Both the tracker's inter-poll wait and the geocoding drain's inter-check
wait go through ``interruptible_sleep`` so a caller-supplied
``CancellationToken`` aborts them with ``OperationCancelledError``
instead of letting polling continue.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from dataset_workflow.core.exceptions import OperationCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe, one-way cancellation signal.

    Example usage::

        token = CancellationToken()
        threading.Timer(300, token.cancel).start()
        workflow.publish("abcd-1234", cancel=token)
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "") -> None:
        """Signal cancellation; wakes any wait blocked on this token."""
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def wait(self, seconds: float) -> bool:
        """Block up to *seconds*; return ``True`` if cancelled meanwhile."""
        return self._event.wait(timeout=max(seconds, 0.0))

    def raise_if_cancelled(self, context: str = "") -> None:
        """Raise ``OperationCancelledError`` if the token has fired."""
        if self.cancelled:
            raise OperationCancelledError(_cancel_message(context, self._reason))


class Sleeper(Protocol):
    """Signature of the injectable wait used by the tracker and the operations."""

    def __call__(self, seconds: float, cancel: CancellationToken | None = None) -> None: ...


def interruptible_sleep(seconds: float, cancel: CancellationToken | None = None) -> None:
    """Sleep for *seconds*, aborting early if *cancel* fires.

    Raises:
        OperationCancelledError: If the token is (or becomes) cancelled.
    """
    token = cancel if cancel is not None else CancellationToken()
    token.raise_if_cancelled("before wait")
    if token.wait(seconds):
        logger.info("Wait cancelled | seconds=%.1f | reason=%s", seconds, token.reason)
        raise OperationCancelledError(_cancel_message("during wait", token.reason))


def _cancel_message(context: str, reason: str) -> str:
    msg = "Operation cancelled"
    if context:
        msg = f"{msg} {context}"
    if reason:
        msg = f"{msg}: {reason}"
    return msg
