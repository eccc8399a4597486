"""Single-slot holder for the last outstanding long-running operation.

A ``WorkflowOperation`` tracks at most one accepted-but-unfinished
operation.  ``set``, ``get`` and ``clear`` are the only ways to touch the
slot and all of them hold the lock, so the instance can be shared between
threads without torn reads or lost clears.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dataset_workflow.models.operation import PendingOperation

logger = logging.getLogger(__name__)

_ANY = object()


class OutstandingSlot:
    """Lock-guarded ``PendingOperation | None``.

    ``set`` and ``clear`` accept an optional *expected* value: the change
    only applies if the slot still holds that exact object, so a caller
    finishing an old operation never clears one issued after it.
    """

    def __init__(self) -> None:
        self._value: PendingOperation | None = None
        self._lock = threading.Lock()

    def get(self) -> PendingOperation | None:
        with self._lock:
            return self._value

    def set(self, pending: PendingOperation, *, expected: object = _ANY) -> bool:
        """Store *pending*; return ``False`` if *expected* no longer matches."""
        with self._lock:
            if expected is not _ANY and self._value is not expected:
                return False
            if expected is _ANY and self._value is not None and self._value is not pending:
                logger.warning(
                    "Overwriting unresolved operation | previous=%s | poll_location=%s",
                    self._value.original_request.describe(),
                    self._value.poll_location,
                )
            self._value = pending
            return True

    def clear(self, *, expected: object = _ANY) -> PendingOperation | None:
        """Empty the slot and return what it held (``None`` if *expected* mismatched)."""
        with self._lock:
            if expected is not _ANY and self._value is not expected:
                return None
            previous, self._value = self._value, None
            return previous

    def __bool__(self) -> bool:
        return self.get() is not None
