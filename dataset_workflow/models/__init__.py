"""Typed models for the dataset workflow client.

- requests: ``Request``, ``Response``, ``ResponseKind``
- operation: ``PollPolicy``, ``PendingOperation``, outcomes
- dataset: ``DatasetInfo``, ``GeocodingResults``, ``ResultShape``
"""

from dataset_workflow.models.dataset import DatasetInfo, GeocodingResults, ResultShape
from dataset_workflow.models.operation import (
    Failure,
    OperationOutcome,
    OutcomeState,
    Pending,
    PendingOperation,
    PollPolicy,
    Success,
)
from dataset_workflow.models.requests import (
    ModelValidationError,
    Request,
    Response,
    ResponseKind,
)

__all__ = [
    "DatasetInfo",
    "Failure",
    "GeocodingResults",
    "ModelValidationError",
    "OperationOutcome",
    "OutcomeState",
    "Pending",
    "PendingOperation",
    "PollPolicy",
    "Request",
    "Response",
    "ResponseKind",
    "ResultShape",
    "Success",
]
