"""Long-running-operation tracking and the named workflow operations.

- AsyncOperationTracker: Drives one accepted request to a terminal outcome
- OutstandingSlot: Lock-guarded single-slot holder for the pending operation
- WorkflowOperation: publish, working copy, visibility, geocoding checks
"""

from dataset_workflow.operations.endpoints import Visibility
from dataset_workflow.operations.outstanding import OutstandingSlot
from dataset_workflow.operations.tracker import AsyncOperationTracker
from dataset_workflow.operations.workflow import CompletionMode, WorkflowOperation

__all__ = [
    "AsyncOperationTracker",
    "CompletionMode",
    "OutstandingSlot",
    "Visibility",
    "WorkflowOperation",
]
