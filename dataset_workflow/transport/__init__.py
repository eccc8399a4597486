"""Request-execution back ends.

- Transport: Abstract base class defining ``submit`` and ``poll_policy``
- HttpxTransport: ``httpx.Client`` implementation with status classification
"""

from dataset_workflow.transport.base import Transport
from dataset_workflow.transport.httpx_transport import HttpxTransport, classify

__all__ = [
    "HttpxTransport",
    "Transport",
    "classify",
]
