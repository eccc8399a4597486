"""Transport abstract base class.

Defines the contract between the workflow layer and whatever executes
HTTP calls.  The tracker and the named operations interact exclusively
with this interface and never see raw status codes: every answer arrives
as a classified ``Response``.

Lifecycle:
    1. ``submit(request)`` — issue the call, classify the answer.
    2. ``poll_policy()``   — attempt budget and baseline wait for accepted calls.

The transport owns connection pooling, authentication and TLS.  It must
not retry on its own once a request reached the server.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dataset_workflow.models.operation import PollPolicy
    from dataset_workflow.models.requests import Request, Response


class Transport(abc.ABC):
    """Abstract base class for request-execution back ends.

    Example usage::

        transport = HttpxTransport("https://data.example.org", policy)
        response = transport.submit(Request("GET", "/api/views/abcd-1234"))
        if response.kind is ResponseKind.ACCEPTED:
            ...
    """

    @abc.abstractmethod
    def submit(self, request: Request) -> Response:
        """Issue *request* once and classify the server's answer.

        Returns:
            A ``Response`` tagged ``OK``, ``ACCEPTED``, ``CLIENT_ERROR``
            or ``SERVER_ERROR``.

        Raises:
            TransportError: If no definitive answer was received
                (connection failure, timeout).
        """

    @abc.abstractmethod
    def poll_policy(self) -> PollPolicy:
        """Return the attempt budget and baseline wait for accepted calls."""

    def close(self) -> None:
        """Release any held connections.  Default is a no-op."""
