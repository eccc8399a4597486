"""Request and response values exchanged with the transport.

- ``Request``: a replayable, serialisable description of one HTTP call.
- ``ResponseKind``: the transport's status classification.
- ``Response``: a classified server answer.

Design notes:
- Requests are frozen values, not closures, so an accepted operation can
  be persisted and its original call re-issued in another process.
- ``Request.replayable`` marks whether re-issuing from scratch is safe;
  non-idempotent calls (working copies) set it to ``False``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from dataset_workflow.core.constants import JSON_CONTENT_TYPE
from dataset_workflow.core.exceptions import ContractError, WorkflowError

_ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, WorkflowError):
    """Raised when a workflow model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        WorkflowError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Request:
    """Deferred description of one HTTP call.

    Attributes:
        method: HTTP method (upper case).
        uri: Path relative to the service root, or an absolute URL.
        params: Query string parameters.
        body: Raw request body (``None`` for no body).
        content_type: MIME type of ``body``.
        replayable: Whether the call may be re-issued from scratch.
    """

    method: str
    uri: str
    params: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    content_type: str = JSON_CONTENT_TYPE
    replayable: bool = True

    def __post_init__(self) -> None:
        if self.method not in _ALLOWED_METHODS:
            raise ModelValidationError(
                "Request", "method", self.method, f"must be one of {sorted(_ALLOWED_METHODS)}"
            )
        check_non_empty("Request", "uri", self.uri)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict."""
        return {
            "method": self.method,
            "uri": self.uri,
            "params": dict(self.params),
            "body": self.body,
            "content_type": self.content_type,
            "replayable": self.replayable,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Request:
        """Rebuild a ``Request`` from ``to_dict()`` output.

        Raises:
            ContractError: If required keys are missing or malformed.
        """
        try:
            return cls(
                method=str(data["method"]),
                uri=str(data["uri"]),
                params={str(k): str(v) for k, v in (data.get("params") or {}).items()},
                body=data.get("body"),
                content_type=str(data.get("content_type", JSON_CONTENT_TYPE)),
                replayable=bool(data.get("replayable", True)),
            )
        except KeyError as exc:
            msg = f"Request payload is missing key {exc.args[0]!r}"
            raise ContractError(msg, stage="deserialise") from exc
        except (TypeError, AttributeError) as exc:
            msg = f"Request payload is malformed: {exc}"
            raise ContractError(msg, stage="deserialise") from exc

    def describe(self) -> str:
        """Short ``METHOD uri`` label for logs."""
        return f"{self.method} {self.uri}"


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class ResponseKind(enum.Enum):
    """Status classification of a transport response.

    Values:
        OK:           Final result available (2xx other than 202).
        ACCEPTED:     Server accepted the work; poll later (202).
        CLIENT_ERROR: Request rejected as malformed (4xx).
        SERVER_ERROR: Definitive server failure (5xx).
    """

    OK = "ok"
    ACCEPTED = "accepted"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"


@dataclass(frozen=True, slots=True)
class Response:
    """A classified answer from the transport.

    Attributes:
        kind: Status classification.
        status_code: Raw HTTP status.
        payload: Decoded JSON body (``None`` when empty or not JSON).
        poll_location: Where to poll (``ACCEPTED`` only).
        retry_after: Server-suggested wait in seconds (``ACCEPTED`` only).
        detail: Error detail text (error kinds only).
    """

    kind: ResponseKind
    status_code: int = 200
    payload: Any = None
    poll_location: str | None = None
    retry_after: float | None = None
    detail: str = ""

    @classmethod
    def ok(cls, payload: Any = None, *, status_code: int = 200) -> Response:
        return cls(ResponseKind.OK, status_code=status_code, payload=payload)

    @classmethod
    def accepted(
        cls,
        poll_location: str | None = None,
        retry_after: float | None = None,
        *,
        payload: Any = None,
    ) -> Response:
        return cls(
            ResponseKind.ACCEPTED,
            status_code=202,
            payload=payload,
            poll_location=poll_location,
            retry_after=retry_after,
        )

    @classmethod
    def client_error(cls, detail: str = "", *, status_code: int = 400) -> Response:
        return cls(ResponseKind.CLIENT_ERROR, status_code=status_code, detail=detail)

    @classmethod
    def server_error(cls, detail: str = "", *, status_code: int = 500) -> Response:
        return cls(ResponseKind.SERVER_ERROR, status_code=status_code, detail=detail)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def check_non_empty(model: str, field_name: str, value: str) -> None:
    """Raise `ModelValidationError` if *value* is empty or blank."""
    if not value or not value.strip():
        raise ModelValidationError(model, field_name, value, "must not be empty")


def check_min(model: str, field_name: str, value: float | int, lo: float | int) -> None:
    """Raise `ModelValidationError` if *value* is below *lo*."""
    if value < lo:
        raise ModelValidationError(model, field_name, value, f"must be >= {lo}")
