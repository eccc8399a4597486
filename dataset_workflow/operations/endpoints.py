"""Request builders for the workflow endpoints.

Each builder returns a ``Request`` value; nothing here talks to the
network.  Paths are relative to the service root configured on the
transport.

Endpoints:
    ``POST /api/views/{id}/publication``              — publish
    ``POST /api/views/{id}/publication.json?method=copy`` — working copy
    ``PUT  /api/views/{id}?method=setPermission&...`` — visibility
    ``GET  /api/geocoding/{id}?method=pending``       — pending geocodes
"""

from __future__ import annotations

import enum
from urllib.parse import quote

from dataset_workflow.core.constants import (
    API_BASE_PATH,
    GEOCODING_BASE_PATH,
    JSON_CONTENT_TYPE,
    VIEWS_BASE_PATH,
)
from dataset_workflow.models.requests import Request, check_non_empty


class Visibility(enum.Enum):
    """Permission value sent to the ``setPermission`` method."""

    PUBLIC = "public.read"
    PRIVATE = "private"


def view_path(dataset_id: str, *segments: str) -> str:
    """Return ``/api/views/{dataset_id}[/segment...]`` with the id escaped."""
    check_non_empty("Request", "dataset_id", dataset_id)
    parts = [API_BASE_PATH, VIEWS_BASE_PATH, quote(dataset_id, safe=""), *segments]
    return "/" + "/".join(parts)


def publication_request(dataset_id: str) -> Request:
    return Request(
        "POST",
        view_path(dataset_id, "publication"),
        body=f"viewId={dataset_id}",
        content_type=JSON_CONTENT_TYPE,
    )


def working_copy_request(dataset_id: str) -> Request:
    """Copy request; never replayed because a second copy would be created."""
    return Request(
        "POST",
        view_path(dataset_id, "publication.json"),
        params={"method": "copy"},
        body="method=copy",
        content_type=JSON_CONTENT_TYPE,
        replayable=False,
    )


def visibility_request(dataset_id: str, visibility: Visibility) -> Request:
    return Request(
        "PUT",
        view_path(dataset_id),
        params={
            "accessType": "WEBSITE",
            "method": "setPermission",
            "value": visibility.value,
        },
        body="method=setPermission",
        content_type=JSON_CONTENT_TYPE,
    )


def pending_geocoding_request(dataset_id: str) -> Request:
    check_non_empty("Request", "dataset_id", dataset_id)
    return Request(
        "GET",
        f"/{API_BASE_PATH}/{GEOCODING_BASE_PATH}/{quote(dataset_id, safe='')}",
        params={"method": "pending"},
    )
