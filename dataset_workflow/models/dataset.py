"""Pydantic payload models returned by workflow endpoints.

- ``DatasetInfo``: metadata for a dataset view (published or working copy).
- ``GeocodingResults``: pending-geocoding counts for a dataset.
- ``ResultShape``: names the payload type a final response decodes into,
  so an accepted operation can record it as a plain, serialisable tag.

Wire payloads use camelCase keys; fields are snake_case with aliases and
unknown keys are kept (``extra="allow"``) so server additions never break
decoding.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from dataset_workflow.core.exceptions import ContractError


class DatasetInfo(BaseModel):
    """Metadata for one dataset view.

    Attributes:
        id: Four-by-four dataset identifier (e.g. ``"abcd-1234"``).
        name: Display name.
        description: Free-text description.
        display_type: Rendering type (``"table"``, ``"map"``...).
        view_type: Storage type (``"tabular"``, ``"blobby"``...).
        publication_stage: ``"published"`` or ``"unpublished"``.
        publication_group: Identifier shared by a dataset and its working copies.
        rights: Rights the current user holds on the view.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str = ""
    description: str = ""
    display_type: str = Field(default="", alias="displayType")
    view_type: str = Field(default="", alias="viewType")
    publication_stage: str = Field(default="", alias="publicationStage")
    publication_group: int | None = Field(default=None, alias="publicationGroup")
    rights: list[str] = Field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.publication_stage == "published"


class GeocodingResults(BaseModel):
    """Pending-geocoding counts for a dataset.

    Attributes:
        view: Rows of this dataset still waiting to be geocoded.
        total: Rows pending across every dataset sharing the geocoder queue.
        columns: Per-column pending counts, keyed by column id.
    """

    model_config = ConfigDict(extra="allow")

    view: int = 0
    total: int = 0
    columns: dict[str, int] = Field(default_factory=dict)

    @property
    def pending_count(self) -> int:
        return self.view


class ResultShape(enum.Enum):
    """Payload type a completed operation decodes into."""

    DATASET_INFO = "dataset_info"
    GEOCODING_RESULTS = "geocoding_results"
    NONE = "none"

    def decode(self, payload: Any) -> Any:
        """Decode a raw JSON payload into this shape.

        Raises:
            ContractError: If the payload does not validate.
        """
        if self is ResultShape.NONE:
            return None
        model = _SHAPE_MODELS[self]
        try:
            return model.model_validate(payload)
        except PydanticValidationError as exc:
            msg = f"Response does not match {self.value}: {exc.error_count()} validation error(s)"
            raise ContractError(msg) from exc


_SHAPE_MODELS: dict[ResultShape, type[BaseModel]] = {
    ResultShape.DATASET_INFO: DatasetInfo,
    ResultShape.GEOCODING_RESULTS: GeocodingResults,
}
