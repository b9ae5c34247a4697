"""Base model for console API payloads.

Every response model inherits from :class:`StorefrontModel` which provides:

* ``alias_generator=to_camel`` so the backend's camelCase keys
  (``fullName``) map onto snake_case fields.
* ``extra="ignore"`` so new server fields never break the client.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class StorefrontModel(BaseModel):
    """Base for console API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "raw" in values:
            return values
        return {**values, "raw": dict(values)}
