"""Request/response models for the executor and the transport.

``ApiRequest``/``ApiResponse`` are what collaborators see. ``HttpRequest``/
``HttpResponse`` are the wire-level shapes exchanged with a
:class:`pystorefront._transport.Transport`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pystorefront._constants import GET_LIKE_METHODS, MUTATING_METHODS


class HttpMethod(StrEnum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def is_mutating(self) -> bool:
        return self.value in MUTATING_METHODS


class UnauthorizedBehavior(StrEnum):
    """What a 401 turns into."""

    RAISE = "raise"
    RETURN_NONE = "return_none"


class ApiRequest(BaseModel):
    """One call to the console API."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    path: str
    method: HttpMethod = HttpMethod.GET
    body: Any = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("path")
    @classmethod
    def _path_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("path must be non-empty")
        return value

    @model_validator(mode="after")
    def _no_body_on_get(self) -> ApiRequest:
        if self.body is not None and self.method.value in GET_LIKE_METHODS:
            raise ValueError(f"{self.method.value} requests cannot carry a body")
        return self


class ApiResponse(BaseModel):
    """Normalized successful response.

    ``empty`` is the "succeeded with nothing to show" marker: the server
    answered 2xx with no body (or a 401 was mapped to "no data").
    """

    model_config = ConfigDict(frozen=True)

    path: str
    method: HttpMethod
    status: int
    data: Any = None
    empty: bool = False

    @property
    def is_mutation(self) -> bool:
        return self.method.is_mutating


class HttpRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    method: HttpMethod
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None


class HttpResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: int
    reason: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
