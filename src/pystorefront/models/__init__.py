"""Data models for console API requests and responses."""

from pystorefront.models._base import StorefrontModel
from pystorefront.models.requests import (
    ApiRequest,
    ApiResponse,
    HttpMethod,
    HttpRequest,
    HttpResponse,
    UnauthorizedBehavior,
)
from pystorefront.models.user import AuthResponse, User

__all__ = [
    "ApiRequest",
    "ApiResponse",
    "AuthResponse",
    "HttpMethod",
    "HttpRequest",
    "HttpResponse",
    "StorefrontModel",
    "UnauthorizedBehavior",
    "User",
]
