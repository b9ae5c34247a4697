"""pystorefront - Async client-side data layer for the storefront console API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pystorefront")
except PackageNotFoundError:
    __version__ = "0+local"
from pystorefront.auth import AuthService
from pystorefront.cache import CacheEntry, CacheKey, CacheStore, ErrorInfo, QueryOptions, QueryStatus, make_key
from pystorefront.client import QueryObserver, StorefrontClient
from pystorefront.config import StorefrontConfig
from pystorefront.credentials import AnonymousCredentials, CredentialSource, FileTokenStore, TokenStore
from pystorefront.exceptions import (
    ClientNotInitializedError,
    HttpError,
    MalformedResponseError,
    NetworkError,
    StorefrontAuthError,
    StorefrontConfigError,
    StorefrontError,
    StorefrontRequestError,
)
from pystorefront.executor import RequestExecutor
from pystorefront.gesture import GesturePhase, PullToRefreshController, PullToRefreshState
from pystorefront.invalidation import InvalidationPolicy, MutationDescriptor, default_policy
from pystorefront.models import ApiRequest, ApiResponse, AuthResponse, HttpMethod, UnauthorizedBehavior, User

__all__ = [
    "__version__",
    "AnonymousCredentials",
    "ApiRequest",
    "ApiResponse",
    "AuthResponse",
    "AuthService",
    "CacheEntry",
    "CacheKey",
    "CacheStore",
    "ClientNotInitializedError",
    "CredentialSource",
    "ErrorInfo",
    "FileTokenStore",
    "GesturePhase",
    "HttpError",
    "HttpMethod",
    "InvalidationPolicy",
    "MalformedResponseError",
    "MutationDescriptor",
    "NetworkError",
    "PullToRefreshController",
    "PullToRefreshState",
    "QueryObserver",
    "QueryOptions",
    "QueryStatus",
    "RequestExecutor",
    "StorefrontAuthError",
    "StorefrontClient",
    "StorefrontConfig",
    "StorefrontConfigError",
    "StorefrontError",
    "StorefrontRequestError",
    "TokenStore",
    "UnauthorizedBehavior",
    "User",
    "default_policy",
    "make_key",
]
