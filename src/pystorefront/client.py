"""High-level async client for the storefront console API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pystorefront._transport import AiohttpTransport, Transport
from pystorefront.auth import AuthService
from pystorefront.cache.entry import CacheEntry, ErrorInfo, QueryOptions, QueryStatus
from pystorefront.cache.keys import CacheKey, KeyLike, key_path, make_key
from pystorefront.cache.store import CacheStore, Loader
from pystorefront.config import StorefrontConfig
from pystorefront.credentials import FileTokenStore, TokenStore
from pystorefront.exceptions import ClientNotInitializedError, StorefrontConfigError, StorefrontError
from pystorefront.executor import RequestExecutor
from pystorefront.gesture import PullToRefreshController, RefreshCallback, ScrollSurface
from pystorefront.invalidation.policy import InvalidationPolicy
from pystorefront.invalidation.table import default_policy
from pystorefront.models.requests import ApiResponse, HttpMethod

_logger = logging.getLogger(__name__)


class QueryObserver:
    """Live view of one cached query, as returned by :meth:`StorefrontClient.use_cached_query`.

    Holds a subscription until :meth:`close` is called (or the ``with`` block
    exits). The fetch it triggered keeps running after close; only the
    notifications stop.
    """

    def __init__(
        self,
        store: CacheStore,
        key: CacheKey,
        loader: Loader | None,
        options: QueryOptions | None,
        on_change: Callable[[CacheEntry], None] | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._loader = loader
        self._options = options
        self._on_change = on_change
        self._entry: CacheEntry | None = None
        self._unsubscribe: Callable[[], None] | None = store.subscribe(key, self._handle)
        store.get(key, loader=loader, options=options)

    def _handle(self, entry: CacheEntry) -> None:
        self._entry = entry
        if self._on_change is not None:
            self._on_change(entry)

    @property
    def key(self) -> CacheKey:
        return self._key

    @property
    def entry(self) -> CacheEntry:
        if self._entry is None:
            raise StorefrontError(f"no entry delivered for key={self._key!r}")
        return self._entry

    @property
    def data(self) -> Any:
        return self.entry.data

    @property
    def status(self) -> QueryStatus:
        return self.entry.status

    @property
    def error(self) -> ErrorInfo | None:
        return self.entry.error

    @property
    def is_closed(self) -> bool:
        return self._unsubscribe is None

    async def wait(self) -> CacheEntry:
        """Wait until the query has a settled (fresh or failed) value."""
        return await self._store.read(self._key, self._loader, self._options)

    async def refetch(self) -> CacheEntry:
        """Force a refetch regardless of freshness."""
        self._store.invalidate(self._key)
        return await self.wait()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> QueryObserver:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class StorefrontClient:
    """Async client for the storefront console API.

    Usage::

        async with StorefrontClient(config) as client:
            balance = client.use_cached_query("/api/user/balance")
            await client.execute_mutation("/api/topup/generate-qr", "POST", {"amount": 50000})
    """

    def __init__(
        self,
        config: StorefrontConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        token_store: TokenStore | None = None,
        policy: InvalidationPolicy | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config or StorefrontConfig()
        self._external_session = session is not None
        self._http_session = session
        self._custom_transport = transport
        if token_store is None and self._config.token_path is not None:
            token_store = FileTokenStore(self._config.token_path)
        self._token_store = token_store
        self._policy = policy or default_policy()
        self._clock = clock
        self._executor: RequestExecutor | None = None
        self._store: CacheStore | None = None
        self._auth: AuthService | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StorefrontClient:
        transport = self._custom_transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = AiohttpTransport(self._http_session, timeout=self._config.request_timeout)
        self._executor = RequestExecutor(self._config, transport, self._token_store)

        store_kwargs: dict[str, Any] = {
            "default_stale_after": self._config.default_stale_after,
            "gc_after": self._config.gc_after,
            "default_loader": self._load_key,
        }
        if self._clock is not None:
            store_kwargs["clock"] = self._clock
        self._store = CacheStore(**store_kwargs)

        if self._token_store is not None:
            self._auth = AuthService(self._executor, self._token_store)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._store is not None:
            await self._store.close()
            self._store = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._executor = None
        self._auth = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_executor(self) -> RequestExecutor:
        if self._executor is None:
            raise ClientNotInitializedError("Client not initialized. Use 'async with StorefrontClient(...) as client:'")
        return self._executor

    def _require_store(self) -> CacheStore:
        if self._store is None:
            raise ClientNotInitializedError("Client not initialized. Use 'async with StorefrontClient(...) as client:'")
        return self._store

    async def _load_key(self, key: CacheKey) -> Any:
        # Only the path part is fetched; the rest of the key partitions the cache.
        response = await self._require_executor().request(key_path(key))
        return response.data

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def config(self) -> StorefrontConfig:
        return self._config

    @property
    def executor(self) -> RequestExecutor:
        return self._require_executor()

    @property
    def cache(self) -> CacheStore:
        return self._require_store()

    @property
    def policy(self) -> InvalidationPolicy:
        return self._policy

    @property
    def auth(self) -> AuthService:
        self._require_executor()
        if self._auth is None:
            raise StorefrontConfigError("No token storage configured; set config.token_path or pass token_store")
        return self._auth

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def use_cached_query(
        self,
        key: KeyLike,
        loader: Loader | None = None,
        options: QueryOptions | None = None,
        *,
        on_change: Callable[[CacheEntry], None] | None = None,
    ) -> QueryObserver:
        """Observe *key*, fetching it now if it is absent or stale.

        Without a *loader* the first key part is fetched with GET. Must be
        called from a running event loop.
        """
        return QueryObserver(self._require_store(), make_key(key), loader, options, on_change)

    async def fetch_query(
        self,
        key: KeyLike,
        loader: Loader | None = None,
        options: QueryOptions | None = None,
    ) -> CacheEntry:
        """One-shot cached read of *key*."""
        return await self._require_store().read(key, loader, options)

    async def refresh(self, *keys: KeyLike) -> list[CacheEntry]:
        """Invalidate *keys* and wait for fresh values."""
        store = self._require_store()
        for key in keys:
            store.invalidate(key)
        return list(await asyncio.gather(*(store.read(key) for key in keys)))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def execute_mutation(
        self,
        path: str,
        method: HttpMethod | str = HttpMethod.POST,
        body: Any = None,
    ) -> ApiResponse:
        """Run a state-changing request and invalidate what it affects.

        Invalidation is applied before this returns, so an immediate
        re-read refetches. Failures raise and invalidate nothing.
        """
        response = await self._require_executor().request(path, method, body)
        if response.is_mutation:
            self._policy.on_mutation_success(path, self._require_store())
        return response

    # ------------------------------------------------------------------
    # Pull to refresh
    # ------------------------------------------------------------------

    def bind_pull_to_refresh(
        self,
        surface: ScrollSurface,
        on_refresh: RefreshCallback | None = None,
        *,
        keys: tuple[KeyLike, ...] = (),
        enabled: bool = True,
    ) -> PullToRefreshController:
        """Create a gesture controller for *surface*.

        Without *on_refresh*, releasing past the threshold refreshes *keys*.
        Thresholds come from the client configuration.
        """
        if on_refresh is None:
            if not keys:
                raise ValueError("pass on_refresh or at least one key to refresh")

            async def _refresh_keys() -> None:
                entries = await self.refresh(*keys)
                for entry in entries:
                    if entry.status == QueryStatus.ERROR:
                        _logger.debug("Pull-to-refresh left key=%r in error: %s", entry.key, entry.error)

            on_refresh = _refresh_keys

        return PullToRefreshController(
            surface,
            on_refresh,
            threshold=self._config.pull_threshold,
            max_pull_distance=self._config.pull_max_distance,
            resistance=self._config.pull_resistance,
            enabled=enabled,
        )
