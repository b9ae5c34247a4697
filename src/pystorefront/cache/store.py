"""Process-wide in-memory query cache.

This is the only component allowed to mutate cache entries. Collaborators
go through :meth:`CacheStore.get`, :meth:`CacheStore.read`,
:meth:`CacheStore.invalidate` and :meth:`CacheStore.subscribe`, and only
ever receive copies of entries.

Scheduling model: everything runs on one asyncio loop. A key has at most
one in-flight loader task; later readers await that same task through
:func:`asyncio.shield`, so a reader giving up never cancels a fetch other
readers (or the cache itself) still want.

Entries left unused for ``gc_after`` seconds are dropped on the next
access to the store.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pystorefront.cache.entry import ALLOWED_TRANSITIONS, CacheEntry, ErrorInfo, QueryOptions, QueryStatus
from pystorefront.cache.keys import CacheKey, KeyLike, is_prefix, make_key
from pystorefront.exceptions import StorefrontError, StorefrontRequestError

_logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]
KeyLoader = Callable[[CacheKey], Awaitable[Any]]
Subscriber = Callable[[CacheEntry], None]
Unsubscribe = Callable[[], None]


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


@dataclass(slots=True)
class _Slot:
    """Store-private bookkeeping for one key."""

    entry: CacheEntry
    options: QueryOptions
    loader: Loader | None = None
    subscribers: list[Subscriber] = field(default_factory=list)
    inflight: asyncio.Task[CacheEntry] | None = None
    poller: asyncio.Task[None] | None = None
    # Bumped on every invalidation; a fetch that started under an older
    # generation cannot clear the invalidated flag.
    generation: int = 0
    # Store clock reading of the last access, fetch or unsubscribe.
    last_used: float = 0.0


class CacheStore:
    """Keyed query cache with stale-while-revalidate semantics.

    Parameters
    ----------
    clock
        Monotonic clock in seconds. Injectable for tests.
    default_stale_after
        Freshness window for entries whose options do not set one.
    default_loader
        Fallback used when a key has no registered loader, called with the
        key itself.
    gc_after
        Seconds an entry may sit unused (no subscribers, no fetch, no
        access) before it is dropped. ``None`` keeps entries until
        :meth:`close`.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        default_stale_after: float = 300.0,
        default_loader: KeyLoader | None = None,
        gc_after: float | None = 300.0,
    ) -> None:
        if gc_after is not None and gc_after <= 0:
            raise ValueError("gc_after must be positive or None")
        self._clock = clock
        self._default_stale_after = default_stale_after
        self._default_loader = default_loader
        self._gc_after = gc_after
        self._slots: dict[CacheKey, _Slot] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _collect_garbage(self) -> None:
        if self._gc_after is None:
            return
        now = self._clock()
        expired = [
            key
            for key, slot in self._slots.items()
            if not slot.subscribers
            and slot.inflight is None
            and (slot.poller is None or slot.poller.done())
            and now - slot.last_used >= self._gc_after
        ]
        for key in expired:
            del self._slots[key]
        if expired:
            _logger.debug("Cache dropped %d unused entries", len(expired))

    def _slot(self, key: CacheKey) -> _Slot:
        self._collect_garbage()
        slot = self._slots.get(key)
        if slot is None:
            options = QueryOptions()
            slot = _Slot(
                entry=CacheEntry(key=key, stale_after=self._default_stale_after),
                options=options,
            )
            self._slots[key] = slot
        slot.last_used = self._clock()
        return slot

    def _apply_options(self, slot: _Slot, options: QueryOptions | None) -> None:
        if options is None:
            return
        slot.options = options
        slot.entry.stale_after = options.stale_after if options.stale_after is not None else self._default_stale_after
        self._ensure_poller(slot)

    def _resolve_loader(self, slot: _Slot) -> Loader | None:
        if slot.loader is not None:
            return slot.loader
        if self._default_loader is None:
            return None
        default_loader = self._default_loader
        key = slot.entry.key

        async def _load() -> Any:
            return await default_loader(key)

        return _load

    @staticmethod
    def _snapshot(slot: _Slot) -> CacheEntry:
        return slot.entry.model_copy(deep=True)

    def _notify(self, slot: _Slot) -> None:
        if not slot.subscribers:
            return
        snapshot = self._snapshot(slot)
        for callback in list(slot.subscribers):
            try:
                callback(snapshot)
            except Exception:
                _logger.warning("Cache subscriber failed for key=%r", slot.entry.key, exc_info=True)

    def _transition(self, slot: _Slot, status: QueryStatus) -> None:
        current = slot.entry.status
        if status not in ALLOWED_TRANSITIONS[current]:
            raise StorefrontError(f"illegal cache transition {current} -> {status} for key={slot.entry.key!r}")
        slot.entry.status = status
        _logger.debug("Cache key=%r %s -> %s", slot.entry.key, current.value, status.value)

    def _is_fresh(self, slot: _Slot) -> bool:
        return slot.entry.is_fresh(self._clock())

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _start_fetch(self, slot: _Slot, loader: Loader, *, background: bool = False) -> asyncio.Task[CacheEntry]:
        if self._closed:
            raise StorefrontError("cache store is closed")
        generation = slot.generation
        slot.entry.is_fetching = True
        if not background:
            self._transition(slot, QueryStatus.LOADING)
            self._notify(slot)
        task = asyncio.get_running_loop().create_task(self._run_fetch(slot, loader, generation))
        task.add_done_callback(self._log_unretrieved)
        slot.inflight = task
        return task

    async def _run_fetch(self, slot: _Slot, loader: Loader, generation: int) -> CacheEntry:
        try:
            data = await loader()
        except StorefrontRequestError as exc:
            self._settle_error(slot, exc.to_error_info())
        except Exception as exc:
            self._settle_error(slot, ErrorInfo.unexpected(exc))
            raise
        else:
            self._settle_success(slot, data, generation)
        finally:
            slot.inflight = None

        snapshot = self._snapshot(slot)
        if slot.entry.is_invalidated and slot.entry.status == QueryStatus.SUCCESS:
            # Invalidated while in flight: what we just stored may predate it.
            self._refetch_if_observed(slot)
        return snapshot

    def _settle_success(self, slot: _Slot, data: Any, generation: int) -> None:
        entry = slot.entry
        entry.data = data
        entry.has_data = True
        entry.error = None
        entry.is_fetching = False
        entry.last_fetched_at = slot.last_used = self._clock()
        entry.is_invalidated = slot.generation != generation
        self._transition(slot, QueryStatus.SUCCESS)
        self._notify(slot)

    def _settle_error(self, slot: _Slot, error: ErrorInfo) -> None:
        # Previous data stays visible; only status and error change.
        entry = slot.entry
        entry.error = error
        entry.is_fetching = False
        slot.last_used = self._clock()
        self._transition(slot, QueryStatus.ERROR)
        _logger.debug("Cache key=%r fetch failed: %s", entry.key, error.message)
        self._notify(slot)

    @staticmethod
    def _log_unretrieved(task: asyncio.Task[CacheEntry]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Cache loader raised unexpectedly", exc_info=exc)

    def _refetch_if_observed(self, slot: _Slot) -> None:
        if not slot.subscribers or slot.inflight is not None or self._closed:
            return
        loader = self._resolve_loader(slot)
        if loader is None or _running_loop() is None:
            return
        self._start_fetch(slot, loader)

    # ------------------------------------------------------------------
    # Background refresh
    # ------------------------------------------------------------------

    def _ensure_poller(self, slot: _Slot) -> None:
        if slot.options.refresh_interval is None or not slot.subscribers or self._closed:
            return
        if slot.poller is not None and not slot.poller.done():
            return
        loop = _running_loop()
        if loop is None:
            return
        slot.poller = loop.create_task(self._poll(slot))

    def _stop_poller(self, slot: _Slot) -> None:
        if slot.poller is not None:
            slot.poller.cancel()
            slot.poller = None

    async def _poll(self, slot: _Slot) -> None:
        while slot.subscribers and not self._closed:
            interval = slot.options.refresh_interval
            if interval is None:
                return
            await asyncio.sleep(interval)
            if not slot.subscribers or slot.inflight is not None:
                continue
            loader = self._resolve_loader(slot)
            if loader is None:
                continue
            # Only a SUCCESS entry can refresh silently; anything else shows LOADING.
            silent = slot.entry.status == QueryStatus.SUCCESS
            task = self._start_fetch(slot, loader, background=silent)
            await asyncio.wait([task])

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(
        self,
        key: KeyLike,
        *,
        loader: Loader | None = None,
        options: QueryOptions | None = None,
    ) -> CacheEntry:
        """Return the current entry for *key*.

        When the entry is absent or stale and a loader is known (passed here,
        registered by an earlier call, or the store default), a fetch is
        scheduled on the running loop; the returned copy already reflects
        the LOADING transition. Never waits.
        """
        slot = self._slot(make_key(key))
        if loader is not None:
            slot.loader = loader
        self._apply_options(slot, options)
        if not self._is_fresh(slot) and slot.inflight is None and not self._closed:
            loader = self._resolve_loader(slot)
            if loader is not None and _running_loop() is not None:
                self._start_fetch(slot, loader)
        return self._snapshot(slot)

    async def read(
        self,
        key: KeyLike,
        loader: Loader | None = None,
        options: QueryOptions | None = None,
    ) -> CacheEntry:
        """Return a fresh entry for *key*, fetching through *loader* if needed.

        Fetch failures are reported on the returned entry (``status=ERROR``),
        not raised. Readers of a key that is already loading share the
        in-flight fetch.
        """
        slot = self._slot(make_key(key))
        if loader is not None:
            slot.loader = loader
        self._apply_options(slot, options)

        if self._is_fresh(slot):
            return self._snapshot(slot)

        while True:
            task = slot.inflight
            if task is None:
                resolved = self._resolve_loader(slot)
                if resolved is None:
                    raise StorefrontError(f"no loader registered for key={slot.entry.key!r}")
                task = self._start_fetch(slot, resolved)
            entry = await asyncio.shield(task)
            # Go around again only if an invalidation landed mid-flight.
            if entry.status == QueryStatus.ERROR or not entry.is_invalidated:
                return entry

    def invalidate(self, key_or_prefix: KeyLike) -> int:
        """Mark every entry under *key_or_prefix* stale.

        Data is kept for display. Observed entries are refetched right away;
        the rest refetch on their next :meth:`read`. Returns the number of
        matched entries.
        """
        prefix = make_key(key_or_prefix)
        matched = [slot for key, slot in self._slots.items() if is_prefix(prefix, key)]
        for slot in matched:
            slot.generation += 1
            slot.entry.is_invalidated = True
            _logger.debug("Cache key=%r invalidated", slot.entry.key)
        for slot in matched:
            self._refetch_if_observed(slot)
        return len(matched)

    def subscribe(self, key: KeyLike, callback: Subscriber) -> Unsubscribe:
        """Register *callback* for changes to *key*.

        The callback fires once immediately with the current entry, then
        after every status or data change, in transition order. Call the
        returned handle to stop receiving notifications.
        """
        slot = self._slot(make_key(key))
        slot.subscribers.append(callback)
        try:
            callback(self._snapshot(slot))
        except Exception:
            _logger.warning("Cache subscriber failed for key=%r", slot.entry.key, exc_info=True)
        self._ensure_poller(slot)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                slot.subscribers.remove(callback)
            if not slot.subscribers:
                self._stop_poller(slot)
                slot.last_used = self._clock()

        return _unsubscribe

    def __contains__(self, key: KeyLike) -> bool:
        return make_key(key) in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    async def close(self) -> None:
        """Cancel pollers and in-flight fetches. The store is unusable afterwards."""
        self._closed = True
        tasks: list[asyncio.Task[Any]] = []
        for slot in self._slots.values():
            for task in (slot.poller, slot.inflight):
                if task is not None and not task.done():
                    task.cancel()
                    tasks.append(task)
            slot.poller = None
            slot.subscribers.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._slots.clear()
