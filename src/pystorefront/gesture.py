"""Pull-to-refresh gesture recognition.

One :class:`PullToRefreshController` per scrollable surface turns a
downward drag that starts at the top of the surface into a refresh::

    IDLE --touch_start @ top--> TRACKING --touch_end, pull >= threshold--> COMMITTING
    COMMITTING --> REFRESHING --on_refresh done (ok or not)--> IDLE
    TRACKING --touch_end, pull < threshold--> IDLE

While COMMITTING/REFRESHING the pull distance is pinned at the threshold
and new touches are ignored. A committed cycle cannot be cancelled.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from pystorefront._constants import PULL_MAX_DISTANCE, PULL_RESISTANCE, PULL_THRESHOLD

_logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[None] | None]


class ScrollSurface(Protocol):
    """Anything with a vertical scroll offset (``0`` means scrolled to the top)."""

    @property
    def scroll_top(self) -> float:
        ...


class GesturePhase(StrEnum):
    IDLE = "idle"
    TRACKING = "tracking"
    COMMITTING = "committing"
    REFRESHING = "refreshing"


class GestureState(BaseModel):
    """Mutable recognizer state, private to one controller."""

    model_config = ConfigDict(extra="forbid")

    phase: GesturePhase = GesturePhase.IDLE
    start_y: float = 0.0
    current_pull: float = 0.0


class PullToRefreshState(BaseModel):
    """What an indicator needs to render."""

    model_config = ConfigDict(frozen=True)

    phase: GesturePhase
    pull_distance: float
    is_refreshing: bool
    progress_percent: float


def resistance_curve(delta_y: float, *, resistance: float, max_pull: float) -> float:
    """Displayed pull for a finger travel of *delta_y* px.

    Monotonic, sub-linear (scaled by *resistance*) and capped at *max_pull*.
    """
    if delta_y <= 0:
        return 0.0
    return min(delta_y * resistance, max_pull)


class PullToRefreshController:
    """Finite-state recognizer for one scrollable surface."""

    def __init__(
        self,
        surface: ScrollSurface,
        on_refresh: RefreshCallback,
        *,
        threshold: float = PULL_THRESHOLD,
        max_pull_distance: float = PULL_MAX_DISTANCE,
        resistance: float = PULL_RESISTANCE,
        enabled: bool = True,
    ) -> None:
        if threshold <= 0 or max_pull_distance < threshold:
            raise ValueError("max_pull_distance must be >= threshold > 0")
        if not 0 < resistance <= 1:
            raise ValueError("resistance must be in (0, 1]")
        self._surface = surface
        self._on_refresh = on_refresh
        self._threshold = float(threshold)
        self._max_pull = float(max_pull_distance)
        self._resistance = float(resistance)
        self.enabled = enabled
        self._state = GestureState()
        self._lock = asyncio.Lock()
        self._cycle: asyncio.Task[None] | None = None
        self._listeners: list[Callable[[PullToRefreshState], None]] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> GesturePhase:
        return self._state.phase

    @property
    def pull_distance(self) -> float:
        return self._state.current_pull

    @property
    def is_refreshing(self) -> bool:
        return self._state.phase in (GesturePhase.COMMITTING, GesturePhase.REFRESHING)

    @property
    def progress_percent(self) -> float:
        return min(self._state.current_pull / self._threshold * 100.0, 100.0)

    @property
    def state(self) -> PullToRefreshState:
        return PullToRefreshState(
            phase=self.phase,
            pull_distance=self.pull_distance,
            is_refreshing=self.is_refreshing,
            progress_percent=self.progress_percent,
        )

    def subscribe(self, callback: Callable[[PullToRefreshState], None]) -> Callable[[], None]:
        """Call *callback* after every state change. Returns an unsubscribe handle."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return _unsubscribe

    def _emit(self) -> None:
        snapshot = self.state
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception:
                _logger.warning("Pull-to-refresh listener failed", exc_info=True)

    def _set(self, *, phase: GesturePhase | None = None, pull: float | None = None) -> None:
        changed = False
        if phase is not None and phase != self._state.phase:
            _logger.debug("Pull-to-refresh %s -> %s", self._state.phase.value, phase.value)
            self._state.phase = phase
            changed = True
        if pull is not None and pull != self._state.current_pull:
            self._state.current_pull = pull
            changed = True
        if changed:
            self._emit()

    def _at_top(self) -> bool:
        return self._surface.scroll_top <= 0

    # ------------------------------------------------------------------
    # Touch events
    # ------------------------------------------------------------------

    def touch_start(self, client_y: float) -> bool:
        """Begin tracking if the surface is scrolled to the top.

        Returns ``True`` when a tracking phase started. Ignored while a
        refresh cycle is outstanding.
        """
        if not self.enabled or self.is_refreshing:
            return False
        if not self._at_top():
            self._set(phase=GesturePhase.IDLE, pull=0.0)
            return False
        self._state.start_y = float(client_y)
        self._set(phase=GesturePhase.TRACKING, pull=0.0)
        return True

    def touch_move(self, client_y: float) -> bool:
        """Update the pull distance.

        Returns ``True`` when the move was consumed as a pull (the host
        should suppress native scrolling for it).
        """
        if not self.enabled or self._state.phase != GesturePhase.TRACKING:
            return False
        delta_y = float(client_y) - self._state.start_y
        if delta_y <= 0 or not self._at_top():
            self._set(pull=0.0)
            return False
        self._set(pull=resistance_curve(delta_y, resistance=self._resistance, max_pull=self._max_pull))
        return True

    def touch_cancel(self) -> None:
        """Abandon the current drag without refreshing."""
        if self._state.phase == GesturePhase.TRACKING:
            self._set(phase=GesturePhase.IDLE, pull=0.0)

    async def touch_end(self) -> bool:
        """Release the drag: commit a refresh or snap back.

        Returns ``True`` when a refresh ran. The refresh runs to completion
        even if the awaiting caller is cancelled. A controller disabled
        mid-drag abandons the drag instead.
        """
        if self._state.phase != GesturePhase.TRACKING:
            return False
        if not self.enabled:
            self._set(phase=GesturePhase.IDLE, pull=0.0)
            return False
        if self._state.current_pull < self._threshold:
            self._set(phase=GesturePhase.IDLE, pull=0.0)
            return False

        # Committed synchronously, before the first await, so a touch_start
        # arriving while we wait for the lock is already ignored.
        self._set(phase=GesturePhase.COMMITTING, pull=self._threshold)
        self._cycle = asyncio.get_running_loop().create_task(self._run_cycle())
        await asyncio.shield(self._cycle)
        return True

    async def _run_cycle(self) -> None:
        async with self._lock:
            self._set(phase=GesturePhase.REFRESHING)
            try:
                result = self._on_refresh()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # Failures surface through the cache entries being refreshed.
                _logger.warning("Pull-to-refresh callback failed", exc_info=True)
            finally:
                self._cycle = None
                self._set(phase=GesturePhase.IDLE, pull=0.0)

    async def wait_idle(self) -> None:
        """Wait for an outstanding refresh cycle, if any, to finish."""
        cycle = self._cycle
        if cycle is not None:
            await asyncio.shield(cycle)
