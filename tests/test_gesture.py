from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from pystorefront.gesture import GesturePhase, PullToRefreshController, PullToRefreshState, resistance_curve


@dataclass
class FakeSurface:
    scroll_top: float = 0.0


@dataclass
class RefreshSpy:
    calls: int = 0
    gate: asyncio.Event | None = None
    error: Exception | None = None

    async def __call__(self) -> None:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


def _controller(spy: RefreshSpy, surface: FakeSurface | None = None) -> PullToRefreshController:
    return PullToRefreshController(surface or FakeSurface(), spy, threshold=80, max_pull_distance=120, resistance=0.5)


@pytest.mark.parametrize(
    ("delta_y", "expected"),
    [(-30, 0.0), (0, 0.0), (10, 5.0), (159, 79.5), (160, 80.0), (240, 120.0), (1000, 120.0)],
)
def test_resistance_curve(delta_y: float, expected: float) -> None:
    assert resistance_curve(delta_y, resistance=0.5, max_pull=120) == expected


def test_invalid_thresholds_are_rejected() -> None:
    with pytest.raises(ValueError):
        PullToRefreshController(FakeSurface(), RefreshSpy(), threshold=100, max_pull_distance=80)
    with pytest.raises(ValueError):
        PullToRefreshController(FakeSurface(), RefreshSpy(), resistance=0)


@pytest.mark.asyncio
async def test_pull_past_threshold_refreshes_once_and_returns_to_idle() -> None:
    spy = RefreshSpy()
    controller = _controller(spy)
    seen: list[PullToRefreshState] = []
    controller.subscribe(seen.append)

    assert controller.touch_start(100) is True
    assert controller.touch_move(300) is True
    assert controller.pull_distance == 100.0
    assert controller.progress_percent == 100.0

    assert await controller.touch_end() is True

    assert spy.calls == 1
    assert controller.phase == GesturePhase.IDLE
    assert controller.pull_distance == 0.0
    phases = [state.phase for state in seen]
    assert phases[-3:] == [GesturePhase.COMMITTING, GesturePhase.REFRESHING, GesturePhase.IDLE]
    committing = seen[phases.index(GesturePhase.COMMITTING)]
    assert committing.pull_distance == 80.0
    assert committing.is_refreshing is True


@pytest.mark.asyncio
async def test_release_below_threshold_snaps_back() -> None:
    spy = RefreshSpy()
    controller = _controller(spy)

    controller.touch_start(0)
    controller.touch_move(100)
    assert controller.pull_distance == 50.0
    assert controller.progress_percent == pytest.approx(62.5)

    assert await controller.touch_end() is False

    assert spy.calls == 0
    assert controller.phase == GesturePhase.IDLE
    assert controller.pull_distance == 0.0


@pytest.mark.asyncio
async def test_release_exactly_at_threshold_refreshes() -> None:
    spy = RefreshSpy()
    controller = _controller(spy)

    controller.touch_start(0)
    controller.touch_move(160)

    assert await controller.touch_end() is True
    assert spy.calls == 1


@pytest.mark.asyncio
async def test_touches_ignored_while_refreshing() -> None:
    spy = RefreshSpy(gate=asyncio.Event())
    controller = _controller(spy)

    controller.touch_start(0)
    controller.touch_move(200)
    ending = asyncio.create_task(controller.touch_end())
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert controller.phase == GesturePhase.REFRESHING
    assert controller.is_refreshing is True
    assert controller.pull_distance == 80.0
    assert controller.touch_start(0) is False
    assert controller.touch_move(500) is False
    assert await controller.touch_end() is False

    assert spy.gate is not None
    spy.gate.set()
    assert await ending is True
    assert spy.calls == 1
    assert controller.phase == GesturePhase.IDLE


@pytest.mark.asyncio
async def test_failed_refresh_still_returns_to_idle() -> None:
    spy = RefreshSpy(error=RuntimeError("network down"))
    controller = _controller(spy)

    controller.touch_start(0)
    controller.touch_move(200)

    assert await controller.touch_end() is True
    assert controller.phase == GesturePhase.IDLE
    assert controller.pull_distance == 0.0
    assert controller.is_refreshing is False


@pytest.mark.asyncio
async def test_sync_refresh_callback_is_accepted() -> None:
    calls: list[str] = []
    controller = PullToRefreshController(FakeSurface(), lambda: calls.append("refresh"))

    controller.touch_start(0)
    controller.touch_move(400)

    assert await controller.touch_end() is True
    assert calls == ["refresh"]


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_refresh() -> None:
    spy = RefreshSpy(gate=asyncio.Event())
    controller = _controller(spy)

    controller.touch_start(0)
    controller.touch_move(200)
    ending = asyncio.create_task(controller.touch_end())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    ending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await ending

    assert controller.phase == GesturePhase.REFRESHING
    assert spy.gate is not None
    spy.gate.set()
    await controller.wait_idle()

    assert controller.phase == GesturePhase.IDLE
    assert spy.calls == 1


def test_drag_not_starting_at_top_is_ignored() -> None:
    surface = FakeSurface(scroll_top=40)
    controller = _controller(RefreshSpy(), surface)

    assert controller.touch_start(0) is False
    assert controller.touch_move(300) is False
    assert controller.phase == GesturePhase.IDLE
    assert controller.pull_distance == 0.0


def test_scrolling_away_from_top_resets_pull() -> None:
    surface = FakeSurface()
    controller = _controller(RefreshSpy(), surface)

    controller.touch_start(0)
    controller.touch_move(120)
    assert controller.pull_distance == 60.0

    surface.scroll_top = 15
    assert controller.touch_move(180) is False
    assert controller.pull_distance == 0.0


def test_upward_drag_has_no_pull() -> None:
    controller = _controller(RefreshSpy())

    controller.touch_start(300)

    assert controller.touch_move(250) is False
    assert controller.pull_distance == 0.0
    assert controller.phase == GesturePhase.TRACKING


def test_touch_cancel_abandons_drag() -> None:
    controller = _controller(RefreshSpy())

    controller.touch_start(0)
    controller.touch_move(200)
    controller.touch_cancel()

    assert controller.phase == GesturePhase.IDLE
    assert controller.pull_distance == 0.0


def test_disabled_controller_ignores_touches() -> None:
    controller = _controller(RefreshSpy())
    controller.enabled = False

    assert controller.touch_start(0) is False
    assert controller.phase == GesturePhase.IDLE


def test_unsubscribed_listener_stops_receiving() -> None:
    controller = _controller(RefreshSpy())
    seen: list[PullToRefreshState] = []
    unsubscribe = controller.subscribe(seen.append)

    controller.touch_start(0)
    unsubscribe()
    controller.touch_move(100)

    assert [state.phase for state in seen] == [GesturePhase.TRACKING]


@pytest.mark.asyncio
async def test_disabling_mid_drag_abandons_release() -> None:
    spy = RefreshSpy()
    controller = _controller(spy)

    controller.touch_start(0)
    controller.touch_move(300)
    controller.enabled = False

    assert await controller.touch_end() is False
    assert spy.calls == 0
    assert controller.phase == GesturePhase.IDLE
    assert controller.pull_distance == 0.0
