# tests/test_loop_guard.py
import asyncio

import pytest

from src.locate import LoopGuard, Position

CLICK = Position(-6.2, 106.8)


@pytest.mark.asyncio
async def test_coordinate_derived_address_notifies_both(listener):
    guard = LoopGuard(listener, window_ms=50)
    guard.apply_coordinate_derived_address(CLICK, "Jl. Test, Depok")

    assert guard.position == CLICK
    assert guard.address == "Jl. Test, Depok"
    assert listener.events == [
        ("position", CLICK, "Jl. Test, Depok"),
        ("address", "Jl. Test, Depok"),
    ]
    guard.close()


@pytest.mark.asyncio
async def test_address_change_suppressed_inside_window(listener):
    guard = LoopGuard(listener, address="typed by user", window_ms=50)
    guard.apply_coordinate_derived_address(CLICK, "Jl. Test, Depok")

    assert guard.suppressed
    assert guard.observe_address_change("Jl. Test, Depok") is False

    await asyncio.sleep(0.1)

    assert not guard.suppressed
    assert guard.observe_address_change("Jl. Test 2, Depok") is True
    assert guard.address == "Jl. Test 2, Depok"


@pytest.mark.asyncio
async def test_echo_from_listener_callback_is_suppressed():
    seen = []

    class EchoingListener:
        def on_position_change(self, position, address):
            pass

        def on_address_change(self, address):
            # the form writes the address back into its field immediately
            seen.append(guard.observe_address_change(address))

    guard = LoopGuard(EchoingListener(), window_ms=50)
    guard.apply_coordinate_derived_address(CLICK, "Jl. Test, Depok")
    assert seen == [False]
    guard.close()


@pytest.mark.asyncio
async def test_reapplying_restarts_window(listener):
    guard = LoopGuard(listener, window_ms=80)
    guard.apply_coordinate_derived_address(CLICK, "first")
    await asyncio.sleep(0.05)
    guard.apply_coordinate_derived_address(CLICK, "second")
    await asyncio.sleep(0.05)
    # 100ms after the first apply, but only 50ms after the second
    assert guard.suppressed
    await asyncio.sleep(0.06)
    assert not guard.suppressed


@pytest.mark.asyncio
async def test_address_derived_position_keeps_user_text(listener):
    guard = LoopGuard(listener, address="Jl. Raya Tambun, Bekasi")
    found = Position(-6.2383, 107.0215)
    guard.apply_address_derived_position(found)

    assert guard.position == found
    assert guard.address == "Jl. Raya Tambun, Bekasi"
    assert not guard.suppressed
    assert listener.events == [("position", found, None)]


@pytest.mark.asyncio
async def test_close_releases_suppression(listener):
    guard = LoopGuard(listener, window_ms=10_000)
    guard.apply_coordinate_derived_address(CLICK, "Jl. Test, Depok")
    guard.close()
    assert not guard.suppressed


def test_position_rejects_out_of_range():
    with pytest.raises(ValueError):
        Position(91.0, 0.0)
    with pytest.raises(ValueError):
        Position(0.0, -180.5)
