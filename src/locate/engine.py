# src/locate/engine.py
"""
Resolution engine behind the location picker.

Two entry points, both fire-and-forget:

- ``resolve_address_to_position``: explicit "find this address" action,
  gated by the trigger counter, address length, loop suppression and the
  client-side rate limiter.
- ``resolve_position_to_address``: a map click, never rate limited.

Results reach the collaborator through a ``LocationListener``.
"""
import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Set

from src.core.config import settings
from src.geo.distance import distance_km
from .gates import RateLimiter, TriggerGate
from .listener import LocationListener
from .loop_guard import LoopGuard
from .models import (
    ErrorCategory,
    LookupKind,
    Position,
    REVERSE_FAILED_NOTICE,
    address_too_short_notice,
    location_found_notice,
    notice_for,
)
from .nominatim import NominatimClient

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def campus_location() -> Position:
    return Position(settings.campus_lat, settings.campus_lng)


class ResolutionEngine:
    def __init__(
        self,
        listener: Optional[LocationListener] = None,
        client: Optional[NominatimClient] = None,
        initial_position: Optional[Position] = None,
        initial_address: str = "",
        reference_point: Optional[Position] = None,
        rate_limiter: Optional[RateLimiter] = None,
        min_address_length: Optional[int] = None,
        drop_stale_results: Optional[bool] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.listener = listener or LocationListener()
        self.client = client or NominatimClient()
        self.reference_point = reference_point or campus_location()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.trigger_gate = TriggerGate()
        self.guard = LoopGuard(self.listener, initial_position, initial_address)
        self.min_address_length = (
            settings.min_address_length if min_address_length is None else min_address_length
        )
        self.drop_stale_results = (
            settings.drop_stale_results if drop_stale_results is None else drop_stale_results
        )
        self._clock = clock
        self._generation: Dict[LookupKind, int] = {LookupKind.FORWARD: 0, LookupKind.REVERSE: 0}
        self._in_flight: Dict[LookupKind, int] = {LookupKind.FORWARD: 0, LookupKind.REVERSE: 0}
        self._tasks: Set[asyncio.Task] = set()

        self.distance_km: Optional[float] = None
        self.map_center = initial_position or self.reference_point
        if initial_position is not None:
            self._update_distance(initial_position)

    # -------------------------
    # observables
    # -------------------------
    @property
    def position(self) -> Optional[Position]:
        return self.guard.position

    @property
    def address(self) -> str:
        return self.guard.address

    @property
    def is_loading_coordinates(self) -> bool:
        return self._in_flight[LookupKind.FORWARD] > 0

    @property
    def is_loading_address(self) -> bool:
        return self._in_flight[LookupKind.REVERSE] > 0

    @property
    def state(self) -> str:
        forward, reverse = self.is_loading_coordinates, self.is_loading_address
        if forward and reverse:
            return "both"
        if forward:
            return "forward"
        if reverse:
            return "reverse"
        return "idle"

    def observe_address_change(self, address: str) -> bool:
        """Report an address field change; True when it counts as a user edit."""
        return self.guard.observe_address_change(address)

    # -------------------------
    # forward: address -> position
    # -------------------------
    def resolve_address_to_position(self, address: str, trigger_value) -> Optional[asyncio.Task]:
        if not self.trigger_gate.is_pending(trigger_value):
            logger.debug(f"trigger {trigger_value!r} already processed, ignoring")
            return None

        text = (address or "").strip()
        if not text or len(text) <= self.min_address_length:
            self.trigger_gate.should_process(trigger_value)
            logger.info(f"address too short for lookup ({len(text)} chars)")
            self.listener.on_notice(address_too_short_notice(self.min_address_length))
            return None

        if self.guard.suppressed:
            self.trigger_gate.should_process(trigger_value)
            logger.debug("forward lookup skipped, address came from a map click")
            return None

        if not self.rate_limiter.try_acquire(self._clock()):
            # trigger stays pending so the same request can be retried
            self.listener.on_notice(notice_for(ErrorCategory.CLIENT_RATE_LIMITED))
            return None

        self.trigger_gate.should_process(trigger_value)
        generation = self._next_generation(LookupKind.FORWARD)
        logger.info(f"forward lookup #{generation}: {text!r}")
        return self._spawn(LookupKind.FORWARD, self._run_forward(text, generation))

    async def _run_forward(self, address: str, generation: int):
        result = await self.client.forward(address)
        if self._is_stale(LookupKind.FORWARD, generation):
            return result
        if not result.ok:
            self.listener.on_error(notice_for(result.category))
            return result

        self._update_distance(result.position)
        self.guard.apply_address_derived_position(result.position)
        self.map_center = result.position
        logger.info(f"forward lookup #{generation} -> {result.position.as_tuple()} ({self.distance_km} km)")
        self.listener.on_notice(location_found_notice(self.distance_km))
        return result

    # -------------------------
    # reverse: position -> address
    # -------------------------
    def resolve_position_to_address(self, position: Position) -> asyncio.Task:
        generation = self._next_generation(LookupKind.REVERSE)
        logger.info(f"reverse lookup #{generation}: {position.as_tuple()}")
        return self._spawn(LookupKind.REVERSE, self._run_reverse(position, generation))

    async def _run_reverse(self, position: Position, generation: int):
        result = await self.client.reverse(position)
        if self._is_stale(LookupKind.REVERSE, generation):
            return result
        self._update_distance(position)
        if result.ok:
            self.guard.apply_coordinate_derived_address(position, result.address)
        else:
            # coordinates are authoritative even without an address
            self.guard.apply_position(position)
            self.listener.on_notice(REVERSE_FAILED_NOTICE)
        return result

    # -------------------------
    # lifecycle
    # -------------------------
    async def aclose(self):
        try:
            if self._tasks:
                # failures were already logged by the done callback
                await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self.guard.close()
            await self.client.aclose()

    # -------------------------
    # helpers
    # -------------------------
    def _update_distance(self, position: Position) -> None:
        self.distance_km = distance_km(self.reference_point, position)

    def _next_generation(self, kind: LookupKind) -> int:
        self._generation[kind] += 1
        return self._generation[kind]

    def _is_stale(self, kind: LookupKind, generation: int) -> bool:
        if not self.drop_stale_results or generation == self._generation[kind]:
            return False
        logger.info(f"dropping stale {kind.value} result #{generation} (latest #{self._generation[kind]})")
        return True

    def _spawn(self, kind: LookupKind, coro) -> asyncio.Task:
        self._in_flight[kind] += 1
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)

        def _done(t: asyncio.Task):
            self._in_flight[kind] -= 1
            self._tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(f"{kind.value} lookup task failed", exc_info=t.exception())

        task.add_done_callback(_done)
        return task
