# src/locate/loop_guard.py
import asyncio
import logging
from typing import Optional

from src.core.config import settings
from .listener import LocationListener
from .models import Position

logger = logging.getLogger(__name__)


class LoopGuard:
    """
    Owns the canonical position/address pair.

    After a coordinate-derived address is applied the guard is *suppressed*
    for ``window_ms``: address changes observed in that window are echoes of
    our own update and must not start a forward lookup. A single release
    timer moves it back to *open*; applying again restarts the window.
    """

    def __init__(
        self,
        listener: LocationListener,
        position: Optional[Position] = None,
        address: str = "",
        window_ms: Optional[int] = None,
    ):
        self.listener = listener
        self.position = position
        self.address = address or ""
        self.window_ms = settings.suppression_window_ms if window_ms is None else window_ms
        self._suppressed = False
        self._release_handle: Optional[asyncio.TimerHandle] = None

    @property
    def suppressed(self) -> bool:
        return self._suppressed

    def apply_coordinate_derived_address(self, position: Position, address: str) -> None:
        self._suppress()
        self.position = position
        self.address = address
        self.listener.on_position_change(position, address)
        self.listener.on_address_change(address)

    def apply_address_derived_position(self, position: Position) -> None:
        # address stays as the user typed it
        self.position = position
        self.listener.on_position_change(position, None)

    def apply_position(self, position: Position) -> None:
        self.position = position
        self.listener.on_position_change(position, None)

    def observe_address_change(self, address: str) -> bool:
        """Record a user edit of the address field; False while suppressed."""
        if self._suppressed:
            logger.debug("address change ignored while suppressed")
            return False
        self.address = address or ""
        return True

    def close(self) -> None:
        if self._release_handle is not None:
            self._release_handle.cancel()
            self._release_handle = None
        self._suppressed = False

    def _suppress(self) -> None:
        if self._release_handle is not None:
            self._release_handle.cancel()
        self._suppressed = True
        loop = asyncio.get_running_loop()
        self._release_handle = loop.call_later(self.window_ms / 1000.0, self._release)

    def _release(self) -> None:
        self._release_handle = None
        self._suppressed = False
