# src/locate/listener.py
from typing import Optional

from .models import Notice, Position


class LocationListener:
    """
    Receiver for engine notifications, implemented by the form or map widget.
    All hooks are no-ops; override the ones you need.
    """

    def on_position_change(self, position: Position, address: Optional[str]) -> None:
        pass

    def on_address_change(self, address: str) -> None:
        pass

    def on_error(self, notice: Notice) -> None:
        pass

    def on_notice(self, notice: Notice) -> None:
        pass
