from .models import (
    ErrorCategory,
    GeocodeError,
    LookupKind,
    LookupRequest,
    LookupResult,
    Notice,
    Position,
)
from .gates import RateLimiter, TriggerGate
from .listener import LocationListener
from .loop_guard import LoopGuard
from .nominatim import NominatimClient, format_address
from .engine import ResolutionEngine, campus_location

__all__ = [
    "ErrorCategory",
    "GeocodeError",
    "LocationListener",
    "LookupKind",
    "LookupRequest",
    "LookupResult",
    "LoopGuard",
    "NominatimClient",
    "Notice",
    "Position",
    "RateLimiter",
    "ResolutionEngine",
    "TriggerGate",
    "campus_location",
    "format_address",
]
