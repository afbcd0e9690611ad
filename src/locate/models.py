# src/locate/models.py
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Position:
    """A WGS84 coordinate pair. Replaced wholesale, never mutated."""
    lat: float
    lng: float

    def __post_init__(self):
        lat, lng = float(self.lat), float(self.lng)
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lng", lng)

    def as_tuple(self):
        return self.lat, self.lng


class LookupKind(str, Enum):
    FORWARD = "forward"
    REVERSE = "reverse"


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CLIENT_RATE_LIMITED = "client_rate_limited"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LookupRequest:
    kind: LookupKind
    input: Union[str, Position]
    attempt: int = 0

    def next_attempt(self) -> "LookupRequest":
        return replace(self, attempt=self.attempt + 1)


@dataclass
class LookupResult:
    """Terminal outcome of a lookup; ``category`` is set only on failure."""
    kind: LookupKind
    position: Optional[Position] = None
    address: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)
    category: Optional[ErrorCategory] = None
    message: str = ""
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.category is None

    @classmethod
    def failure(cls, kind: LookupKind, category: ErrorCategory, message: str, attempts: int = 1):
        return cls(kind=kind, category=category, message=message, attempts=attempts)


class GeocodeError(RuntimeError):
    """Raised by a single provider call; ``retryable`` decides whether the client tries again."""

    def __init__(self, category: ErrorCategory, message: str, retryable: bool = False):
        super().__init__(message)
        self.category = category
        self.retryable = retryable


@dataclass(frozen=True)
class Notice:
    """User-facing message handed to the listener (errors, warnings, info, success)."""
    title: str
    message: str
    level: str = "info"
    category: Optional[ErrorCategory] = None


# (title, description) per terminal category
USER_MESSAGES: Dict[ErrorCategory, tuple] = {
    ErrorCategory.TIMEOUT: (
        "Service Temporarily Busy",
        "The address lookup timed out after multiple attempts. Please try again, "
        "or select your location on the map instead.",
    ),
    ErrorCategory.RATE_LIMITED: (
        "Service Busy",
        "The address lookup service is busy. Please wait a moment and try again.",
    ),
    ErrorCategory.NOT_FOUND: (
        "Address Not Found",
        "Could not find coordinates for this address. Try a more detailed address "
        "(include city/district) or select the location on the map.",
    ),
    ErrorCategory.SERVICE_UNAVAILABLE: (
        "Service Unavailable",
        "The address lookup service is temporarily unavailable. Please try again later "
        "or select your location on the map.",
    ),
    ErrorCategory.CLIENT_RATE_LIMITED: (
        "Please Wait",
        "Please wait a moment before making another address lookup request.",
    ),
    ErrorCategory.UNKNOWN: (
        "Address Lookup Failed",
        "Could not look up this address. You can still select the location on the map.",
    ),
}

REVERSE_FAILED_NOTICE = Notice(
    title="Address Lookup Failed",
    message="Could not determine the address for this location, but coordinates were saved successfully.",
    level="warning",
)


def notice_for(category: ErrorCategory) -> Notice:
    title, message = USER_MESSAGES[category]
    level = "info" if category is ErrorCategory.CLIENT_RATE_LIMITED else "warning"
    return Notice(title=title, message=message, level=level, category=category)


def address_too_short_notice(min_length: int) -> Notice:
    return Notice(
        title="Address Too Short",
        message=f"Enter an address longer than {min_length} characters, "
                "for example \"Tambun Selatan, Bekasi, West Java\".",
        level="info",
    )


def location_found_notice(distance: float) -> Notice:
    return Notice(
        title="Location Found",
        message=f"Address geocoded successfully. Distance to campus: {distance:.2f} km",
        level="success",
    )
