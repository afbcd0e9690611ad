# src/locate/nominatim.py
"""
Nominatim lookup client with per-attempt timeouts, linear backoff and
bounded retries.

Every call returns a terminal ``LookupResult``; intermediate attempts are
only visible in the logs.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from src.core.config import settings
from .models import (
    ErrorCategory,
    GeocodeError,
    LookupKind,
    LookupRequest,
    LookupResult,
    Position,
)

logger = logging.getLogger(__name__)

# structured address parts, first non-empty key of each group wins
ADDRESS_PARTS = (
    ("road",),
    ("house_number",),
    ("suburb", "neighbourhood"),
    ("city", "town", "village"),
    ("state",),
    ("postcode",),
)


def format_address(data: Dict[str, Any]) -> Optional[str]:
    """
    Build a short address from a reverse lookup payload.
    Falls back to ``display_name`` when no structured part is present;
    returns None when the payload has no ``display_name`` at all.
    """
    display_name = data.get("display_name")
    if not display_name:
        return None
    address = data.get("address") or {}
    parts = []
    for keys in ADDRESS_PARTS:
        for key in keys:
            value = address.get(key)
            if value:
                parts.append(str(value))
                break
    if parts:
        return ", ".join(parts)
    return display_name


class NominatimClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        country_codes: Optional[str] = None,
        query_suffix: Optional[str] = None,
        max_retries: Optional[int] = None,
        base_timeout_ms: Optional[int] = None,
        timeout_step_ms: Optional[int] = None,
        backoff_step_ms: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep=asyncio.sleep,
    ):
        self.base_url = (base_url or settings.nominatim_url).rstrip('/')
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.country_codes = settings.country_codes if country_codes is None else country_codes
        self.query_suffix = settings.query_suffix if query_suffix is None else query_suffix
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.base_timeout_ms = base_timeout_ms or settings.base_timeout_ms
        self.timeout_step_ms = settings.timeout_step_ms if timeout_step_ms is None else timeout_step_ms
        self.backoff_step_ms = settings.backoff_step_ms if backoff_step_ms is None else backoff_step_ms
        self._client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep

    # -------------------------
    # policy
    # -------------------------
    def timeout_for(self, attempt: int) -> float:
        """Per-attempt timeout in seconds: 15s, 20s, 25s with the defaults."""
        return (self.base_timeout_ms + attempt * self.timeout_step_ms) / 1000.0

    def backoff_for(self, attempt: int) -> float:
        """Delay in seconds before ``attempt``: 0s, 2s, 4s with the defaults."""
        return (self.backoff_step_ms * attempt) / 1000.0

    # -------------------------
    # public API
    # -------------------------
    async def forward(self, address: str) -> LookupResult:
        return await self.lookup(LookupRequest(LookupKind.FORWARD, address))

    async def reverse(self, position: Position) -> LookupResult:
        return await self.lookup(LookupRequest(LookupKind.REVERSE, position))

    async def lookup(self, request: LookupRequest) -> LookupResult:
        while True:
            delay = self.backoff_for(request.attempt)
            if delay > 0:
                logger.debug(f"[{request.kind.value}] waiting {delay:.1f}s before attempt {request.attempt + 1}")
                await self._sleep(delay)
            try:
                result = await self._attempt(request)
                result.attempts = request.attempt + 1
                return result
            except GeocodeError as e:
                if e.retryable and request.attempt < self.max_retries:
                    logger.info(f"[{request.kind.value}] attempt {request.attempt + 1} failed ({e}), retrying")
                    request = request.next_attempt()
                    continue
                logger.warning(f"[{request.kind.value}] lookup failed after {request.attempt + 1} attempt(s): {e}")
                return LookupResult.failure(request.kind, e.category, str(e), attempts=request.attempt + 1)

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # -------------------------
    # single attempt
    # -------------------------
    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _build(self, request: LookupRequest):
        if request.kind is LookupKind.FORWARD:
            query = request.input.strip()
            if self.query_suffix:
                query = f"{query}, {self.query_suffix}"
            params = {"q": query, "format": "json", "addressdetails": 1, "limit": 1}
            if self.country_codes:
                params["countrycodes"] = self.country_codes
            return f"{self.base_url}/search", params
        pos = request.input
        params = {"lat": pos.lat, "lon": pos.lng, "format": "json", "addressdetails": 1, "limit": 1}
        return f"{self.base_url}/reverse", params

    async def _attempt(self, request: LookupRequest) -> LookupResult:
        url, params = self._build(request)
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        timeout = self.timeout_for(request.attempt)
        logger.debug(f"[{request.kind.value}] attempt {request.attempt + 1}: GET {url} timeout={timeout:.0f}s")
        try:
            # wait_for bounds the whole attempt, httpx only bounds each phase
            resp = await asyncio.wait_for(
                self._http().get(url, params=params, headers=headers, timeout=timeout),
                timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise GeocodeError(ErrorCategory.TIMEOUT, f"Nominatim timed out after {timeout:.0f}s", retryable=True) from e
        except httpx.TransportError as e:
            raise GeocodeError(ErrorCategory.TIMEOUT, f"Nominatim network error: {e}", retryable=True) from e

        if resp.status_code == 429:
            raise GeocodeError(ErrorCategory.RATE_LIMITED, "Nominatim rate-limited: 429", retryable=True)
        if not resp.is_success:
            raise GeocodeError(ErrorCategory.SERVICE_UNAVAILABLE, f"Nominatim HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GeocodeError(ErrorCategory.UNKNOWN, f"Nominatim returned invalid JSON: {e}") from e

        if request.kind is LookupKind.FORWARD:
            return self._parse_forward(data)
        return self._parse_reverse(request.input, data)

    def _parse_forward(self, data) -> LookupResult:
        if not isinstance(data, list) or not data:
            raise GeocodeError(ErrorCategory.NOT_FOUND, "Nominatim: empty result", retryable=True)
        first = data[0]
        try:
            position = Position(float(first["lat"]), float(first["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodeError(ErrorCategory.UNKNOWN, f"Nominatim: unusable coordinates in result: {e}") from e
        return LookupResult(kind=LookupKind.FORWARD, position=position, raw=first)

    def _parse_reverse(self, position: Position, data) -> LookupResult:
        address = format_address(data) if isinstance(data, dict) else None
        if not address:
            raise GeocodeError(ErrorCategory.NOT_FOUND, "Nominatim: no address for this location", retryable=True)
        return LookupResult(kind=LookupKind.REVERSE, position=position, address=address, raw=data)
