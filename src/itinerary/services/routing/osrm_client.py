"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import TravelMode

logger = logging.getLogger(__name__)

USER_AGENT = "itinerary-planner (osrm table client)"


def normalize_profile(mode: TravelMode | str | None) -> TravelMode:
    """OSRM has no transit or flight graph; both fall back to driving."""

    if mode is None:
        return TravelMode.DRIVING
    mode = TravelMode(mode)
    if mode in (TravelMode.WALKING, TravelMode.CYCLING):
        return mode
    return TravelMode.DRIVING


def upstream_base(profile: TravelMode) -> str:
    if profile is TravelMode.WALKING:
        return settings.osrm_walking_url
    if profile is TravelMode.CYCLING:
        return settings.osrm_cycling_url
    return settings.osrm_base_url


class OSRMClient:
    def __init__(
        self,
        profile: TravelMode | str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.profile = normalize_profile(profile or settings.default_travel_mode)
        self.base_url = (base_url or upstream_base(self.profile)).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            transport=self.transport,
        )

    def _table_request(self, base_url: str, coordinates: Sequence[tuple[float, float]]) -> dict:
        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        # Alternative upstreams serve their own graph under the "driving" path segment.
        url = f"{base_url}/table/v1/driving/{coordinate_str}"
        params = {"annotations": "duration"}

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    try:
                        data = response.json()
                    except ValueError as e:
                        raise ConnectionError(f"OSRM at {base_url} returned a non-JSON body") from e
                    if not isinstance(data, dict) or not isinstance(data.get("durations"), list):
                        raise ConnectionError(f"OSRM at {base_url} returned no durations")
                    return data
                except httpx.HTTPStatusError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"OSRM table request to {base_url} failed with status {e.response.status_code}"
                        ) from e
                    logger.warning(f"OSRM returned {e.response.status_code}, retrying (attempt {attempt}/{self.max_retries})")
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.TransportError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(f"Failed to reach OSRM service at {base_url}: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.warning(f"OSRM request failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def table(self, coordinates: Sequence[tuple[float, float]]) -> dict:
        """Duration matrix (seconds) for ``(lat, lon)`` coordinates, ``None`` where unroutable."""

        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM table.")

        try:
            return self._table_request(self.base_url, coordinates)
        except ConnectionError:
            fallback = settings.osrm_base_url.rstrip("/")
            if self.profile is TravelMode.DRIVING or fallback == self.base_url:
                raise
            logger.warning(f"OSRM {self.profile.value} upstream unavailable, falling back to driving at {fallback}")
            return self._table_request(fallback, coordinates)


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by making a minimal table request with two coordinates."""

    base = (base_url or settings.osrm_base_url).rstrip("/")
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base}/table/v1/driving/{test_coords}"
        response = httpx.get(url, params={"annotations": "duration"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
        return "durations" in data and isinstance(data.get("durations"), list)
    except (httpx.HTTPError, ValueError):
        return False
