"""
HTTP client for the DWLR telemetry feeds.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import ClientConfig
from ..exceptions import DWLRConnectionError, DWLRError, DWLRQueryError
from ..normalizer import DWLR_FIELDS

logger = logging.getLogger(__name__)


class TelemetryClient:
    """
    Async client for the groundwater telemetry API.

    Two feeds are exposed: the DWLR station feed (one record per station
    reading, human-readable keys) and the single-device sensor feed
    (underscored keys, barometric pressure in hPa). The client only
    fetches raw records; turning them into stations is the normalizer's job.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self.timeout = self.config.timeout
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept": "application/json",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "TelemetryClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _make_request(
        self, url: str, params: Optional[Dict[str, str]] = None
    ) -> Any:
        """Make a GET request with error handling."""
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException as e:
            raise DWLRConnectionError(f"Request timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise DWLRQueryError("Telemetry data not found") from e
            elif e.response.status_code == 429:
                raise DWLRConnectionError("Rate limit exceeded") from e
            elif e.response.status_code >= 500:
                raise DWLRConnectionError(
                    "Telemetry service temporarily unavailable"
                ) from e
            else:
                raise DWLRConnectionError(
                    f"HTTP error {e.response.status_code}: {e}"
                ) from e
        except httpx.RequestError as e:
            raise DWLRConnectionError(f"Network error: {e}") from e
        except json.JSONDecodeError as e:
            raise DWLRQueryError(f"Invalid JSON response: {e}") from e

    async def _fetch_records(self, url: str) -> List[Dict[str, Any]]:
        data = await self._make_request(url)
        if not isinstance(data, list):
            raise DWLRQueryError(
                f"Expected a list of records, got {type(data).__name__}"
            )
        logger.debug(f"Fetched {len(data)} records from {url}")
        return data

    async def fetch_dwlr_records(self) -> List[Dict[str, Any]]:
        """
        Fetch every record of the DWLR station feed.

        Returns:
            Raw records as decoded from JSON, one per station reading
        """
        return await self._fetch_records(self.config.dwlr_url)

    async def fetch_sensor_records(self) -> List[Dict[str, Any]]:
        """Fetch every record of the sensor feed."""
        return await self._fetch_records(self.config.sensor_url)

    async def fetch_station_records(self, station_id: str) -> List[Dict[str, Any]]:
        """
        Fetch the DWLR records belonging to one station.

        The feed has no per-station endpoint, so the full feed is fetched and
        filtered on the telemetry UID.

        Raises:
            DWLRQueryError: If no record carries the given UID
        """
        id_key = DWLR_FIELDS["station_id"]
        try:
            records = await self.fetch_dwlr_records()
        except DWLRError:
            raise
        except Exception as e:
            raise DWLRQueryError(f"Failed to retrieve station data: {e}") from e

        # UIDs are compared stripped, as the normalizer reads them
        wanted = station_id.strip()
        matches = [
            record
            for record in records
            if isinstance(record, dict)
            and str(record.get(id_key, "")).strip() == wanted
        ]
        if not matches:
            raise DWLRQueryError(f"Station '{station_id}' not found")
        return matches
