import httpx
from datetime import date
from typing import Dict, Any, List, Optional
import logging

from app.config import settings

logger = logging.getLogger(__name__)

class AwardApiService:
    """
    Thin async client for the award data backend.

      GET {base}/availability/{route}?startDate=YYYY-MM-DD  -> list of availability records
      GET {base}/seats/{record_id}                          -> trip details for one record

    Both endpoints authenticate with the Partner-Authorization header.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.award_api_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.award_api_key
        self.timeout = settings.request_timeout
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    def _headers(self, record_id: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "accept": "application/json",
            "Partner-Authorization": self.api_key,
        }
        if record_id:
            headers["Segment-ID"] = record_id
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def get_availability(self, route: str, start_date: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        Cached availability for every segment of a route string such as 'JFK-LHR-FRA'.
        Raises httpx.HTTPStatusError / httpx.RequestError to the caller.
        """
        params = {}
        if start_date:
            params["startDate"] = start_date.strftime("%Y-%m-%d")

        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/availability/{route}",
                headers=self._headers(),
                params=params,
            )
            response.raise_for_status()
            data = response.json()

        if isinstance(data, dict):
            data = data.get("data") or []
        if not isinstance(data, list):
            raise ValueError(f"Unexpected availability payload for {route}: {type(data).__name__}")
        data = [item for item in data if isinstance(item, dict)]
        logger.info(f"Received {len(data)} availability records for {route}")
        return data

    async def get_trips(self, record_id: str) -> Dict[str, Any]:
        """Raw trip payload for one availability record id."""
        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/seats/{record_id}",
                headers=self._headers(record_id),
            )
            response.raise_for_status()
            return response.json()

    @staticmethod
    def extract_trips(payload: Any) -> List[Dict[str, Any]]:
        """
        Trip list from either the proxied shape
        {"results": [{"source": ..., "data": {"data": [...]}}]} or the direct {"data": [...]}.
        Each trip is tagged with its source when it carries none. A source whose
        entry is not a trip list contributes nothing; any other shape raises ValueError.
        """
        if isinstance(payload, list):
            return [trip for trip in payload if isinstance(trip, dict)]
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected trips payload: {type(payload).__name__}")

        results = payload.get("results")
        if results:
            if not isinstance(results, list):
                raise ValueError(f"Unexpected trips results: {type(results).__name__}")
            trips = []
            for result in results:
                if not isinstance(result, dict):
                    continue
                source = result.get("source")
                inner = result.get("data") or []
                if isinstance(inner, dict):
                    inner = inner.get("data") or []
                if not isinstance(inner, list):
                    logger.warning(f"Ignoring malformed trip list from {source or 'unknown source'}")
                    continue
                for trip in inner:
                    if not isinstance(trip, dict):
                        continue
                    if source and not trip.get("Source"):
                        trip = {**trip, "Source": source}
                    trips.append(trip)
            return trips

        data = payload.get("data") or []
        if not isinstance(data, list):
            raise ValueError(f"Unexpected trips data: {type(data).__name__}")
        return [trip for trip in data if isinstance(trip, dict)]
