"""
Award API provider: wraps AwardApiService for both availability and trip details.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.services.award_api_service import AwardApiService
from route_builder.exceptions import SourceFetchFailure
from route_builder.providers.base import AvailabilityProvider, DetailFetcher

logger = logging.getLogger("Provider.AwardApi")


class AwardApiProvider(AvailabilityProvider, DetailFetcher):
    """Availability + detail collaborator backed by the award data backend."""

    def __init__(self, service: Optional[AwardApiService] = None, max_retries: Optional[int] = None,
                 base_delay: float = 2.0):
        self._service = service or AwardApiService()
        self._max_retries = max_retries if max_retries is not None else settings.max_retries
        self._base_delay = base_delay

    @property
    def provider_name(self) -> str:
        return "award_api"

    @property
    def has_credentials(self) -> bool:
        return self._service.has_credentials

    async def _with_backoff(self, label: str, call):
        """Run `call()` with exponential backoff on 429; any other failure becomes SourceFetchFailure."""
        for attempt in range(self._max_retries):
            try:
                return await call()
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429:
                    delay = self._base_delay * (2 ** attempt)
                    logger.warning(
                        f"[AwardApi] 429 Rate Limited on {label}. Backoff {delay}s "
                        f"(attempt {attempt+1}/{self._max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"[AwardApi] HTTP {e.response.status_code} for {label}")
                raise SourceFetchFailure(label, f"HTTP {e.response.status_code}") from e
            except httpx.RequestError as e:
                logger.error(f"[AwardApi] Network error for {label}: {e}")
                raise SourceFetchFailure(label, str(e)) from e
            except ValueError as e:
                # Body was not JSON or not the expected shape
                logger.error(f"[AwardApi] Malformed response for {label}: {e}")
                raise SourceFetchFailure(label, "malformed response") from e

        logger.error(f"[AwardApi] Max retries exhausted for {label}")
        raise SourceFetchFailure(label, "rate limited")

    async def fetch_availability(
        self, route: str, start_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        return await self._with_backoff(
            f"availability {route}",
            lambda: self._service.get_availability(route, start_date),
        )

    async def fetch_trips(self, record_id: str) -> List[Dict[str, Any]]:
        async def call():
            # Parsed here so a malformed body fails this source only
            return AwardApiService.extract_trips(await self._service.get_trips(record_id))

        return await self._with_backoff(f"trips {record_id}", call)
