"""
Abstract collaborators of the route builder.

The engine never talks to a transport directly: availability records, trip
details and award-chart ceilings all come through these interfaces, so tests
and alternative backends can be swapped in freely.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional


class AvailabilityProvider(ABC):
    """
    Contract for the cached-availability collaborator.

    Implementations MUST:
      - Return raw availability dicts, one per (date, origin, destination, source)
      - Raise SourceFetchFailure when the upstream call fails
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique identifier for this provider (e.g. 'award_api', 'static')."""
        ...

    @property
    def has_credentials(self) -> bool:
        """False when the provider cannot authenticate; blocks a search before any fetch."""
        return True

    @abstractmethod
    async def fetch_availability(
        self, route: str, start_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch availability records for a route string such as 'JFK-LHR-FRA'.

        Args:
            route: hyphen-separated airport path
            start_date: optional first date of interest

        Returns:
            List of flat availability dicts (see SourceRecord.from_api).
        """
        ...


class DetailFetcher(ABC):
    """Contract for the trip-detail collaborator keyed by availability record id."""

    @abstractmethod
    async def fetch_trips(self, record_id: str) -> List[Dict[str, Any]]:
        """
        Fetch raw trip records behind one availability record id.
        Raises SourceFetchFailure on any upstream error.
        """
        ...


class PricingTierProvider(ABC):
    """Contract for the award-chart collaborator used by the trust heuristic."""

    @abstractmethod
    def zone_for(self, airport: str) -> Optional[str]:
        """Award-chart zone of an airport, or None when unknown."""
        ...

    @abstractmethod
    def tier_for(self, from_zone: str, to_zone: str, distance: float):
        """Pricing tier (with per-cabin ceilings) covering the distance, or None."""
        ...
