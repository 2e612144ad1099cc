"""
Award chart lookups: airport zones, distance-banded pricing tiers and journey quotes.

The bundled chart (data/pricing.json) is zone-to-zone and banded by flown
distance in miles, in the shape of the partner award chart:

    {"From Region": "North America", "To Region": "Atlantic",
     "Min Distance": 0, "Max Distance": 4000,
     "Economy": 30000, "Premium": 45000, "Business": 60000, "First": 70000}
"""
import json
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from route_builder.models import Cabin, FlightOption, minutes_between
from route_builder.providers.base import PricingTierProvider

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
STOPOVER_SURCHARGE = 5000
EARTH_RADIUS_MILES = 3958.8


class Airport(BaseModel):
    iata: str = Field(..., alias="IATA")
    name: str = Field("", alias="Name")
    zone: str = Field(..., alias="Zone")
    latitude: Optional[float] = Field(None, alias="Latitude")
    longitude: Optional[float] = Field(None, alias="Longitude")

    model_config = {"populate_by_name": True}


class PricingTier(BaseModel):
    from_zone: str = Field(..., alias="From Region")
    to_zone: str = Field(..., alias="To Region")
    min_distance: int = Field(..., alias="Min Distance")
    max_distance: int = Field(..., alias="Max Distance")
    economy: Optional[int] = Field(None, alias="Economy")
    premium: Optional[int] = Field(None, alias="Premium")
    business: Optional[int] = Field(None, alias="Business")
    first: Optional[int] = Field(None, alias="First")

    model_config = {"populate_by_name": True}

    def ceiling(self, cabin: Cabin) -> Optional[int]:
        return getattr(self, cabin.option_field)

    def covers(self, from_zone: str, to_zone: str, distance: float) -> bool:
        return (
            self.from_zone == from_zone
            and self.to_zone == to_zone
            and self.min_distance <= distance <= self.max_distance
        )


class AirportDirectory:
    def __init__(self, airports: List[Airport]):
        self._by_code: Dict[str, Airport] = {a.iata: a for a in airports}

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "AirportDirectory":
        path = Path(path) if path else DATA_DIR / "airports.json"
        raw = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            raw = list(raw.values())
        return cls([Airport.model_validate(item) for item in raw])

    def get(self, code: str) -> Optional[Airport]:
        return self._by_code.get(code)

    def zone_for(self, code: str) -> Optional[str]:
        airport = self.get(code)
        return airport.zone if airport else None

    def distance_between(self, origin: str, destination: str) -> Optional[int]:
        """Great-circle distance in miles, or None when coordinates are missing."""
        a, b = self.get(origin), self.get(destination)
        if not a or not b or None in (a.latitude, a.longitude, b.latitude, b.longitude):
            return None
        lat1, lon1, lat2, lon2 = map(math.radians, [a.latitude, a.longitude, b.latitude, b.longitude])
        dlat = lat2 - lat1
        dlon = lon2 - lon1
        h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        return round(2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(h)))


class StaticPricingChart(PricingTierProvider):
    """Pricing Tier collaborator backed by a JSON award chart and an airport directory."""

    def __init__(self, tiers: List[PricingTier], airports: AirportDirectory):
        self._tiers = tiers
        self._airports = airports

    @classmethod
    def from_files(cls, pricing_path: Optional[str] = None, airports_path: Optional[str] = None) -> "StaticPricingChart":
        path = Path(pricing_path) if pricing_path else DATA_DIR / "pricing.json"
        raw = json.loads(path.read_text(encoding="utf-8"))
        tiers = [PricingTier.model_validate(item) for item in raw]
        logger.info(f"Loaded {len(tiers)} pricing tiers from {path.name}")
        return cls(tiers, AirportDirectory.from_file(airports_path))

    @property
    def airports(self) -> AirportDirectory:
        return self._airports

    def zone_for(self, airport: str) -> Optional[str]:
        return self._airports.zone_for(airport)

    def tier_for(self, from_zone: str, to_zone: str, distance: float) -> Optional[PricingTier]:
        for tier in self._tiers:
            if tier.covers(from_zone, to_zone, distance):
                return tier
        return None


class JourneyQuote(BaseModel):
    origin: str
    destination: str
    total_distance: int
    has_stopover: bool
    economy: Optional[int] = None
    business: Optional[int] = None
    first: Optional[int] = None
    business_share: int = 0
    first_share: int = 0
    business_only_share: int = 0


def has_stopover(flights: List[FlightOption]) -> bool:
    """A layover of 24h or more anywhere in the journey counts as a stopover."""
    return any(
        minutes_between(prev.arrives_at, nxt.departs_at) >= 24 * 60
        for prev, nxt in zip(flights, flights[1:])
    )


def quote_journey(flights: List[FlightOption], chart: StaticPricingChart) -> Optional[JourneyQuote]:
    """
    Price a whole journey off the chart for its first origin and final destination.

    Business is priced when any distance is flown in business; first when any is
    flown in first. The shares are whole percentages of total distance.
    Returns None when either end has no zone or no tier covers the distance.
    """
    if not flights:
        return None

    origin = flights[0].origin
    destination = flights[-1].destination
    from_zone = chart.zone_for(origin)
    to_zone = chart.zone_for(destination)
    if not from_zone or not to_zone:
        logger.info(f"No zone for {origin} or {destination}; journey not priced")
        return None

    total = business = first = business_only = 0
    for flight in flights:
        distance = int(flight.distance or 0)
        total += distance
        if flight.business:
            business += distance
            if not flight.first:
                business_only += distance
        if flight.first:
            first += distance

    tier = chart.tier_for(from_zone, to_zone, total)
    if tier is None or total == 0:
        logger.info(f"No pricing tier for {from_zone} -> {to_zone} at {total} miles")
        return None

    stopover = has_stopover(flights)
    extra = STOPOVER_SURCHARGE if stopover else 0
    business_share = round(business / total * 100)
    first_share = round(first / total * 100)

    return JourneyQuote(
        origin=origin,
        destination=destination,
        total_distance=total,
        has_stopover=stopover,
        economy=tier.economy + extra if tier.economy else None,
        business=tier.business + extra if tier.business and business_share > 0 else None,
        first=tier.first + extra if tier.first and first_share > 0 else None,
        business_share=business_share,
        first_share=first_share,
        business_only_share=round(business_only / total * 100),
    )
