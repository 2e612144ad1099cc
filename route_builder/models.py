"""
Domain models shared by the reconciliation and itinerary engine.

Times on FlightOption are naive local wall-clock datetimes exactly as the
award sources publish them. No timezone conversion is ever applied.
"""
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class Cabin(str, Enum):
    ECONOMY = "Y"
    PREMIUM = "W"
    BUSINESS = "J"
    FIRST = "F"

    @property
    def option_field(self) -> str:
        """Name of the matching boolean on FlightOption."""
        return _OPTION_FIELDS[self]

    @classmethod
    def from_name(cls, name: str) -> Optional["Cabin"]:
        """Map a detail-record cabin name ('economy', 'business', ...) to a Cabin."""
        if not name:
            return None
        return _CABIN_NAMES.get(name.strip().lower())


_OPTION_FIELDS = {
    Cabin.ECONOMY: "economy",
    Cabin.PREMIUM: "premium",
    Cabin.BUSINESS: "business",
    Cabin.FIRST: "first",
}

_CABIN_NAMES = {
    "economy": Cabin.ECONOMY,
    "premium": Cabin.PREMIUM,
    "premium economy": Cabin.PREMIUM,
    "business": Cabin.BUSINESS,
    "first": Cabin.FIRST,
}

# (flight number, departure instant)
FlightKey = Tuple[str, datetime]


class CabinClaim(BaseModel):
    available: bool = False
    direct: bool = False
    airlines: List[str] = Field(default_factory=list)
    mileage_cost: Optional[int] = None
    taxes: Optional[int] = None


class SourceRecord(BaseModel):
    """One source's availability claim for a (route, date)."""

    id: str
    source: str
    origin: str
    destination: str
    date: date
    distance: int = 0
    cabins: Dict[Cabin, CabinClaim] = Field(default_factory=dict)

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"

    def claim(self, cabin: Cabin) -> CabinClaim:
        return self.cabins.get(cabin) or CabinClaim()

    @classmethod
    def from_api(cls, item: dict) -> "SourceRecord":
        """
        Build a record from the flat availability payload, e.g.
        {"ID": ..., "date": "2025-03-01", "originAirport": "JFK", "source": "united",
         "YAvailable": true, "YDirect": true, "YDirectAirlines": "UA,LH", "YPrice": 30000, ...}
        """
        cabins = {}
        for cabin in Cabin:
            code = cabin.value
            cabins[cabin] = CabinClaim(
                available=bool(item.get(f"{code}Available")),
                direct=bool(item.get(f"{code}Direct")),
                airlines=split_airlines(item.get(f"{code}DirectAirlines")),
                mileage_cost=_as_int(item.get(f"{code}Price", item.get(f"{code}MileageCost"))),
                taxes=_as_int(item.get(f"{code}TotalTaxes", item.get(f"{code}Taxes"))),
            )
        return cls(
            id=str(_record_id(item)),
            source=str(item.get("source") or item.get("Source") or "unknown"),
            origin=item["originAirport"],
            destination=item["destinationAirport"],
            date=item["date"],
            distance=_as_int(item.get("distance")) or 0,
            cabins=cabins,
        )


class CanonicalCabin(BaseModel):
    direct: bool = False
    airlines: List[str] = Field(default_factory=list)
    # airline code -> id of the record that first contributed it
    contributors: Dict[str, str] = Field(default_factory=dict)
    last_update_id: Optional[str] = None


class CanonicalAvailabilityRecord(BaseModel):
    id: str
    origin: str
    destination: str
    date: date
    distance: int = 0
    sources: List[str] = Field(default_factory=list)
    cabins: Dict[Cabin, CanonicalCabin] = Field(default_factory=dict)

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"

    def cabin(self, cabin: Cabin) -> CanonicalCabin:
        return self.cabins.get(cabin) or CanonicalCabin()

    def is_direct(self, cabin: Cabin) -> bool:
        return self.cabin(cabin).direct

    def ids_to_fetch(self) -> List[str]:
        """Primary id followed by every distinct record id that contributed airlines."""
        ids = [self.id]
        for cabin in Cabin:
            entry = self.cabin(cabin)
            for record_id in list(entry.contributors.values()) + [entry.last_update_id]:
                if record_id and record_id not in ids:
                    ids.append(record_id)
        return ids


class FlightOption(BaseModel):
    flight_number: str
    carrier: str
    origin: str
    destination: str
    departs_at: datetime
    arrives_at: datetime
    duration: int = 0
    aircraft: Optional[str] = None
    economy: bool = False
    premium: bool = False
    business: bool = False
    first: bool = False
    distance: int = 0
    segment_index: int = 0
    sources: List[str] = Field(default_factory=list)

    @property
    def key(self) -> FlightKey:
        return (self.flight_number, self.departs_at)

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"

    def has_cabin(self, cabin: Cabin) -> bool:
        return getattr(self, cabin.option_field)


class StopoverSpec(BaseModel):
    airport: str = Field(..., min_length=3, max_length=3)
    days: int = Field(..., ge=1, le=30)

    @field_validator("airport")
    def normalize_airport(cls, v):
        return v.upper()


class Itinerary(BaseModel):
    flights: List[FlightOption]

    @property
    def keys(self) -> List[FlightKey]:
        return [f.key for f in self.flights]

    def flight_for_segment(self, segment_index: int) -> Optional[FlightOption]:
        for flight in self.flights:
            if flight.segment_index == segment_index:
                return flight
        return None

    def connection_minutes(self) -> List[int]:
        return [
            minutes_between(prev.arrives_at, nxt.departs_at)
            for prev, nxt in zip(self.flights, self.flights[1:])
        ]


class SegmentResult(BaseModel):
    index: int
    origin: str
    destination: str
    search_dates: List[date] = Field(default_factory=list)
    flights: List[FlightOption] = Field(default_factory=list)

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"


def split_airlines(value) -> List[str]:
    """'UA, LH,,AC' -> ['UA', 'LH', 'AC'] (order kept, blanks dropped)."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        parts = value
    else:
        parts = str(value).split(",")
    airlines = []
    for part in parts:
        code = str(part).strip()
        if code and code not in airlines:
            airlines.append(code)
    return airlines


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def _as_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _record_id(item: dict):
    record_id = item.get("ID") or item.get("id")
    if not record_id:
        raise KeyError("ID")
    return record_id
