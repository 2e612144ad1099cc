from pydantic import BaseModel, Field, field_validator
from datetime import date, timedelta
from typing import List, Optional

from app.config import settings
from route_builder.models import CanonicalAvailabilityRecord, FlightOption, Itinerary, StopoverSpec
from route_builder.selection import DisplayedFlight

class AvailabilityRequest(BaseModel):
    path: str = Field(..., min_length=7, description="Hyphen-separated stops, airport groups allowed (e.g. NYC-LON-FRA).")
    start_date: Optional[date] = Field(None, description="YYYY-MM-DD format")

    @field_validator("path")
    def normalize_path(cls, v):
        v = v.strip().upper()
        if any(not part for part in v.split("-")):
            raise ValueError("path must not contain empty stops")
        return v

class AvailabilityResponse(BaseModel):
    path: str
    routes: List[str]
    records: List[CanonicalAvailabilityRecord]

class ItinerarySearchRequest(BaseModel):
    route: str = Field(..., min_length=7, description="Concrete airport path, e.g. JFK-LHR-FRA")
    start_date: date = Field(..., description="YYYY-MM-DD format")
    end_date: date = Field(..., description="YYYY-MM-DD format")
    stopover: Optional[StopoverSpec] = None

    @field_validator("route")
    def normalize_route(cls, v):
        return v.strip().upper()

    @field_validator("end_date")
    def validate_range(cls, v, info):
        start = info.data.get("start_date")
        if start is None:
            return v
        if v < start:
            raise ValueError("end_date must not be earlier than start_date")
        if v - start >= timedelta(days=settings.max_search_days):
            raise ValueError(f"date range must not exceed {settings.max_search_days} days")
        return v

class SelectionRequest(BaseModel):
    flights: List[FlightOption]
    itineraries: List[Itinerary] = Field(default_factory=list)
    selected: List[FlightOption] = Field(default_factory=list, description="Flights to pin, at most one per segment")
    degraded: bool = False

class SelectionResponse(BaseModel):
    flights: List[DisplayedFlight]
    valid_itineraries: int

class QuoteRequest(BaseModel):
    flights: List[FlightOption] = Field(..., min_length=1, description="One chosen itinerary, in flight order")
