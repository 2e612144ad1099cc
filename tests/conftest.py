from datetime import datetime

import pytest

from route_builder.controller import SearchController
from route_builder.exceptions import SourceFetchFailure
from route_builder.models import FlightOption
from route_builder.normalizer import TripNormalizer
from route_builder.pricing import StaticPricingChart
from route_builder.providers import AvailabilityProvider, DetailFetcher
from route_builder.reconciler import RecordReconciler
from route_builder.rules import default_policy
from route_builder.search_session import SearchSession


def _flight(number, origin, destination, departs, arrives, segment_index=0, sources=None, **fields):
    return FlightOption(
        flight_number=number,
        carrier=fields.pop("carrier", number[:2]),
        origin=origin,
        destination=destination,
        departs_at=datetime.fromisoformat(departs),
        arrives_at=datetime.fromisoformat(arrives),
        segment_index=segment_index,
        sources=sources or ["united"],
        **fields,
    )


def _availability(record_id, source, origin, destination, day, **cabins):
    """Flat availability record; cabins given as Y=("UA,LH", 30000) style tuples."""
    item = {
        "ID": record_id,
        "source": source,
        "originAirport": origin,
        "destinationAirport": destination,
        "date": day,
        "distance": 3451,
    }
    for code, (airlines, price) in cabins.items():
        item[f"{code}Available"] = True
        item[f"{code}Direct"] = bool(airlines)
        item[f"{code}DirectAirlines"] = airlines
        item[f"{code}Price"] = price
    return item


def _trip(number, origin, destination, departs, arrives, cabin="business", source="united", **fields):
    trip = {
        "ID": fields.pop("ID", f"{number}-{departs}"),
        "FlightNumbers": number,
        "Carriers": fields.pop("Carriers", number[:2]),
        "Cabin": cabin,
        "Stops": 0,
        "OriginAirport": origin,
        "DestinationAirport": destination,
        "DepartsAt": departs,
        "ArrivesAt": arrives,
        "TotalDuration": 420,
        "Aircraft": ["Boeing 777"],
        "Distance": 3451,
        "Source": source,
        "AvailabilitySegments": [{"FareClass": "I"}],
    }
    trip.update(fields)
    return trip


@pytest.fixture
def make_flight():
    return _flight


@pytest.fixture
def make_availability():
    return _availability


@pytest.fixture
def make_trip():
    return _trip


@pytest.fixture
def policy():
    return default_policy()


@pytest.fixture(scope="session")
def chart():
    return StaticPricingChart.from_files()


class FakeBackend(AvailabilityProvider, DetailFetcher):
    """In-memory availability + detail collaborator that records every request."""

    def __init__(self, availability, trips, failing=(), credentials=True, on_availability=None):
        self.availability = availability
        self.trips = trips
        self.failing = set(failing)
        self.credentials = credentials
        self.on_availability = on_availability
        self.requested = []

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def has_credentials(self) -> bool:
        return self.credentials

    async def fetch_availability(self, route, start_date=None):
        self.requested.append(route)
        if self.on_availability:
            self.on_availability()
        return self.availability

    async def fetch_trips(self, record_id):
        self.requested.append(record_id)
        if record_id in self.failing:
            raise SourceFetchFailure(record_id, "HTTP 500")
        return self.trips.get(record_id, [])


class RecordingController(SearchController):
    def __init__(self):
        self.calls = []

    def show_calendar(self):
        self.calls.append("show_calendar")

    def hide_calendar(self):
        self.calls.append("hide_calendar")

    def clear_stopover(self):
        self.calls.append("clear_stopover")


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def controller():
    return RecordingController()


@pytest.fixture
def session_for(policy, chart, controller):
    def build(backend):
        return SearchSession(
            backend,
            backend,
            RecordReconciler(policy, chart),
            TripNormalizer(policy, chart.airports),
            controller=controller,
        )
    return build
