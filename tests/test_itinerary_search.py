import pytest

from route_builder.exceptions import NoValidItinerary
from route_builder.itinerary_search import (
    connection_allowed,
    find_itineraries,
    flatten_segments,
    flights_in_itineraries,
    require_itineraries,
)
from route_builder.models import StopoverSpec

ROUTE = ["JFK", "LHR", "FRA"]


@pytest.fixture
def two_segments(make_flight):
    first = [
        make_flight("BA112", "JFK", "LHR", "2025-03-01T22:00", "2025-03-02T10:00", segment_index=0),
        make_flight("BA178", "JFK", "LHR", "2025-03-02T02:00", "2025-03-02T14:00", segment_index=0),
    ]
    second = [
        make_flight("LH901", "LHR", "FRA", "2025-03-02T10:40", "2025-03-02T13:15", segment_index=1),
        make_flight("LH905", "LHR", "FRA", "2025-03-02T15:10", "2025-03-02T17:45", segment_index=1),
    ]
    return [first, second]


def test_same_day_connections(two_segments):
    result = find_itineraries(two_segments, ROUTE)

    assert [[f.flight_number for f in i.flights] for i in result.itineraries] == [
        ["BA112", "LH901"],
        ["BA112", "LH905"],
        ["BA178", "LH905"],
    ]
    assert not result.truncated


def test_every_connection_respects_window(two_segments):
    for itinerary in find_itineraries(two_segments, ROUTE).itineraries:
        for minutes in itinerary.connection_minutes():
            assert 30 <= minutes <= 1440


def test_stopover_rejects_same_day_connections(two_segments):
    result = find_itineraries(two_segments, ROUTE, StopoverSpec(airport="LHR", days=2))

    assert result.itineraries == []
    with pytest.raises(NoValidItinerary):
        require_itineraries(result)


def test_stopover_accepts_departure_days_later(two_segments, make_flight):
    first, _ = two_segments
    later = [make_flight("LH903", "LHR", "FRA", "2025-03-04T10:40", "2025-03-04T13:15", segment_index=1)]

    result = find_itineraries([first, later], ROUTE, StopoverSpec(airport="LHR", days=2))

    assert [[f.flight_number for f in i.flights] for i in result.itineraries] == [["BA112", "LH903"]]
    assert result.itineraries[0].connection_minutes() == [2 * 1440 + 40]


def test_connection_bounds_are_inclusive(make_flight):
    arrival = make_flight("BA112", "JFK", "LHR", "2025-03-01T22:00", "2025-03-02T10:00")
    at_min = make_flight("LH901", "LHR", "FRA", "2025-03-02T10:30", "2025-03-02T13:00")
    too_soon = make_flight("LH903", "LHR", "FRA", "2025-03-02T10:29", "2025-03-02T13:00")
    at_max = make_flight("LH905", "LHR", "FRA", "2025-03-03T10:00", "2025-03-03T13:00")

    assert connection_allowed(arrival, at_min, "LHR")
    assert not connection_allowed(arrival, too_soon, "LHR")
    assert connection_allowed(arrival, at_max, "LHR")


def test_empty_segments_are_skipped(make_flight):
    route = ["EWR", "JFK", "LHR", "FRA"]
    segments = [
        [],
        [make_flight("BA112", "JFK", "LHR", "2025-03-01T22:00", "2025-03-02T10:00", segment_index=1)],
        [make_flight("LH901", "LHR", "FRA", "2025-03-02T11:00", "2025-03-02T13:15", segment_index=2)],
    ]

    result = find_itineraries(segments, route)

    assert len(result.itineraries) == 1
    assert [f.segment_index for f in result.itineraries[0].flights] == [1, 2]


def test_no_options_anywhere():
    assert find_itineraries([[], []], ROUTE).itineraries == []


def test_cap_truncates(make_flight):
    first = [
        make_flight(f"BA{n}", "JFK", "LHR", "2025-03-01T20:00", f"2025-03-02T08:{n:02d}", segment_index=0)
        for n in range(10)
    ]
    second = [
        make_flight(f"LH{n}", "LHR", "FRA", f"2025-03-02T12:{n:02d}", "2025-03-02T14:30", segment_index=1)
        for n in range(10)
    ]

    result = find_itineraries([first, second], ROUTE, max_results=25)

    assert len(result.itineraries) == 25
    assert result.truncated


def test_flattened_fallback_groups_by_segment(two_segments):
    flights = flatten_segments(two_segments)

    assert [f.segment_index for f in flights] == [0, 0, 1, 1]


def test_flights_in_itineraries_drops_unreachable(two_segments, make_flight):
    first, second = two_segments
    stranded = make_flight("LH999", "LHR", "FRA", "2025-03-02T06:00", "2025-03-02T08:00", segment_index=1)
    segments = [first, [stranded] + second]

    result = find_itineraries(segments, ROUTE)
    used = flights_in_itineraries(segments, result.itineraries)

    assert "LH999" not in [f.flight_number for f in used]
    assert len(used) == 4
