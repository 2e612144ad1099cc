import random

from route_builder.dedup import dedupe_flights


def test_cabins_and_sources_merge(make_flight):
    flights = [
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30", economy=True, sources=["united"]),
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30", business=True, sources=["aeroplan"]),
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30", business=True, sources=["united"]),
    ]

    merged = dedupe_flights(flights)

    assert len(merged) == 1
    assert merged[0].economy and merged[0].business
    assert not merged[0].first
    assert merged[0].sources == ["aeroplan", "united"]


def test_same_number_on_other_day_is_kept(make_flight):
    flights = [
        make_flight("LH401", "JFK", "FRA", "2025-03-02T18:00", "2025-03-03T07:30"),
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30"),
    ]

    merged = dedupe_flights(flights)

    assert [f.departs_at.day for f in merged] == [1, 2]


def test_idempotent_and_order_insensitive(make_flight):
    flights = [
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30", economy=True, sources=["united"]),
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30", first=True, sources=["lufthansa"]),
        make_flight("UA960", "IAD", "FRA", "2025-03-01T17:45", "2025-03-02T07:55", business=True),
        make_flight("LH419", "IAD", "FRA", "2025-03-01T17:45", "2025-03-02T07:40", premium=True),
    ]
    once = dedupe_flights(flights)

    assert dedupe_flights(once) == once

    shuffled = list(flights)
    random.Random(7).shuffle(shuffled)
    assert dedupe_flights(shuffled) == once


def test_sorted_by_departure_then_number(make_flight):
    flights = [
        make_flight("UA960", "IAD", "FRA", "2025-03-01T17:45", "2025-03-02T07:55"),
        make_flight("LH401", "JFK", "FRA", "2025-03-01T18:00", "2025-03-02T07:30"),
        make_flight("LH419", "IAD", "FRA", "2025-03-01T17:45", "2025-03-02T07:40"),
    ]

    assert [f.flight_number for f in dedupe_flights(flights)] == ["LH419", "UA960", "LH401"]
