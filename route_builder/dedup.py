"""
Flight Deduplicator.

The same flight is usually reported once per cabin and once per source. Entries
sharing (flight number, departure instant) collapse into one: cabins are OR-ed,
sources are unioned and sorted, every other field comes from the first entry.
"""
from typing import Dict, Iterable, List

from route_builder.models import Cabin, FlightKey, FlightOption


def merge_flights(flights: List[FlightOption]) -> FlightOption:
    first = flights[0]
    update = {
        cabin.option_field: any(f.has_cabin(cabin) for f in flights)
        for cabin in Cabin
    }
    update["sources"] = sorted({source for f in flights for source in f.sources})
    return first.model_copy(update=update)


def dedupe_flights(flights: Iterable[FlightOption]) -> List[FlightOption]:
    """
    Merge duplicates and return them ordered by departure, then flight number.

    The merged cabins and sources do not depend on input order; the remaining
    fields are identical for duplicates of a real flight.
    """
    groups: Dict[FlightKey, List[FlightOption]] = {}
    for flight in flights:
        groups.setdefault(flight.key, []).append(flight)
    ordered = sorted(groups, key=lambda key: (key[1], key[0]))
    return [merge_flights(groups[key]) for key in ordered]
