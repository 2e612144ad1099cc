# Airport groups and route path handling.
# A path is written as hyphen-separated stops, each stop an airport ("JFK"),
# a slash list ("EWR/JFK") or a group code ("NYC"). Groups may nest.

from typing import Dict, List, Optional, Sequence

from route_builder.exceptions import InvalidRoute, InvalidStopover
from route_builder.models import StopoverSpec

AIRPORT_GROUPS: Dict[str, str] = {
    # === Metro areas ===
    "NYC": "EWR/JFK/LGA",
    "WAS": "DCA/IAD",
    "CHI": "MDW/ORD",
    "LON": "LCY/LGW/LHR",
    "PAR": "CDG/ORY",
    "TYO": "HND/NRT",
    "SEL": "GMP/ICN",

    # === Regions (may reference metro groups) ===
    "EST": "NYC/BOS/WAS/YYZ/YUL",
    "WST": "SFO/LAX/SEA/YVR",
    "EUR": "LON/PAR/FRA/MUC/ZRH/VIE",
    "ASA": "TYO/SEL/TPE/HKG/SIN/BKK",
    "MDE": "DOH/DXB/IST",
}


def expand_airport_group(code: str) -> List[str]:
    """'NYC' -> ['EWR', 'JFK', 'LGA']; nested groups are flattened, result sorted."""
    if not code:
        return []
    if "/" in code:
        return code.split("/")
    if code not in AIRPORT_GROUPS:
        return [code]

    airports = set()
    pending = [code]
    seen = set()
    while pending:
        current = pending.pop()
        if current in seen:
            continue
        seen.add(current)
        for part in AIRPORT_GROUPS[current].split("/"):
            if part in AIRPORT_GROUPS:
                pending.append(part)
            else:
                airports.add(part)
    return sorted(airports)


def expand_stop(stop: str) -> List[str]:
    """Expand one path stop; slash lists expand each of their parts."""
    if "/" in stop:
        expanded: List[str] = []
        for part in stop.split("/"):
            for airport in expand_airport_group(part):
                if airport not in expanded:
                    expanded.append(airport)
        return expanded
    return expand_airport_group(stop)


def route_permutations(path: str) -> List[str]:
    """Every concrete ORIG-DEST pair between consecutive stops of `path`, sorted."""
    stops = path.split("-")
    routes = set()
    for current, following in zip(stops, stops[1:]):
        for origin in expand_stop(current):
            for destination in expand_stop(following):
                if origin != destination:
                    routes.add(f"{origin}-{destination}")
    return sorted(routes)


def validate_route(route: Sequence[str]) -> List[str]:
    """Concrete airport route: at least two 3-letter uppercase codes, no repeated neighbours."""
    airports = list(route)
    if len(airports) < 2:
        raise InvalidRoute("A route needs at least two airports")
    for airport in airports:
        if not isinstance(airport, str) or len(airport) != 3 or not airport.isalpha() or airport != airport.upper():
            raise InvalidRoute(f"Invalid airport code: {airport!r}")
    for current, following in zip(airports, airports[1:]):
        if current == following:
            raise InvalidRoute(f"Consecutive duplicate airport {current}")
    return airports


def parse_route(path: str) -> List[str]:
    """'JFK-LHR-FRA' -> ['JFK', 'LHR', 'FRA']"""
    if not path:
        raise InvalidRoute("Path is required")
    return validate_route([part.strip().upper() for part in path.split("-")])


def segment_pairs(route: Sequence[str]) -> List[str]:
    return [f"{a}-{b}" for a, b in zip(route, route[1:])]


def validate_stopover(route: Sequence[str], stopover: Optional[StopoverSpec]) -> Optional[StopoverSpec]:
    """Reject a stopover whose airport is not strictly between the route's ends."""
    if stopover is None:
        return None
    if stopover.airport not in list(route)[1:-1]:
        raise InvalidStopover(stopover.airport, route)
    return stopover
