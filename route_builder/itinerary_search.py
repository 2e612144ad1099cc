"""
Itinerary Search.

Depth-first enumeration of every time-consistent path through the per-segment
flight lists. The walk uses an explicit stack whose depth is bounded by the
number of segments, and stops after `max_results` complete itineraries.

Connection rules at the junction airport route[segment]:
  - stopover airport with d days: connection in [d*1440, (d+1)*1440] minutes
  - any other airport: connection in [30, 1440] minutes
"""
import logging
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from route_builder.exceptions import NoValidItinerary
from route_builder.models import FlightOption, Itinerary, StopoverSpec, minutes_between

logger = logging.getLogger(__name__)

MIN_CONNECTION_MINUTES = 30
MAX_CONNECTION_MINUTES = 24 * 60
DEFAULT_MAX_ITINERARIES = 5000


class ItinerarySearchResult(BaseModel):
    itineraries: List[Itinerary] = Field(default_factory=list)
    truncated: bool = False


def connection_allowed(
    previous: FlightOption,
    candidate: FlightOption,
    junction: str,
    stopover: Optional[StopoverSpec] = None,
) -> bool:
    connection = minutes_between(previous.arrives_at, candidate.departs_at)
    if stopover is not None and junction == stopover.airport:
        return stopover.days * 1440 <= connection <= (stopover.days + 1) * 1440
    return MIN_CONNECTION_MINUTES <= connection <= MAX_CONNECTION_MINUTES


def find_itineraries(
    segments: Sequence[Sequence[FlightOption]],
    route: Sequence[str],
    stopover: Optional[StopoverSpec] = None,
    max_results: int = DEFAULT_MAX_ITINERARIES,
) -> ItinerarySearchResult:
    """
    Enumerate itineraries over `segments`, where segments[i] holds the options
    for route[i] -> route[i + 1]. Segments without options are skipped and
    leave no placeholder in the path.
    """
    populated = [i for i, options in enumerate(segments) if options]
    if not populated:
        return ItinerarySearchResult()

    first_seg, last_seg = populated[0], populated[-1]
    results: List[Itinerary] = []

    # Each frame is (path so far, next segment index). Children are pushed in
    # reverse so paths are emitted in the same order as a recursive walk.
    stack: List[Tuple[Tuple[FlightOption, ...], int]] = [((), first_seg)]
    while stack:
        path, seg = stack.pop()

        while seg <= last_seg and not segments[seg]:
            seg += 1

        if seg > last_seg:
            results.append(Itinerary(flights=list(path)))
            if len(results) >= max_results:
                logger.warning(f"Itinerary cap of {max_results} reached; remaining paths dropped")
                return ItinerarySearchResult(itineraries=results, truncated=True)
            continue

        if not path:
            candidates = list(segments[seg])
        else:
            junction = route[seg]
            candidates = [
                option for option in segments[seg]
                if connection_allowed(path[-1], option, junction, stopover)
            ]

        for option in reversed(candidates):
            stack.append((path + (option,), seg + 1))

    return ItinerarySearchResult(itineraries=results)


def require_itineraries(result: ItinerarySearchResult) -> List[Itinerary]:
    if not result.itineraries:
        raise NoValidItinerary("No time-consistent itinerary across the resolved segments")
    return result.itineraries


def flatten_segments(segments: Sequence[Sequence[FlightOption]]) -> List[FlightOption]:
    """Degraded display: every option, grouped by segment, without connectivity checks."""
    flights = []
    for index, options in enumerate(segments):
        for option in options:
            flights.append(option.model_copy(update={"segment_index": index}))
    return flights


def flights_in_itineraries(
    segments: Sequence[Sequence[FlightOption]], itineraries: Sequence[Itinerary]
) -> List[FlightOption]:
    """Options that take part in at least one itinerary, in segment order."""
    used = {(f.segment_index, f.key) for itinerary in itineraries for f in itinerary.flights}
    return [
        option
        for options in segments
        for option in options
        if (option.segment_index, option.key) in used
    ]
