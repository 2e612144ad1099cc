"""
Selection Validator.

A Selection pins at most one flight per segment. Every change narrows the
itinerary set to the combinations that agree with all pins, and any displayed
flight that appears in none of them (and is not itself pinned) is suppressed.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from pydantic import BaseModel

from route_builder.models import FlightKey, FlightOption, Itinerary

logger = logging.getLogger(__name__)


class Selection:
    def __init__(self, chosen: Optional[Dict[int, FlightOption]] = None):
        self._chosen: Dict[int, FlightOption] = dict(chosen or {})

    def __len__(self) -> int:
        return len(self._chosen)

    def __bool__(self) -> bool:
        return bool(self._chosen)

    def items(self):
        return sorted(self._chosen.items())

    def get(self, segment_index: int) -> Optional[FlightOption]:
        return self._chosen.get(segment_index)

    def is_selected(self, flight: FlightOption) -> bool:
        chosen = self._chosen.get(flight.segment_index)
        return chosen is not None and chosen.key == flight.key

    def toggle(self, flight: FlightOption) -> bool:
        """
        Pin `flight` on its segment, or unpin it when it is already pinned.
        Pinning replaces any other flight pinned on the same segment.
        Returns True when the flight ends up selected.
        """
        if self.is_selected(flight):
            del self._chosen[flight.segment_index]
            logger.debug(f"Deselected {flight.flight_number} {flight.departs_at} on segment {flight.segment_index}")
            return False
        self._chosen[flight.segment_index] = flight
        logger.debug(f"Selected {flight.flight_number} {flight.departs_at} on segment {flight.segment_index}")
        return True

    def clear(self) -> None:
        self._chosen.clear()


class DisplayedFlight(BaseModel):
    flight: FlightOption
    selected: bool = False
    suppressed: bool = False


def valid_combinations(itineraries: Iterable[Itinerary], selection: Selection) -> List[Itinerary]:
    """Itineraries whose flight on every pinned segment is the pinned flight."""
    combos = []
    for itinerary in itineraries:
        ok = True
        for segment_index, chosen in selection.items():
            flight = itinerary.flight_for_segment(segment_index)
            if flight is None or flight.key != chosen.key:
                ok = False
                break
        if ok:
            combos.append(itinerary)
    return combos


def valid_flight_keys(combos: Iterable[Itinerary]) -> Set[FlightKey]:
    return {key for itinerary in combos for key in itinerary.keys}


def apply_selection(
    displayed: Iterable[FlightOption],
    itineraries: Iterable[Itinerary],
    selection: Selection,
) -> List[DisplayedFlight]:
    itineraries = list(itineraries)
    if not selection:
        return [DisplayedFlight(flight=f) for f in displayed]

    combos = valid_combinations(itineraries, selection)
    keys = valid_flight_keys(combos)
    logger.info(f"{len(combos)} of {len(itineraries)} itineraries match {len(selection)} selected flights")

    view = []
    for flight in displayed:
        selected = selection.is_selected(flight)
        view.append(
            DisplayedFlight(
                flight=flight,
                selected=selected,
                suppressed=not selected and flight.key not in keys,
            )
        )
    return view


def display_flights(
    displayed: Iterable[FlightOption],
    itineraries: Iterable[Itinerary],
    selection: Selection,
    degraded: bool = False,
) -> List[DisplayedFlight]:
    """apply_selection, except a degraded result (no itineraries) is never narrowed."""
    if degraded:
        return [DisplayedFlight(flight=f, selected=selection.is_selected(f)) for f in displayed]
    return apply_selection(displayed, itineraries, selection)
