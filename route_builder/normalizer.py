"""
Turns raw trip records from the detail fetcher into FlightOptions.

Trip timestamps carry a trailing 'Z' but are local wall-clock times, so the
suffix is dropped and no conversion is applied. Trips rejected by the trust
policy or outside the segment's time window are skipped silently.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from route_builder.models import Cabin, FlightOption
from route_builder.rules import TrustPolicy
from route_builder.time_window import TimeWindow

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_DISTANCE = 1000


def parse_local_time(value: str) -> datetime:
    """'2025-03-01T10:40:00Z' -> naive datetime(2025, 3, 1, 10, 40)."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1]
    parsed = datetime.fromisoformat(text)
    return parsed.replace(tzinfo=None)


def fare_class_of(trip: Dict[str, Any]) -> Optional[str]:
    segments = trip.get("AvailabilitySegments") or []
    if not segments:
        return None
    return segments[0].get("FareClass") or None


class TripNormalizer:
    def __init__(self, policy: TrustPolicy, airports=None, default_distance: int = DEFAULT_SEGMENT_DISTANCE):
        self.policy = policy
        self.airports = airports
        self.default_distance = default_distance

    def _distance(self, trip: Dict[str, Any]) -> int:
        try:
            distance = int(trip.get("Distance") or 0)
        except (TypeError, ValueError):
            distance = 0
        if distance:
            return distance

        origin, destination = trip.get("OriginAirport"), trip.get("DestinationAirport")
        if self.airports is not None:
            estimate = self.airports.distance_between(origin, destination)
            if estimate:
                return estimate
        logger.debug(f"No distance for {origin}-{destination}, using default {self.default_distance}")
        return self.default_distance

    def accept(self, trip: Dict[str, Any], window: Optional[TimeWindow] = None) -> bool:
        carrier = trip.get("Carriers", "")
        stops = trip.get("Stops")
        if stops is None:
            logger.debug(f"Skipped {trip.get('FlightNumbers')}: no stop count")
            return False
        reason = self.policy.rejection_reason(carrier, int(stops), fare_class_of(trip))
        if reason:
            logger.debug(f"Skipped {trip.get('FlightNumbers')}: {reason}")
            return False

        if window is not None:
            departs = parse_local_time(trip["DepartsAt"])
            if not window.contains(departs):
                logger.debug(f"Skipped {trip.get('FlightNumbers')}: departs {departs} outside {window}")
                return False
        return True

    def to_option(self, trip: Dict[str, Any], segment_index: int, fallback_source: str = "unknown") -> FlightOption:
        carrier = self.policy.canonical_carrier(trip.get("Carriers", ""))
        aircraft = trip.get("Aircraft") or []
        if isinstance(aircraft, str):
            aircraft = [aircraft]

        option = FlightOption(
            flight_number=self.policy.canonical_flight_number(trip["FlightNumbers"]),
            carrier=carrier,
            origin=trip["OriginAirport"],
            destination=trip["DestinationAirport"],
            departs_at=parse_local_time(trip["DepartsAt"]),
            arrives_at=parse_local_time(trip["ArrivesAt"]),
            duration=int(trip.get("TotalDuration") or 0),
            aircraft=self.policy.canonical_aircraft(aircraft[0] if aircraft else None),
            distance=self._distance(trip),
            segment_index=segment_index,
            sources=[trip.get("Source") or fallback_source],
        )
        cabin = Cabin.from_name(trip.get("Cabin", ""))
        if cabin is not None:
            setattr(option, cabin.option_field, True)
        return option

    def normalize(
        self,
        trips: Iterable[Dict[str, Any]],
        segment_index: int,
        window: Optional[TimeWindow] = None,
        fallback_source: str = "unknown",
    ) -> List[FlightOption]:
        options = []
        for trip in trips:
            try:
                if not self.accept(trip, window):
                    continue
                options.append(self.to_option(trip, segment_index, fallback_source))
            except (KeyError, ValueError, TypeError) as e:
                # One malformed trip must not sink the rest of the response
                logger.warning(f"Failed parsing trip {trip.get('ID')}. Skipping. Cause: {e}")
        return options
