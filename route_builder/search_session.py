"""
Search session: drives one route search end to end.

    availability -> calendar -> segment 0 .. n (windows chained) -> itineraries

Segments resolve strictly in order because each window depends on the
previous segment's arrivals; the detail fetches inside one segment run
concurrently. Every search gets a new generation number and anything that
finishes under an older generation is dropped instead of published.
"""
import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from app.config import settings
from app.services.award_api_service import AwardApiService
from route_builder.controller import LoggingController, SearchController
from route_builder.dedup import dedupe_flights
from route_builder.exceptions import (
    DataUnavailable,
    MissingSearchInput,
    NoValidItinerary,
    SourceFetchFailure,
    StaleSearch,
)
from route_builder.itinerary_search import (
    find_itineraries,
    flatten_segments,
    flights_in_itineraries,
    require_itineraries,
)
from route_builder.models import (
    CanonicalAvailabilityRecord,
    FlightOption,
    Itinerary,
    SegmentResult,
    SourceRecord,
    StopoverSpec,
)
from route_builder.normalizer import TripNormalizer
from route_builder.pricing import StaticPricingChart
from route_builder.providers import AvailabilityProvider, AwardApiProvider, DetailFetcher
from route_builder.reconciler import AvailabilityCalendar, RecordReconciler, build_calendar
from route_builder.routes import route_permutations, validate_route, validate_stopover
from route_builder.rules import TrustPolicy, load_policy
from route_builder.selection import DisplayedFlight, Selection, display_flights
from route_builder.time_window import TimeWindow, segment_window

logger = logging.getLogger("SearchSession")


class SearchResult(BaseModel):
    generation: int
    route: List[str]
    start_date: date
    end_date: date
    stopover: Optional[StopoverSpec] = None
    calendar: List[CanonicalAvailabilityRecord] = Field(default_factory=list)
    segments: List[SegmentResult] = Field(default_factory=list)
    itineraries: List[Itinerary] = Field(default_factory=list)
    flights: List[FlightOption] = Field(default_factory=list)
    degraded: bool = False
    truncated: bool = False


class SearchSession:
    def __init__(
        self,
        availability: AvailabilityProvider,
        details: DetailFetcher,
        reconciler: RecordReconciler,
        normalizer: TripNormalizer,
        controller: Optional[SearchController] = None,
        max_itineraries: Optional[int] = None,
    ):
        self.availability = availability
        self.details = details
        self.reconciler = reconciler
        self.normalizer = normalizer
        self.controller = controller or LoggingController()
        self.max_itineraries = max_itineraries or settings.max_itineraries

        self.calendar = AvailabilityCalendar()
        self.result: Optional[SearchResult] = None
        self.selection = Selection()
        self._generation = 0

    @classmethod
    def create(cls, api_key: Optional[str] = None, controller: Optional[SearchController] = None,
               transport=None, policy: Optional[TrustPolicy] = None,
               chart: Optional[StaticPricingChart] = None) -> "SearchSession":
        """
        Session wired to the award data backend. The policy and chart are loaded
        from the configured files unless already-loaded ones are passed in.
        """
        policy = policy or load_policy(settings.trust_policy_path, settings.source_priority)
        chart = chart or StaticPricingChart.from_files(settings.pricing_path, settings.airports_path)
        provider = AwardApiProvider(AwardApiService(api_key=api_key, transport=transport))
        return cls(
            availability=provider,
            details=provider,
            reconciler=RecordReconciler(policy, chart),
            normalizer=TripNormalizer(policy, chart.airports, settings.default_segment_distance),
            controller=controller,
        )

    # --- generations -------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new generation; everything still in flight becomes stale."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _check_current(self, generation: int) -> None:
        if not self.is_current(generation):
            raise StaleSearch(generation, self._generation)

    # --- calendar ----------------------------------------------------------

    async def load_calendar(
        self, path: str, start_date: Optional[date] = None, generation: Optional[int] = None
    ) -> AvailabilityCalendar:
        """
        Fetch availability for `path` (airport groups allowed) and reconcile it into a
        calendar holding only the concrete routes the path can produce.
        A failed fetch yields an empty calendar.
        """
        try:
            raw = await self.availability.fetch_availability(path, start_date)
        except SourceFetchFailure as e:
            logger.error(f"Availability for {path} unavailable: {e}")
            raw = []
        if generation is not None:
            self._check_current(generation)

        records = []
        for item in raw:
            try:
                records.append(SourceRecord.from_api(item))
            except (KeyError, ValueError) as e:
                logger.warning(f"Failed parsing availability record {item.get('ID')}. Skipping. Cause: {e}")

        return build_calendar(records, self.reconciler, route_permutations(path))

    def _record_for(self, route: str, day: date) -> CanonicalAvailabilityRecord:
        record = self.calendar.lookup(route, day)
        if record is None:
            raise DataUnavailable(route, day)
        return record

    # --- segments ----------------------------------------------------------

    async def _fetch_trips(self, generation: int, record_id: str):
        self._check_current(generation)
        trips = await self.details.fetch_trips(record_id)
        self._check_current(generation)
        return trips

    async def resolve_segment(self, generation: int, index: int, route: str, window: TimeWindow) -> List[FlightOption]:
        """Every flight for one segment inside `window`, deduplicated and sorted by departure."""
        record_ids: List[str] = []
        fallback_sources: Dict[str, str] = {}
        for day in window.dates():
            try:
                record = self._record_for(route, day)
            except DataUnavailable as e:
                logger.debug(f"[Segment {index}] {e}")
                continue
            for record_id in record.ids_to_fetch():
                if record_id not in record_ids:
                    record_ids.append(record_id)
            if record.sources:
                fallback_sources.setdefault(record.id, record.sources[0])

        if not record_ids:
            logger.info(f"[Segment {index}] No availability records for {route} in {window}")
            return []

        responses = await asyncio.gather(
            *(self._fetch_trips(generation, record_id) for record_id in record_ids),
            return_exceptions=True,
        )

        flights: List[FlightOption] = []
        for record_id, response in zip(record_ids, responses):
            if isinstance(response, SourceFetchFailure):
                logger.warning(f"[Segment {index}] Skipping record {record_id}: {response}")
                continue
            if isinstance(response, BaseException):
                raise response
            flights.extend(
                self.normalizer.normalize(
                    response, index, window, fallback_sources.get(record_id, "unknown")
                )
            )
        return dedupe_flights(flights)

    # --- search ------------------------------------------------------------

    def check_credentials(self) -> None:
        if not self.availability.has_credentials:
            raise MissingSearchInput("A partner credential is required to search")

    def _validate(
        self,
        route: Sequence[str],
        start_date: Optional[date],
        end_date: Optional[date],
        stopover: Optional[StopoverSpec],
    ) -> List[str]:
        self.check_credentials()
        if start_date is None or end_date is None:
            raise MissingSearchInput("A start and end date are required to search")
        if end_date < start_date:
            raise MissingSearchInput("end_date must not be earlier than start_date")
        airports = validate_route(route)
        validate_stopover(airports, stopover)
        return airports

    async def search(
        self,
        route: Sequence[str],
        start_date: Optional[date],
        end_date: Optional[date],
        stopover: Optional[StopoverSpec] = None,
        preserve_calendar: bool = False,
        clear_selections: bool = False,
    ) -> Optional[SearchResult]:
        """
        Run a full search. Input errors raise before anything is fetched.
        Returns None when a newer search superseded this one while it ran.

        preserve_calendar reuses the current calendar (e.g. only the stopover
        changed); clear_selections drops every pinned flight first.
        """
        airports = self._validate(route, start_date, end_date, stopover)
        generation = self.begin()
        if clear_selections:
            self.selection.clear()

        try:
            return await self._run(generation, airports, start_date, end_date, stopover, preserve_calendar)
        except StaleSearch as e:
            logger.info(f"Discarded results of generation {e.generation}; generation {e.current} is newer")
            return None

    async def _run(
        self,
        generation: int,
        route: List[str],
        start_date: date,
        end_date: date,
        stopover: Optional[StopoverSpec],
        preserve_calendar: bool,
    ) -> SearchResult:
        path = "-".join(route)
        logger.info(
            f"[Generation {generation}] Searching {path} {start_date} -> {end_date}"
            + (f" with {stopover.days}-day stopover at {stopover.airport}" if stopover else "")
        )

        if preserve_calendar and len(self.calendar):
            logger.info(f"[Generation {generation}] Reusing calendar of {len(self.calendar)} records")
        else:
            self.calendar = await self.load_calendar(path, start_date, generation)
            self.controller.show_calendar()

        segments: List[SegmentResult] = []
        previous: List[FlightOption] = []
        broken = False
        for index, (origin, destination) in enumerate(zip(route, route[1:])):
            if broken:
                segments.append(SegmentResult(index=index, origin=origin, destination=destination))
                continue

            window = segment_window(index, route, start_date, end_date, previous, stopover)
            flights = await self.resolve_segment(generation, index, f"{origin}-{destination}", window)
            segments.append(
                SegmentResult(
                    index=index,
                    origin=origin,
                    destination=destination,
                    search_dates=window.dates(),
                    flights=flights,
                )
            )
            logger.info(f"[Segment {index}] {origin}-{destination}: {len(flights)} flights in {window}")

            if not flights and previous:
                logger.warning(f"[Segment {index}] Route broken at {origin}-{destination}; later segments skipped")
                broken = True
            previous = flights

        options = [segment.flights for segment in segments]
        found = find_itineraries(options, route, stopover, self.max_itineraries)
        try:
            itineraries = require_itineraries(found)
            flights = flights_in_itineraries(options, itineraries)
            degraded = False
        except NoValidItinerary as e:
            logger.warning(f"[Generation {generation}] {e}; showing all flights by segment")
            itineraries = []
            flights = flatten_segments(options)
            degraded = True

        self._check_current(generation)
        self.result = SearchResult(
            generation=generation,
            route=route,
            start_date=start_date,
            end_date=end_date,
            stopover=stopover,
            calendar=self.calendar.all_records(),
            segments=segments,
            itineraries=itineraries,
            flights=flights,
            degraded=degraded,
            truncated=found.truncated,
        )
        self._drop_missing_selections(flights)

        logger.info(
            f"[Generation {generation}] {len(itineraries)} itineraries, {len(flights)} flights"
            + (" (degraded)" if degraded else "")
        )
        return self.result

    # --- selection ---------------------------------------------------------

    def _drop_missing_selections(self, flights: Sequence[FlightOption]) -> None:
        present = {(f.segment_index, f.key) for f in flights}
        for segment_index, chosen in self.selection.items():
            if (segment_index, chosen.key) not in present:
                self.selection.toggle(chosen)

    def displayed(self) -> List[DisplayedFlight]:
        if self.result is None:
            return []
        return display_flights(
            self.result.flights, self.result.itineraries, self.selection, self.result.degraded
        )

    def toggle_selection(self, flight: FlightOption) -> List[DisplayedFlight]:
        self.selection.toggle(flight)
        return self.displayed()

    def reset(self) -> None:
        """Forget everything; searches still in flight are discarded when they land."""
        self.begin()
        self.calendar = AvailabilityCalendar()
        self.result = None
        self.selection.clear()
        self.controller.clear_stopover()
        self.controller.hide_calendar()
