from fastapi import APIRouter, Depends, HTTPException
import logging

from app.dependencies import get_pricing_chart, get_search_session
from app.schemas.search_schema import (
    AvailabilityRequest,
    AvailabilityResponse,
    ItinerarySearchRequest,
    QuoteRequest,
    SelectionRequest,
    SelectionResponse,
)
from route_builder.exceptions import InvalidRoute, InvalidStopover, MissingSearchInput
from route_builder.pricing import JourneyQuote, StaticPricingChart, quote_journey
from route_builder.routes import parse_route, route_permutations
from route_builder.search_session import SearchResult, SearchSession
from route_builder.selection import Selection, display_flights, valid_combinations

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/search",
    tags=["search"]
)

def _bad_request(e: Exception) -> HTTPException:
    logger.info(f"Rejected search request: {e}")
    return HTTPException(status_code=400, detail=str(e))

@router.post("/availability", response_model=AvailabilityResponse)
async def fetch_availability(request: AvailabilityRequest, session: SearchSession = Depends(get_search_session)):
    """
    Reconciled availability calendar for a path. Airport groups (NYC, LON, ...) are
    expanded and only the concrete routes they produce are kept.
    """
    try:
        session.check_credentials()
    except MissingSearchInput as e:
        raise _bad_request(e)

    calendar = await session.load_calendar(request.path, request.start_date)
    return AvailabilityResponse(
        path=request.path,
        routes=route_permutations(request.path),
        records=calendar.all_records(),
    )

@router.post("/itineraries", response_model=SearchResult)
async def search_itineraries(request: ItinerarySearchRequest, session: SearchSession = Depends(get_search_session)):
    """
    Full search: calendar, segment resolution, itinerary enumeration.
    `degraded` is set when no connected itinerary exists and every flight is listed by segment.
    """
    try:
        route = parse_route(request.route)
        result = await session.search(route, request.start_date, request.end_date, request.stopover)
    except (MissingSearchInput, InvalidRoute, InvalidStopover) as e:
        raise _bad_request(e)

    if result is None:
        raise HTTPException(status_code=409, detail="Search was superseded by a newer one.")
    return result

@router.post("/selection", response_model=SelectionResponse)
def validate_selection(request: SelectionRequest):
    """Mark which displayed flights remain reachable given the pinned flights."""
    selection = Selection({flight.segment_index: flight for flight in request.selected})
    flights = display_flights(request.flights, request.itineraries, selection, request.degraded)
    valid = 0 if request.degraded else len(valid_combinations(request.itineraries, selection))
    return SelectionResponse(flights=flights, valid_itineraries=valid)

@router.post("/quote", response_model=JourneyQuote)
def quote(request: QuoteRequest, chart: StaticPricingChart = Depends(get_pricing_chart)):
    journey = quote_journey(request.flights, chart)
    if journey is None:
        raise HTTPException(status_code=404, detail="No award chart entry covers this journey.")
    return journey
