import pytest

from route_builder.itinerary_search import find_itineraries
from route_builder.selection import Selection, apply_selection, display_flights, valid_combinations

ROUTE = ["JFK", "LHR", "FRA"]


@pytest.fixture
def board(make_flight):
    ba112 = make_flight("BA112", "JFK", "LHR", "2025-03-01T22:00", "2025-03-02T10:00", segment_index=0)
    ba178 = make_flight("BA178", "JFK", "LHR", "2025-03-02T02:00", "2025-03-02T14:00", segment_index=0)
    lh901 = make_flight("LH901", "LHR", "FRA", "2025-03-02T10:40", "2025-03-02T13:15", segment_index=1)
    lh905 = make_flight("LH905", "LHR", "FRA", "2025-03-02T15:10", "2025-03-02T17:45", segment_index=1)
    itineraries = find_itineraries([[ba112, ba178], [lh901, lh905]], ROUTE).itineraries
    return [ba112, ba178, lh901, lh905], itineraries


def suppressed(view):
    return {d.flight.flight_number for d in view if d.suppressed}


def test_empty_selection_suppresses_nothing(board):
    flights, itineraries = board

    view = apply_selection(flights, itineraries, Selection())

    assert suppressed(view) == set()
    assert not any(d.selected for d in view)


def test_selecting_late_arrival_hides_early_departure(board):
    flights, itineraries = board
    selection = Selection()
    selection.toggle(flights[1])

    view = apply_selection(flights, itineraries, selection)

    # BA112 shares no itinerary with BA178, LH901 cannot follow it
    assert suppressed(view) == {"BA112", "LH901"}
    assert [d.flight.flight_number for d in view if d.selected] == ["BA178"]


def test_toggled_flight_is_never_suppressed(board):
    flights, itineraries = board
    selection = Selection()
    selection.toggle(flights[1])
    selection.toggle(flights[2])

    # BA178 + LH901 is not a valid pair: both stay visible, everything else hides
    view = apply_selection(flights, itineraries, selection)

    assert valid_combinations(itineraries, selection) == []
    assert suppressed(view) == {"BA112", "LH905"}


def test_toggle_replaces_and_removes(board):
    flights, _ = board
    selection = Selection()

    assert selection.toggle(flights[0]) is True
    assert selection.toggle(flights[1]) is True
    assert len(selection) == 1
    assert selection.get(0).flight_number == "BA178"

    assert selection.toggle(flights[1]) is False
    assert not selection


def test_clearing_restores_every_flight(board):
    flights, itineraries = board
    selection = Selection()
    selection.toggle(flights[0])
    selection.toggle(flights[3])
    selection.clear()

    assert suppressed(apply_selection(flights, itineraries, selection)) == set()


def test_degraded_results_are_not_narrowed(board):
    flights, _ = board
    selection = Selection()
    selection.toggle(flights[0])

    view = display_flights(flights, [], selection, degraded=True)

    assert suppressed(view) == set()
    assert [d.selected for d in view] == [True, False, False, False]
