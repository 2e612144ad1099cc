from datetime import date

import pytest

from route_builder.models import Cabin, SourceRecord
from route_builder.reconciler import RecordReconciler, build_calendar


@pytest.fixture
def reconciler(policy, chart):
    return RecordReconciler(policy, chart)


def records(*items):
    return [SourceRecord.from_api(item) for item in items]


def test_low_confidence_claim_above_ceiling_is_rejected(reconciler, make_availability):
    # JFK-LHR business ceiling is 60000 for 3451 miles
    merged = reconciler.reconcile(records(
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01", J=("AC", 90000)),
    ))

    assert merged.is_direct(Cabin.BUSINESS) is False
    assert merged.cabin(Cabin.BUSINESS).airlines == []


def test_low_confidence_claim_under_ceiling_is_kept(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01", J=("AC", 55000)),
    ))

    assert merged.is_direct(Cabin.BUSINESS) is True
    assert merged.cabin(Cabin.BUSINESS).airlines == ["AC"]


def test_ceiling_only_applies_to_single_carrier_claims(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01", J=("AC,LH", 90000)),
    ))

    assert merged.cabin(Cabin.BUSINESS).airlines == ["AC", "LH"]


def test_ceiling_skipped_without_pricing(policy, make_availability):
    merged = RecordReconciler(policy).reconcile(records(
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01", J=("AC", 90000)),
    ))

    assert merged.is_direct(Cabin.BUSINESS) is True


def test_source_own_carrier_is_stripped(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("l1", "lufthansa", "FRA", "MUC", "2025-03-01", J=("LH", 20000), Y=("LH,UA", 10000)),
    ))

    assert merged.is_direct(Cabin.BUSINESS) is False
    assert merged.cabin(Cabin.ECONOMY).airlines == ["UA"]


def test_multi_source_merge(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("v1", "velocity", "JFK", "LHR", "2025-03-01", Y=("VS", 30000)),
        make_availability("u1", "united", "JFK", "LHR", "2025-03-01", J=("LH", 60000)),
    ))

    assert merged.id == "u1"
    assert merged.sources == ["united", "velocity"]
    assert merged.is_direct(Cabin.ECONOMY) is True
    assert merged.cabin(Cabin.ECONOMY).airlines == ["VS"]
    assert merged.cabin(Cabin.ECONOMY).contributors == {"VS": "v1"}
    assert merged.cabin(Cabin.ECONOMY).last_update_id == "v1"
    assert merged.ids_to_fetch() == ["u1", "v1"]


def test_airlines_are_unioned_in_priority_order(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01", J=("AC,LH", 55000)),
        make_availability("u1", "united", "JFK", "LHR", "2025-03-01", J=("LH,VS", 60000)),
    ))

    business = merged.cabin(Cabin.BUSINESS)
    assert business.airlines == ["LH", "VS", "AC"]
    assert business.contributors == {"LH": "u1", "VS": "u1", "AC": "a1"}
    assert business.last_update_id == "a1"


def test_direct_flag_matches_airline_union(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("u1", "united", "JFK", "LHR", "2025-03-01", Y=("UA", 30000), J=("LH", 60000)),
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01", F=("AC", 200000)),
    ))

    for cabin in Cabin:
        assert merged.is_direct(cabin) == bool(merged.cabin(cabin).airlines)


def test_unknown_sources_rank_after_known(reconciler, make_availability):
    merged = reconciler.reconcile(records(
        make_availability("z1", "zeta", "JFK", "LHR", "2025-03-01"),
        make_availability("b1", "beta", "JFK", "LHR", "2025-03-01"),
        make_availability("a1", "aeroplan", "JFK", "LHR", "2025-03-01"),
    ))

    assert merged.id == "a1"
    assert merged.sources == ["aeroplan", "beta", "zeta"]


def test_no_records_means_no_availability(reconciler):
    assert reconciler.reconcile([]) is None


def test_build_calendar_keeps_only_requested_routes(reconciler, make_availability):
    calendar = build_calendar(
        records(
            make_availability("u1", "united", "JFK", "LHR", "2025-03-01", J=("LH", 60000)),
            make_availability("u2", "united", "JFK", "LHR", "2025-03-02", J=("LH", 60000)),
            make_availability("u3", "united", "JFK", "CDG", "2025-03-01", J=("AF", 60000)),
        ),
        reconciler,
        valid_routes=["JFK-LHR"],
    )

    assert len(calendar) == 2
    assert calendar.dates == [date(2025, 3, 1), date(2025, 3, 2)]
    assert calendar.lookup("JFK-LHR", date(2025, 3, 2)).id == "u2"
    assert calendar.lookup("JFK-CDG", date(2025, 3, 1)) is None


def test_record_without_id_is_rejected(make_availability):
    item = make_availability("u1", "united", "JFK", "LHR", "2025-03-01", J=("LH", 60000))
    del item["ID"]

    with pytest.raises(KeyError):
        SourceRecord.from_api(item)
