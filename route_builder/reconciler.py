"""
Record Reconciler: merges every source's claim for one (route, date) into a
single canonical availability record.

Sources are walked in trust-priority order. Each source's airline list per
cabin is corrected by the TrustPolicy (stripped carriers, price-ceiling
rejection of low-confidence single-carrier claims) before it is OR-ed into the
canonical direct flag and unioned into the canonical airline set.
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from route_builder.models import (
    Cabin,
    CanonicalAvailabilityRecord,
    CanonicalCabin,
    SourceRecord,
)
from route_builder.providers.base import PricingTierProvider
from route_builder.rules import TrustPolicy

logger = logging.getLogger(__name__)


class RecordReconciler:
    def __init__(self, policy: TrustPolicy, pricing: Optional[PricingTierProvider] = None):
        self.policy = policy
        self.pricing = pricing

    def corrected_airlines(self, record: SourceRecord, cabin: Cabin) -> List[str]:
        """Airline list of one source for one cabin after every trust rule is applied."""
        stripped = self.policy.stripped_carriers(record.source)
        claim = record.claim(cabin)
        airlines = [a for a in claim.airlines if a not in stripped]

        carrier = self.policy.low_confidence_carrier(record.source)
        if carrier and airlines == [carrier] and self._exceeds_ceiling(record, cabin, claim.mileage_cost):
            logger.info(
                f"[Trust] {record.source} {record.route} {record.date} {cabin.value}: "
                f"{carrier}-only claim at {claim.mileage_cost} rejected above chart ceiling"
            )
            return []
        return airlines

    def _exceeds_ceiling(self, record: SourceRecord, cabin: Cabin, price: Optional[int]) -> bool:
        if self.pricing is None or price is None:
            return False

        from_zone = self.pricing.zone_for(record.origin)
        to_zone = self.pricing.zone_for(record.destination)
        if not from_zone or not to_zone:
            return False

        tier = self.pricing.tier_for(from_zone, to_zone, record.distance)
        if tier is None:
            return False

        ceiling = tier.ceiling(cabin)
        if ceiling is None:
            return False
        return price > ceiling

    def reconcile(self, records: Iterable[SourceRecord]) -> Optional[CanonicalAvailabilityRecord]:
        """
        Merge all records of one (route, date). Returns None when there are none:
        absence of a record means "no availability", not an error.
        """
        ordered = sorted(records, key=lambda r: self.policy.sort_key(r.source))
        if not ordered:
            return None

        primary = ordered[0]
        cabins: Dict[Cabin, CanonicalCabin] = {cabin: CanonicalCabin() for cabin in Cabin}
        sources: List[str] = []

        for record in ordered:
            if record.source not in sources:
                sources.append(record.source)

            for cabin in Cabin:
                airlines = self.corrected_airlines(record, cabin)
                merged = cabins[cabin]
                merged.direct = merged.direct or bool(airlines)

                added = False
                for airline in airlines:
                    if airline not in merged.contributors:
                        merged.contributors[airline] = record.id
                        merged.airlines.append(airline)
                        added = True
                if added:
                    merged.last_update_id = record.id

        distance = primary.distance or next((r.distance for r in ordered if r.distance), 0)
        canonical = CanonicalAvailabilityRecord(
            id=primary.id,
            origin=primary.origin,
            destination=primary.destination,
            date=primary.date,
            distance=distance,
            sources=sources,
            cabins=cabins,
        )
        logger.debug(
            f"Merged {canonical.route} {canonical.date} from {','.join(sources)}: "
            + " ".join(f"{c.value}={','.join(cabins[c].airlines) or '-'}" for c in Cabin)
        )
        return canonical


class AvailabilityCalendar:
    """Canonical records indexed by date and route."""

    def __init__(self, records: Iterable[CanonicalAvailabilityRecord] = ()):
        self._by_date: Dict[date, Dict[str, CanonicalAvailabilityRecord]] = defaultdict(dict)
        for record in records:
            self._by_date[record.date][record.route] = record

    def __len__(self) -> int:
        return sum(len(routes) for routes in self._by_date.values())

    @property
    def dates(self) -> List[date]:
        return sorted(self._by_date)

    def records_on(self, day: date) -> List[CanonicalAvailabilityRecord]:
        return [self._by_date[day][route] for route in sorted(self._by_date.get(day, {}))]

    def lookup(self, route: str, day: date) -> Optional[CanonicalAvailabilityRecord]:
        return self._by_date.get(day, {}).get(route)

    def all_records(self) -> List[CanonicalAvailabilityRecord]:
        return [record for day in self.dates for record in self.records_on(day)]


def group_records(records: Iterable[SourceRecord]) -> Dict[Tuple[date, str, str], List[SourceRecord]]:
    groups: Dict[Tuple[date, str, str], List[SourceRecord]] = defaultdict(list)
    for record in records:
        groups[(record.date, record.origin, record.destination)].append(record)
    return groups


def build_calendar(
    records: Iterable[SourceRecord],
    reconciler: RecordReconciler,
    valid_routes: Optional[Iterable[str]] = None,
) -> AvailabilityCalendar:
    """Group raw records by (date, route), reconcile each group, index the result."""
    allowed = set(valid_routes) if valid_routes is not None else None
    merged = []
    for (day, origin, destination), group in group_records(records).items():
        if allowed is not None and f"{origin}-{destination}" not in allowed:
            continue
        canonical = reconciler.reconcile(group)
        if canonical is not None:
            merged.append(canonical)
    logger.info(f"Built availability calendar with {len(merged)} canonical records")
    return AvailabilityCalendar(merged)
