"""
Declarative trust policy.

All source- and carrier-specific behaviour of the reconciler and the detail
normalizer is expressed here as data, so a new loyalty program or a new
misbehaving feed is handled by editing the table (or the JSON file pointed to
by TRUST_POLICY_PATH) instead of the algorithms.

Default table:
  - lufthansa feed reports unrelated direct flights under LH, united under UA
  - aeroplan claims that reduce to AC only are checked against the award chart
  - EK / FZ / EY trips are never bookable with these programs
  - AC trips are only accepted in saver fare classes X and I
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_PRIORITY = ["united", "velocity", "lufthansa", "aeroplan"]


class AirlineStripRule(BaseModel):
    """Remove carrier codes a source conflates under its own code."""

    source: str
    carriers: List[str]


class PriceCeilingRule(BaseModel):
    """A source's single-carrier claim is only trusted under the chart ceiling."""

    source: str
    carrier: str


class FareClassRule(BaseModel):
    """Trips on this carrier are kept only in the listed fare classes."""

    carrier: str
    allowed: List[str]


class TrustPolicy(BaseModel):
    source_priority: List[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_PRIORITY))
    strip_rules: List[AirlineStripRule] = Field(default_factory=list)
    price_ceiling_rules: List[PriceCeilingRule] = Field(default_factory=list)
    excluded_carriers: List[str] = Field(default_factory=list)
    fare_class_rules: List[FareClassRule] = Field(default_factory=list)
    reject_two_letter_fare_classes: bool = True
    direct_only: bool = True
    carrier_aliases: Dict[str, str] = Field(default_factory=dict)
    aircraft_aliases: Dict[str, str] = Field(default_factory=dict)

    # --- reconciliation -------------------------------------------------

    def priority_of(self, source: str) -> int:
        try:
            return self.source_priority.index(source)
        except ValueError:
            return len(self.source_priority)

    def sort_key(self, source: str):
        """Ranked sources first in ranking order, unknown sources after them by name."""
        return (self.priority_of(source), source)

    def stripped_carriers(self, source: str) -> Set[str]:
        carriers = set()
        for rule in self.strip_rules:
            if rule.source == source:
                carriers.update(rule.carriers)
        return carriers

    def low_confidence_carrier(self, source: str) -> Optional[str]:
        for rule in self.price_ceiling_rules:
            if rule.source == source:
                return rule.carrier
        return None

    # --- detail filtering -----------------------------------------------

    def allowed_fare_classes(self, carrier: str) -> Optional[List[str]]:
        for rule in self.fare_class_rules:
            if rule.carrier == carrier:
                return rule.allowed
        return None

    def rejection_reason(self, carrier: str, stops: int, fare_class: Optional[str]) -> Optional[str]:
        """Why a trip is silently excluded, or None when it is kept."""
        if self.direct_only and stops != 0:
            return "not a direct flight"
        if carrier in self.excluded_carriers:
            return f"excluded carrier {carrier}"
        allowed = self.allowed_fare_classes(carrier)
        if allowed is not None and fare_class and fare_class not in allowed:
            return f"{carrier} fare class {fare_class} not in {','.join(allowed)}"
        if self.reject_two_letter_fare_classes and fare_class and len(fare_class) == 2:
            return f"two-character fare class {fare_class}"
        return None

    def canonical_carrier(self, carrier: str) -> str:
        return self.carrier_aliases.get(carrier, carrier)

    def canonical_flight_number(self, flight_number: str) -> str:
        for alias, carrier in self.carrier_aliases.items():
            if flight_number.startswith(alias):
                return f"{carrier}{flight_number[len(alias):]}"
        return flight_number

    def canonical_aircraft(self, aircraft: Optional[str]) -> Optional[str]:
        if not aircraft:
            return aircraft
        return self.aircraft_aliases.get(aircraft, aircraft)


def default_policy(source_priority: Optional[List[str]] = None) -> TrustPolicy:
    return TrustPolicy(
        source_priority=list(source_priority or DEFAULT_SOURCE_PRIORITY),
        strip_rules=[
            AirlineStripRule(source="lufthansa", carriers=["LH"]),
            AirlineStripRule(source="united", carriers=["UA"]),
        ],
        price_ceiling_rules=[PriceCeilingRule(source="aeroplan", carrier="AC")],
        excluded_carriers=["EK", "FZ", "EY"],
        fare_class_rules=[FareClassRule(carrier="AC", allowed=["X", "I"])],
        carrier_aliases={"CL": "LH"},
        aircraft_aliases={"787  All": "Boeing 787-10"},
    )


def load_policy(path: Optional[str] = None, source_priority: Optional[List[str]] = None) -> TrustPolicy:
    """
    Load a TrustPolicy from a JSON file, falling back to the built-in table.
    An explicit source_priority overrides the one in the file.
    """
    if not path:
        return default_policy(source_priority)

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    policy = TrustPolicy.model_validate(raw)
    if source_priority:
        policy = policy.model_copy(update={"source_priority": list(source_priority)})
    logger.info(f"Loaded trust policy from {path} ({len(policy.source_priority)} ranked sources)")
    return policy
