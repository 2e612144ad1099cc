from route_builder.providers.base import AvailabilityProvider, DetailFetcher, PricingTierProvider
from route_builder.providers.award_api_provider import AwardApiProvider

__all__ = [
    "AvailabilityProvider",
    "DetailFetcher",
    "PricingTierProvider",
    "AwardApiProvider",
]
