from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from app.config import settings
from route_builder.pricing import StaticPricingChart
from route_builder.rules import TrustPolicy, load_policy
from route_builder.search_session import SearchSession


@lru_cache
def get_policy() -> TrustPolicy:
    return load_policy(settings.trust_policy_path, settings.source_priority)


@lru_cache
def get_pricing_chart() -> StaticPricingChart:
    return StaticPricingChart.from_files(settings.pricing_path, settings.airports_path)


def get_search_session(
    partner_authorization: Optional[str] = Header(None, alias="Partner-Authorization"),
    policy: TrustPolicy = Depends(get_policy),
    chart: StaticPricingChart = Depends(get_pricing_chart),
) -> SearchSession:
    # Header wins over the configured key; one session per request, reference data shared
    return SearchSession.create(api_key=partner_authorization, policy=policy, chart=chart)
