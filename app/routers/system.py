from fastapi import APIRouter, Depends

from app.config import settings
from app.dependencies import get_policy
from route_builder.rules import TrustPolicy

router = APIRouter(prefix="/system", tags=["System"])

@router.get("/policy")
def get_active_policy(policy: TrustPolicy = Depends(get_policy)):
    return {
        "source_priority": policy.source_priority,
        "trust_policy": policy.model_dump(),
        "max_itineraries": settings.max_itineraries,
        "max_search_days": settings.max_search_days,
    }
