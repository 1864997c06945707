"""
Plan catalogue API routes.
"""

from fastapi import APIRouter

from api.schemas.subscription import FeaturesResponse, PlanInfo, PlansResponse
from core.domain.subscription import Plan
from core.plans import PLAN_CURRENCY, PLAN_DESCRIPTIONS, PLAN_FEATURES, PLAN_PRICES, PLAN_TABLE_VERSION
from core.tier_resolver import plan_duration_days

router = APIRouter(tags=["plans"])


@router.get("/plans", response_model=PlansResponse)
async def list_plans():
    """
    Get all purchasable plans with prices and features.

    Public endpoint, no seller header required.
    """
    plans = [
        PlanInfo(
            id=plan.value,
            price=PLAN_PRICES[plan],
            currency=PLAN_CURRENCY,
            duration_days=plan_duration_days(plan),
            description=PLAN_DESCRIPTIONS.get(plan, ""),
            features=FeaturesResponse.from_bundle(PLAN_FEATURES[plan]),
        )
        for plan in Plan
    ]
    return PlansResponse(plans=plans, version=PLAN_TABLE_VERSION)
