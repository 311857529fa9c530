from fastapi import APIRouter, Request

from linkguard.core.logging import log_info
from linkguard.models.internal import RetryPlan
from linkguard.models.request import RetryPlanRequest
from linkguard.services.retry import retry_policy

router = APIRouter()


@router.post("/plan", response_model=RetryPlan)
async def plan_retry(request: Request, body: RetryPlanRequest):
    """Classify a download error and return clamped retry limits"""
    plan = retry_policy.plan(body.error, body.max_attempts, body.delay_seconds)
    log_info(
        request,
        f"Download error classified as {plan.classification.outcome.value}",
        category=plan.classification.category,
    )
    return plan
