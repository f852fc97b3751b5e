"""
Main API router aggregator
"""
from fastapi import APIRouter, Depends

from report_buddy.api.v1.endpoints import (
    auth,
    billing,
    court_prep,
    generate,
    health,
    legal,
    profile,
    reports,
)
from report_buddy.core.rate_limit import ai_limiter, auth_limiter, general_limiter

# Stripe posts to the webhook from its own fleet; it carries no bearer token
# and is kept out of the per-address limits.
api_router = APIRouter()

limited = APIRouter(dependencies=[Depends(general_limiter)])

limited.include_router(
    auth.router, prefix="/auth", tags=["Authentication"],
    dependencies=[Depends(auth_limiter)],
)
limited.include_router(profile.router, prefix="/profile", tags=["Profile"])
limited.include_router(
    reports.router, prefix="/reports", tags=["Reports"],
    dependencies=[Depends(ai_limiter)],
)
limited.include_router(
    generate.router, prefix="/generate", tags=["Generation"],
    dependencies=[Depends(ai_limiter)],
)
limited.include_router(
    legal.router, prefix="/legal", tags=["Legal"],
    dependencies=[Depends(ai_limiter)],
)
limited.include_router(
    court_prep.router, prefix="/court-prep", tags=["Court Prep"],
    dependencies=[Depends(ai_limiter)],
)
limited.include_router(billing.router, prefix="/stripe", tags=["Billing"])
limited.include_router(health.router, prefix="/health", tags=["Health"])

api_router.include_router(limited)
api_router.include_router(billing.webhook_router, prefix="/stripe", tags=["Billing"])
