"""API endpoints for HireOS."""

from fastapi import APIRouter

from .calendar_webhooks import router as calendar_webhooks_router
from .candidates import router as candidates_router
from .email_templates import router as email_templates_router
from .integrations import router as integrations_router
from .interviews import router as interviews_router
from .jobs import router as jobs_router
from .notifications import router as notifications_router
from .offers import router as offers_router
from .users import router as users_router

# Create main API router
api_router = APIRouter()

# Include all routers
api_router.include_router(candidates_router, prefix="/candidates", tags=["Candidates"])
api_router.include_router(offers_router, prefix="/offers", tags=["Offers"])
api_router.include_router(calendar_webhooks_router, prefix="/webhooks", tags=["Webhooks"])
api_router.include_router(interviews_router, prefix="/interviews", tags=["Interviews"])
api_router.include_router(jobs_router, prefix="/jobs", tags=["Jobs"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(email_templates_router, prefix="/email-templates", tags=["Email Templates"])
api_router.include_router(integrations_router, prefix="/integrations", tags=["Integrations"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])

__all__ = ["api_router"]
