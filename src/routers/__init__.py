"""
API routers for endpoint organization.
"""
from .health import router as health_router
from .reference_checks import router as reference_checks_router
from .references import router as references_router
from .calls import router as calls_router
from .cron import router as cron_router
from .vapi import router as vapi_router

__all__ = [
    "health_router",
    "reference_checks_router",
    "references_router",
    "calls_router",
    "cron_router",
    "vapi_router",
]
