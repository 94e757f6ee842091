from fastapi import APIRouter

from hrms.api.documents import router as documents_router
from hrms.api.employees import employees_router
from hrms.api.notifications import router as notifications_router
from hrms.api.organization import router as organization_router
from hrms.api.performance import router as performance_router
from hrms.api.policies import router as policies_router
from hrms.api.settings import router as settings_router

api_router = APIRouter()
api_router.include_router(policies_router)
api_router.include_router(organization_router)
api_router.include_router(performance_router)
api_router.include_router(settings_router)
api_router.include_router(documents_router)
api_router.include_router(notifications_router)
api_router.include_router(employees_router)
