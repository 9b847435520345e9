"""Top-level API router."""

from fastapi import APIRouter

from app.api.routes.api_keys import router as api_keys_router
from app.api.routes.auth import router as auth_router
from app.api.routes.contracts import router as contracts_router
from app.api.routes.crm import router as crm_router
from app.api.routes.finance import router as finance_router
from app.api.routes.health import router as health_router
from app.api.routes.internal_projects import router as internal_projects_router
from app.api.routes.members import router as members_router
from app.api.routes.projects import router as projects_router
from app.api.routes.suggestions import router as suggestions_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(members_router)
api_router.include_router(crm_router)
api_router.include_router(projects_router)
api_router.include_router(internal_projects_router)
api_router.include_router(finance_router)
api_router.include_router(contracts_router)
api_router.include_router(suggestions_router)
api_router.include_router(api_keys_router)
