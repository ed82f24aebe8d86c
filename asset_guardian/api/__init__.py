# asset_guardian/api/__init__.py
from fastapi import APIRouter

from asset_guardian.api.auth.router import router as auth_router
from asset_guardian.api.events.router import router as events_router
from asset_guardian.api.items.router import router as items_router
from asset_guardian.api.maintenance.router import router as maintenance_router
from asset_guardian.api.notifications.router import router as notifications_router
from asset_guardian.api.organization.router import router as organization_router
from asset_guardian.api.requests.router import router as requests_router
from asset_guardian.api.returns.router import router as returns_router
from asset_guardian.api.transfers.router import router as transfers_router
from asset_guardian.api.users.router import router as users_router
from asset_guardian.core.config import settings

api_router = APIRouter(prefix=settings.API_V1_STR)

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(organization_router, prefix="/organization", tags=["organization"])
api_router.include_router(items_router, prefix="/items", tags=["items"])
api_router.include_router(requests_router, prefix="/requests", tags=["requests"])
api_router.include_router(transfers_router, prefix="/transfers", tags=["transfers"])
api_router.include_router(returns_router, prefix="/returns", tags=["returns"])
api_router.include_router(maintenance_router, prefix="/maintenance", tags=["maintenance"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
api_router.include_router(events_router, prefix="/events", tags=["events"])
