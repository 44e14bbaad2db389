from fastapi import APIRouter

from app.api.v1 import health
from app.api.v1.endpoints import archives, holidays, permissions, prospects
from app.schemas import COMMON_RESPONSES

# Router principal, enveloppes d'erreur communes documentées par défaut
router = APIRouter(responses=COMMON_RESPONSES)

router.include_router(health.router, tags=["health"])
router.include_router(prospects.router, prefix="/prospects", tags=["prospects"])
router.include_router(holidays.router, prefix="/holidays", tags=["holidays"])
router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
router.include_router(archives.router, prefix="/archives", tags=["archives"])
