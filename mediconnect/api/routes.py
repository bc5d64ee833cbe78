from fastapi import APIRouter

from mediconnect.api.addresses import router as addresses_router
from mediconnect.api.health import router as health_router
from mediconnect.api.patients import router as patients_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(patients_router, prefix="/v1", tags=["patients"])
router.include_router(addresses_router, prefix="/v1", tags=["addresses"])
