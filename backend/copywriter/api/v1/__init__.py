"""API v1 router and endpoint organization."""

from fastapi import APIRouter

from copywriter.api.v1.endpoints import writer

router = APIRouter(prefix="/api/v1", tags=["v1"])

# Include domain-specific routers
router.include_router(writer.router, prefix="/writer", tags=["Writer"])
