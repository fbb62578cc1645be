from fastapi import APIRouter

from zscan_sync.api.v1.endpoints import sync

# Create the main API router
router = APIRouter()

router.include_router(sync.router, prefix="/zscan", tags=["sync"])
