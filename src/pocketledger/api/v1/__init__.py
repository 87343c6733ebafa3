"""API version 1 routes."""

from fastapi import APIRouter

from pocketledger.api.v1 import budget, settings, wallets

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(wallets.router)
router.include_router(budget.router)
router.include_router(settings.router)
