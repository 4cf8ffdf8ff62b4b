"""API router -- aggregates all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.funnel.api.v1 import auth, deals, health, inventory, modules, sublocations

router = APIRouter()

router.include_router(health.router)
router.include_router(auth.router)
router.include_router(deals.router)
router.include_router(inventory.router)
router.include_router(sublocations.router)
router.include_router(modules.router)
