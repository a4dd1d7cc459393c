"""
Main API router for v1.
"""

from fastapi import APIRouter
from category_api.api.v1 import categories

router = APIRouter()

router.include_router(categories.router, prefix="/categories", tags=["categories"])
