"""
API v1 router aggregating all endpoints.
"""
from fastapi import APIRouter

from boxkeeper.api.v1.endpoints import (
    locations,
    boxes,
    qr_codes,
)

api_router = APIRouter()

api_router.include_router(locations.router, prefix="/locations", tags=["Locations"])
api_router.include_router(boxes.router, prefix="/boxes", tags=["Boxes"])
api_router.include_router(qr_codes.router, prefix="/qr-codes", tags=["QR Codes"])
