from fastapi import APIRouter

from estpos.api.v1.endpoints.estpos.router import estpos_router

api_router = APIRouter()

# EST POS payment gateway routes — prefix /estpos
# Full paths: /api/v1/estpos/payment, /api/v1/estpos/3d/callback, etc.
api_router.include_router(
    estpos_router,
    prefix="/estpos",
    tags=["estpos"],
)
