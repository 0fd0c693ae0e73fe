"""
EST POS Router Aggregator.

Combines all EST POS sub-routers into a single router. When registered
in the main app under /api/v1 with prefix /estpos, the full paths become:

  POST /api/v1/estpos/payment       — Regular (non 3-D) card payment
  POST /api/v1/estpos/3d/form       — 3-D gateway redirect form data
  POST /api/v1/estpos/3d/callback   — Bank post-back after 3-D authentication
  POST /api/v1/estpos/refund        — Refund an order (full or partial)
  POST /api/v1/estpos/cancel        — Cancel (void) an order
  GET  /api/v1/estpos/status        — Order status query
  GET  /api/v1/estpos/history       — Order history query
"""

from fastapi import APIRouter

from estpos.api.v1.endpoints.estpos.payment import router as payment_router
from estpos.api.v1.endpoints.estpos.three_d import router as three_d_router
from estpos.api.v1.endpoints.estpos.refund import router as refund_router
from estpos.api.v1.endpoints.estpos.cancel import router as cancel_router
from estpos.api.v1.endpoints.estpos.status import router as status_router

# Main EST POS router — prefix is applied in api.py as /estpos
estpos_router = APIRouter()

estpos_router.include_router(payment_router)
estpos_router.include_router(three_d_router)
estpos_router.include_router(refund_router)
estpos_router.include_router(cancel_router)
estpos_router.include_router(status_router)
