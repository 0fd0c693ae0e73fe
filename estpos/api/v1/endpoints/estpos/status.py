"""
EST POS Query Routes.

Endpoints:
  GET /api/v1/estpos/status  — Order status (Extra/ORDERSTATUS=QUERY)
  GET /api/v1/estpos/history — Order history (Extra/ORDERHISTORY=QUERY)

Both are read-only at the bank but still go over the wire on every call;
nothing is cached.
"""

from fastapi import APIRouter, Depends, Query

from estpos.core.dependencies import get_estpos
from estpos.schemas.estpos import ErrorResponse, HistoryResult, StatusResult
from estpos.services.estpos_service import EstPos

router = APIRouter()


@router.get(
    "/status",
    response_model=StatusResult,
    summary="Query EST POS order status",
    description=(
        "Ask the bank for the current status of an order: order status, "
        "charge type, original and captured amounts."
    ),
    responses={
        502: {"description": "Bank unreachable", "model": ErrorResponse},
    },
    tags=["estpos", "payments"],
)
def get_order_status(
    order_id: str = Query(..., description="Merchant order ID"),
    pos: EstPos = Depends(get_estpos),
):
    return pos.status(order_id)


@router.get(
    "/history",
    response_model=HistoryResult,
    summary="Query EST POS order history",
    description="Ask the bank for the transaction history of an order.",
    responses={
        502: {"description": "Bank unreachable", "model": ErrorResponse},
    },
    tags=["estpos", "payments"],
)
def get_order_history(
    order_id: str = Query(..., description="Merchant order ID"),
    pos: EstPos = Depends(get_estpos),
):
    return pos.history(order_id)
