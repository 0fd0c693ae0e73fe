"""
EST POS Refund Route.

Endpoint:
  POST /api/v1/estpos/refund — Refund an order (Type=Credit)

Omitting the amount refunds the whole order; an amount makes it partial.
"""

import logging

from fastapi import APIRouter, Depends

from estpos.core.dependencies import get_estpos
from estpos.schemas.estpos import ErrorResponse, RefundRequest, RefundResult
from estpos.services.estpos_service import EstPos

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/refund",
    response_model=RefundResult,
    summary="Refund an EST POS order",
    description=(
        "Refund a settled EST POS order. "
        "Posts a CC5Request with Type=Credit and, for partial refunds, Total."
    ),
    responses={
        502: {"description": "Bank unreachable", "model": ErrorResponse},
    },
    tags=["estpos", "payments"],
)
def refund_order(body: RefundRequest, pos: EstPos = Depends(get_estpos)):
    result = pos.refund(body.order_id, amount=body.amount)

    logger.info(
        f"[estpos] refund — orderId={body.order_id}, "
        f"amount={body.amount if body.amount is not None else 'full'}, status={result.status}"
    )
    return result
