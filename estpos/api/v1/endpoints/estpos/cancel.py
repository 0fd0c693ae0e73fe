"""
EST POS Cancel Route.

Endpoint:
  POST /api/v1/estpos/cancel — Cancel (void) an order (Type=Void)
"""

import logging

from fastapi import APIRouter, Depends

from estpos.core.dependencies import get_estpos
from estpos.schemas.estpos import CancelRequest, CancelResult, ErrorResponse
from estpos.services.estpos_service import EstPos

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/cancel",
    response_model=CancelResult,
    summary="Cancel (void) an EST POS order",
    description=(
        "Void an EST POS order before end-of-day settlement. "
        "Posts a CC5Request with Type=Void."
    ),
    responses={
        502: {"description": "Bank unreachable", "model": ErrorResponse},
    },
    tags=["estpos", "payments"],
)
def cancel_order(body: CancelRequest, pos: EstPos = Depends(get_estpos)):
    result = pos.cancel(body.order_id)

    logger.info(f"[estpos] cancel — orderId={body.order_id}, status={result.status}")
    return result
