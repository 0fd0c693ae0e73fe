"""
EST POS Payment Route — regular model.

Endpoints:
  POST /api/v1/estpos/payment — Auth / PreAuth / PostAuth with card data

The order's transaction selects the wire type:
  pay  → Auth
  pre  → PreAuth
  post → PostAuth (captures a previous PreAuth; card is ignored)
"""

import logging

from fastapi import APIRouter, Depends

from estpos.core.dependencies import get_estpos
from estpos.core.exceptions import UnsupportedPaymentModel
from estpos.schemas.estpos import ErrorResponse, PaymentModel, PaymentRequest, PaymentResult
from estpos.services.estpos_service import EstPos

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/payment",
    response_model=PaymentResult,
    summary="Process a regular EST POS card payment",
    description=(
        "Send the order and card to the bank in a single server-to-server call. "
        "Only available when the account runs the regular model; 3-D models "
        "go through /3d/form and /3d/callback."
    ),
    responses={
        400: {
            "description": "Unsupported transaction type or payment model",
            "model": ErrorResponse,
        },
        502: {
            "description": "Bank unreachable or returned an unreadable reply",
            "model": ErrorResponse,
        },
    },
    tags=["estpos", "payments"],
)
def make_payment(body: PaymentRequest, pos: EstPos = Depends(get_estpos)):
    """
    POST /api/v1/estpos/payment

    A declined payment is returned with status="declined", not as an error.
    """
    if pos.model != PaymentModel.REGULAR:
        raise UnsupportedPaymentModel(
            f"Account model {pos.model.value} does not accept direct card payments",
            details={"model": pos.model.value},
        )

    pos.prepare(body.order)
    result = pos.payment(card=body.card)

    logger.info(
        f"[estpos] payment — orderId={body.order.id}, status={result.status}, "
        f"detail={result.status_detail}"
    )
    return result
