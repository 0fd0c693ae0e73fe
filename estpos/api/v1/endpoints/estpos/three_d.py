"""
EST POS 3-D Secure Routes.

Endpoints:
  POST /api/v1/estpos/3d/form     — Build the redirect form for the bank's 3-D page
  POST /api/v1/estpos/3d/callback — Receive the bank's post-back (okUrl / failUrl)

The callback body is application/x-www-form-urlencoded. It is untrusted
until its HASH verifies against the store key:
  3d     → verified callback triggers the provisioning request to the bank
  3d_pay → verified callback carries the final result, no further request
An unsigned or tampered callback comes back as status=declined.
"""

import codecs
import logging
from typing import Dict
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from estpos.core.dependencies import get_estpos
from estpos.schemas.estpos import (
    ErrorResponse,
    ThreeDFormRequest,
    ThreeDFormResponse,
)
from estpos.services.estpos_service import EstPos

logger = logging.getLogger(__name__)

router = APIRouter()


def request_charset(content_type: str | None, default: str = "utf-8") -> str:
    """Charset declared in a Content-Type header, or default when absent or unknown."""
    for part in (content_type or "").split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.strip().lower() == "charset" and value:
            charset = value.strip().strip('"')
            try:
                return codecs.lookup(charset).name
            except LookupError:
                logger.warning(f"[estpos] unknown callback charset {charset!r}, using {default}")
                break
    return default


def parse_callback_body(raw_body: bytes, charset: str = "utf-8") -> Dict[str, str]:
    """Decode the bank's form post into a flat name → value mapping."""
    body_str = raw_body.decode(charset, errors="replace")
    parsed = parse_qs(body_str, keep_blank_values=True, encoding=charset, errors="replace")
    return {name: values[0] for name, values in parsed.items() if values}


@router.post(
    "/3d/form",
    response_model=ThreeDFormResponse,
    summary="Build the 3-D Secure redirect form",
    description=(
        "Return the gateway URL and the hidden inputs (including the signed hash) "
        "the browser must post to start 3-D authentication."
    ),
    responses={
        400: {
            "description": "Unsupported transaction type or payment model",
            "model": ErrorResponse,
        },
    },
    tags=["estpos", "3d"],
)
def create_3d_form(body: ThreeDFormRequest, pos: EstPos = Depends(get_estpos)):
    pos.prepare(body.order)
    form = pos.get_3d_form_data(card=body.card)

    logger.info(
        f"[estpos] 3d form built — orderId={body.order.id}, storetype={pos.model.value}"
    )
    return ThreeDFormResponse(gateway=form["gateway"], inputs=form["inputs"])


@router.post(
    "/3d/callback",
    response_model=None,
    summary="Receive the bank's 3-D Secure post-back",
    description=(
        "Verify the callback hash and complete the payment for the configured "
        "3-D model. A forged or tampered callback yields status=declined."
    ),
    responses={
        400: {
            "description": "Account is not configured for a 3-D model",
            "model": ErrorResponse,
        },
        502: {
            "description": "Bank unreachable or returned an unreadable reply",
            "model": ErrorResponse,
        },
    },
    tags=["estpos", "3d", "webhooks"],
)
async def handle_3d_callback(request: Request, pos: EstPos = Depends(get_estpos)):
    """
    POST /api/v1/estpos/3d/callback

    The order is rebuilt from the fields the bank signed, so no transaction
    state has to be kept between the redirect and the callback.
    """
    charset = request_charset(
        request.headers.get("content-type"), default=pos.config.ESTPOS_CALLBACK_CHARSET
    )
    callback = parse_callback_body(await request.body(), charset=charset)

    logger.info(
        f"[estpos] 3d callback received — oid={callback.get('oid')}, "
        f"mdStatus={callback.get('mdStatus')}, keys={len(callback)}, charset={charset}"
    )

    result = await run_in_threadpool(
        pos.complete_3d_callback, callback, lang=pos.config.ESTPOS_DEFAULT_LANG
    )

    logger.info(
        f"[estpos] 3d callback processed — oid={callback.get('oid')}, status={result.status}"
    )
    return result
