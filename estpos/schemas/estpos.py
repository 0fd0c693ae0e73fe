"""
Pydantic models for the EST POS adapter and its API routes.

Account, Order and Card are the caller-supplied inputs; the *Result models
are the canonical transaction results returned for every operation.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(str, Enum):
    """Authorization mode sent as <Type> on the wire."""

    AUTH = "Auth"
    PRE_AUTH = "PreAuth"
    POST_AUTH = "PostAuth"


class PaymentModel(str, Enum):
    REGULAR = "regular"
    THREE_D = "3d"
    THREE_D_PAY = "3d_pay"


# ──────────────────────────────────────────────────────────────────────
#  Inputs
# ──────────────────────────────────────────────────────────────────────


class Account(BaseModel):
    """Merchant credentials for one EST POS store."""

    model_config = ConfigDict(frozen=True)

    environment: str = "production"  # production | test
    model: Optional[str] = None  # regular | 3d | 3d_pay, None → regular
    username: str
    password: str = Field(repr=False)
    client_id: str
    store_key: str = Field("", repr=False)


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    amount: Decimal
    currency: str = "949"
    installment: Optional[int] = None
    ip: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    user_id: Optional[str] = None
    success_url: Optional[str] = None
    fail_url: Optional[str] = None
    rand: Optional[str] = None
    transaction: Optional[str] = None  # pay | pre | post
    transaction_type: Optional[str] = None  # wire type for the 3d_pay hash
    lang: Optional[str] = None


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: str = Field(repr=False)
    month: str
    year: str
    cvv: str = Field(repr=False)
    type: Optional[str] = None


# ──────────────────────────────────────────────────────────────────────
#  Canonical results
# ──────────────────────────────────────────────────────────────────────


class TransactionResult(BaseModel):
    """Fields shared by every canonical result."""

    model_config = ConfigDict(frozen=True)

    status: str  # approved | declined
    status_detail: Optional[str] = None
    order_id: Optional[str] = None
    trans_id: Optional[str] = None
    auth_code: Optional[str] = None
    host_ref_num: Optional[str] = None
    proc_return_code: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    response: Optional[str] = None
    all: Dict[str, Any] = Field(default_factory=dict)

    @property
    def approved(self) -> bool:
        return self.status == "approved"


class PaymentResult(TransactionResult):
    id: Optional[str] = None
    group_id: Optional[str] = None
    transaction_type: Optional[str] = None
    transaction: Optional[str] = None
    code: Optional[str] = None
    extra: Optional[Any] = None


class ThreeDSecureFields(BaseModel):
    """Callback values echoed back on 3-D results."""

    model_config = ConfigDict(frozen=True)

    transaction_security: str = "MPI fallback"
    md_status: Optional[str] = None
    hash: Optional[str] = None
    rand: Optional[str] = None
    hash_params: Optional[str] = None
    hash_params_val: Optional[str] = None
    masked_number: Optional[str] = None
    month: Optional[str] = None
    year: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    tx_status: Optional[str] = None
    eci: Optional[str] = None
    cavv: Optional[str] = None
    xid: Optional[str] = None
    md_error_message: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class ThreeDPaymentResult(PaymentResult, ThreeDSecureFields):
    three_d_all: Dict[str, str] = Field(default_factory=dict)


class ThreeDPayResult(PaymentResult, ThreeDSecureFields):
    pass


class RefundResult(TransactionResult):
    group_id: Optional[str] = None


class CancelResult(TransactionResult):
    group_id: Optional[str] = None


class StatusResult(TransactionResult):
    order_status: Optional[str] = None
    process_type: Optional[str] = None
    pan: Optional[str] = None
    num_code: Optional[str] = None
    first_amount: Optional[str] = None
    capture_amount: Optional[str] = None
    xml: Optional[str] = None


class HistoryResult(TransactionResult):
    num_code: Optional[str] = None
    trans_count: Optional[str] = None
    xml: Optional[str] = None


# ──────────────────────────────────────────────────────────────────────
#  API bodies
# ──────────────────────────────────────────────────────────────────────


class PaymentRequest(BaseModel):
    """Request body for a regular (non 3-D) card payment."""

    order: Order
    card: Card


class ThreeDFormRequest(BaseModel):
    """Request body for building the 3-D gateway redirect form."""

    order: Order
    card: Optional[Card] = None


class ThreeDFormResponse(BaseModel):
    gateway: str
    inputs: Dict[str, str]


class RefundRequest(BaseModel):
    order_id: str = Field(..., description="Merchant order ID")
    amount: Optional[Decimal] = Field(
        None, description="Partial amount; omit to refund the full order"
    )


class CancelRequest(BaseModel):
    order_id: str = Field(..., description="Merchant order ID")


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Dict[str, Any] = {}
