"""
Response normalization.

Turns a parsed CC5Response tree (or the raw 3-D Pay callback) into the
canonical *Result models. Missing and empty provider fields become None.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from estpos.schemas.estpos import (
    CancelResult,
    HistoryResult,
    PaymentResult,
    RefundResult,
    StatusResult,
    ThreeDPaymentResult,
    ThreeDPayResult,
)
from estpos.services.codes import is_approved, status_detail

APPROVED = "approved"
DECLINED = "declined"

FULL_3D_SECURE = "Full 3D Secure"
HALF_3D_SECURE = "Half 3D Secure"
MPI_FALLBACK = "MPI fallback"

# mdStatus values the bank reports for an authenticated (fully or partially) cardholder
FULL_3D_MD_STATUS = "1"
HALF_3D_MD_STATUSES = {"2", "3", "4"}
ACCEPTED_MD_STATUSES = {FULL_3D_MD_STATUS, *HALF_3D_MD_STATUSES}


def _text(tree: Mapping[str, Any], *path: str) -> Optional[str]:
    """Return the text at path in the response tree, or None."""
    node: Any = tree
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    if node is None or isinstance(node, (Mapping, list)):
        return None
    value = str(node).strip()
    return value or None


def _param(callback: Mapping[str, str], name: str) -> Optional[str]:
    value = callback.get(name)
    return value if value else None


def _status(code: Optional[str]) -> str:
    return APPROVED if is_approved(code) else DECLINED


def transaction_security(md_status: Optional[str]) -> str:
    if md_status == FULL_3D_MD_STATUS:
        return FULL_3D_SECURE
    if md_status in HALF_3D_MD_STATUSES:
        return HALF_3D_SECURE
    return MPI_FALLBACK


def _common_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    code = _text(data, "ProcReturnCode")
    return {
        "status": _status(code),
        "status_detail": status_detail(code),
        "order_id": _text(data, "OrderId"),
        "trans_id": _text(data, "TransId"),
        "auth_code": _text(data, "AuthCode"),
        "host_ref_num": _text(data, "HostRefNum"),
        "proc_return_code": code,
        "error_code": _text(data, "Extra", "ERRORCODE"),
        "error_message": _text(data, "ErrMsg"),
        "response": _text(data, "Response"),
        "all": dict(data),
    }


def _payment_fields(
    data: Mapping[str, Any],
    transaction_type: Optional[str],
    transaction: Optional[str],
) -> Dict[str, Any]:
    return {
        **_common_fields(data),
        "id": _text(data, "AuthCode"),
        "group_id": _text(data, "GroupId"),
        "transaction_type": transaction_type,
        "transaction": transaction,
        "code": _text(data, "ProcReturnCode"),
        "extra": data.get("Extra") or None,
    }


def _callback_fields(callback: Mapping[str, str]) -> Dict[str, Any]:
    return {
        "md_status": _param(callback, "mdStatus"),
        "hash": _param(callback, "HASH"),
        "rand": _param(callback, "rnd"),
        "hash_params": _param(callback, "HASHPARAMS"),
        "hash_params_val": _param(callback, "HASHPARAMSVAL"),
        "masked_number": _param(callback, "maskedCreditCard"),
        "month": _param(callback, "Ecom_Payment_Card_ExpDate_Month"),
        "year": _param(callback, "Ecom_Payment_Card_ExpDate_Year"),
        "amount": _param(callback, "amount"),
        "currency": _param(callback, "currency"),
        "tx_status": _param(callback, "txstatus"),
        "eci": _param(callback, "eci"),
        "cavv": _param(callback, "cavv"),
        "xid": _param(callback, "xid"),
        "md_error_message": _param(callback, "mdErrorMsg"),
        "name": _param(callback, "firmaadi"),
        "email": _param(callback, "Email"),
    }


def normalize_payment(
    data: Mapping[str, Any],
    transaction_type: Optional[str],
    transaction: Optional[str],
) -> PaymentResult:
    return PaymentResult(**_payment_fields(data, transaction_type, transaction))


def normalize_3d_payment(
    data: Mapping[str, Any],
    callback: Mapping[str, str],
    transaction_type: Optional[str],
    transaction: Optional[str],
) -> ThreeDPaymentResult:
    """
    Result of the full 3-D model.

    data is the reply to the second-leg request, or empty when the callback
    hash did not verify and no request was sent.
    """
    fields = _payment_fields(data, transaction_type, transaction)
    security = MPI_FALLBACK
    if fields["status"] == APPROVED:
        security = transaction_security(_param(callback, "mdStatus"))

    return ThreeDPaymentResult(
        **fields,
        **_callback_fields(callback),
        transaction_security=security,
        three_d_all=dict(callback),
    )


def normalize_3d_pay(
    callback: Mapping[str, str],
    hash_verified: bool,
    transaction_type: Optional[str],
    transaction: Optional[str],
) -> ThreeDPayResult:
    """
    Result of the 3-D Pay model, built from the callback alone.

    Approved only when the hash verified, the bank approved the charge and
    the cardholder passed 3-D authentication.
    """
    code = _param(callback, "ProcReturnCode")
    md_status = _param(callback, "mdStatus")

    status = DECLINED
    if hash_verified and is_approved(code) and md_status in ACCEPTED_MD_STATUSES:
        status = APPROVED

    security = MPI_FALLBACK
    if status == APPROVED:
        security = transaction_security(md_status)

    return ThreeDPayResult(
        status=status,
        status_detail=status_detail(code),
        id=_param(callback, "oid"),
        order_id=_param(callback, "oid"),
        trans_id=_param(callback, "TransId"),
        auth_code=_param(callback, "AuthCode"),
        host_ref_num=_param(callback, "HostRefNum"),
        response=_param(callback, "Response"),
        proc_return_code=code,
        code=code,
        error_code=_param(callback, "ErrCode"),
        error_message=_param(callback, "ErrMsg"),
        extra=_param(callback, "Extra"),
        transaction_type=transaction_type,
        transaction=transaction,
        transaction_security=security,
        all=dict(callback),
        **_callback_fields(callback),
    )


def normalize_refund(data: Mapping[str, Any]) -> RefundResult:
    return RefundResult(**_common_fields(data), group_id=_text(data, "GroupId"))


def normalize_cancel(data: Mapping[str, Any]) -> CancelResult:
    return CancelResult(**_common_fields(data), group_id=_text(data, "GroupId"))


def normalize_status(data: Mapping[str, Any], xml: str) -> StatusResult:
    fields = _common_fields(data)
    fields["host_ref_num"] = _text(data, "Extra", "HOST_REF_NUM")
    return StatusResult(
        **fields,
        order_status=_text(data, "Extra", "ORDERSTATUS"),
        process_type=_text(data, "Extra", "CHARGE_TYPE_CD"),
        pan=_text(data, "Extra", "PAN"),
        num_code=_text(data, "Extra", "NUMCODE"),
        first_amount=_text(data, "Extra", "ORIG_TRANS_AMT"),
        capture_amount=_text(data, "Extra", "CAPTURE_AMT"),
        xml=xml,
    )


def normalize_history(data: Mapping[str, Any], xml: str) -> HistoryResult:
    return HistoryResult(
        **_common_fields(data),
        num_code=_text(data, "Extra", "NUMCODE"),
        trans_count=_text(data, "Extra", "TRXCOUNT"),
        xml=xml,
    )
