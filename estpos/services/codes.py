"""
EST POS return codes.

Maps the bank's ProcReturnCode values to semantic outcome labels.
"""

from typing import Dict, Optional

APPROVED_CODE = "00"

RESPONSE_CODES: Dict[str, str] = {
    "00": "approved",
    "01": "bank_call",
    "02": "bank_call",
    "05": "reject",
    "09": "try_again",
    "12": "invalid_transaction",
    "28": "reject",
    "51": "insufficient_balance",
    "54": "expired_card",
    "57": "does_not_allow_card_holder",
    "62": "restricted_card",
    "77": "request_rejected",
    "99": "general_error",
}


def status_detail(code: Optional[str]) -> Optional[str]:
    """Return the outcome label for a return code, or None when unmapped."""
    if not code:
        return None
    return RESPONSE_CODES.get(code)


def is_approved(code: Optional[str]) -> bool:
    return code == APPROVED_CODE
