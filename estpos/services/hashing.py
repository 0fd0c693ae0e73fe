"""
EST POS 3-D Secure hashing.

create_3d_hash() signs the browser redirect into the bank's 3-D page.
verify_callback_hash() checks the HASH the bank attaches to its post-back;
a callback that fails verification must be treated as untrusted.
"""

import base64
import hashlib
import hmac
import logging
from typing import List, Mapping, Optional

from estpos.schemas.estpos import Account, Order, PaymentModel

logger = logging.getLogger(__name__)

HASH_PARAMS_SEPARATOR = ":"


def sha1_b64(value: str) -> str:
    """base64 of the raw 20-byte SHA-1 digest."""
    digest = hashlib.sha1(value.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("utf-8")


def _text(value: object) -> str:
    return "" if value is None else str(value)


def create_3d_hash(
    account: Account,
    order: Order,
    model: PaymentModel,
    transaction_type: Optional[str] = None,
) -> str:
    """
    Hash for the 3-D redirect form.

    The field order is fixed by the bank:
      3d:     clientid oid amount okUrl failUrl rnd storekey
      3d_pay: clientid oid amount okUrl failUrl islemtipi taksit rnd storekey
    """
    parts = [
        account.client_id,
        order.id,
        _text(order.amount),
        _text(order.success_url),
        _text(order.fail_url),
    ]
    if model == PaymentModel.THREE_D:
        parts.append(_text(order.rand))
    elif model == PaymentModel.THREE_D_PAY:
        parts.extend([
            _text(order.transaction_type or transaction_type),
            _text(order.installment),
            _text(order.rand),
        ])
    parts.append(account.store_key)
    return sha1_b64("".join(parts))


def split_hash_params(hash_params: str) -> List[str]:
    """HASHPARAMS names in order; the trailing empty segment is dropped."""
    names = hash_params.split(HASH_PARAMS_SEPARATOR)
    if names and names[-1] == "":
        names.pop()
    return names


def concat_hash_params(params: Mapping[str, str], hash_params: str) -> str:
    return "".join(params.get(name) or "" for name in split_hash_params(hash_params))


def verify_callback_hash(params: Mapping[str, str], store_key: str) -> bool:
    """
    Verify the bank's signature on a 3-D callback.

    The concatenation of the parameters named in HASHPARAMS must equal
    HASHPARAMSVAL, and sha1_b64(concatenation + store_key) must equal HASH.
    Both checks must pass.
    """
    hash_params = params.get("HASHPARAMS") or ""
    if not hash_params:
        logger.warning("[estpos] callback hash check failed: HASHPARAMS missing")
        return False

    params_val = concat_hash_params(params, hash_params)
    if params_val != (params.get("HASHPARAMSVAL") or ""):
        logger.warning("[estpos] callback hash check failed: HASHPARAMSVAL mismatch")
        return False

    expected = sha1_b64(params_val + store_key)
    received = params.get("HASH") or ""
    if not hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8")):
        logger.warning("[estpos] callback hash check failed: HASH mismatch")
        return False

    return True
