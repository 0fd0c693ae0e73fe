"""
EST POS Payment Gateway Service.

Handles all calls to the EST ("CC5") virtual POS API: card payments in the
regular, 3d and 3d_pay models, post-authorization, refund, cancel, and
order status/history queries.

One EstPos instance serves one logical transaction: construct it with the
merchant account, prepare() the order, then run a single operation. The
instance keeps the prepared order and the last result, so concurrent
transactions need separate instances.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from estpos.core.config import Settings, settings as default_settings
from estpos.core.exceptions import (
    InvalidCallbackError,
    UnsupportedPaymentModel,
    UnsupportedTransactionType,
)
from estpos.schemas.estpos import (
    Account,
    CancelResult,
    Card,
    HistoryResult,
    Order,
    PaymentModel,
    PaymentResult,
    RefundResult,
    StatusResult,
    ThreeDPaymentResult,
    ThreeDPayResult,
    TransactionResult,
    TransactionType,
)
from estpos.services import normalizer
from estpos.services.hashing import (
    create_3d_hash,
    split_hash_params,
    verify_callback_hash,
)
from estpos.services.transport import EstTransport, RawResponse
from estpos.services.xml_builder import (
    Nodes,
    build_3d_payment_nodes,
    build_cancel_nodes,
    build_history_nodes,
    build_payment_nodes,
    build_post_auth_nodes,
    build_refund_nodes,
    build_status_nodes,
    render_xml,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════
# Constants
# ══════════════════════════════════════════════════════════════════════

TRANSACTION_TYPES: Dict[str, TransactionType] = {
    "pay": TransactionType.AUTH,
    "pre": TransactionType.PRE_AUTH,
    "post": TransactionType.POST_AUTH,
}

DEFAULT_TRANSACTION = "pay"

# Inverse of TRANSACTION_TYPES, for orders rebuilt from a bank callback
WIRE_TRANSACTIONS: Dict[str, str] = {t.value: k for k, t in TRANSACTION_TYPES.items()}

# Callback fields that define the order; each must be covered by the bank's HASH
ORDER_CALLBACK_FIELDS = ("oid", "amount", "currency")


# ══════════════════════════════════════════════════════════════════════
# Pure helper functions
# ══════════════════════════════════════════════════════════════════════


def resolve_transaction_type(transaction: Optional[str]) -> TransactionType:
    if not transaction:
        return TRANSACTION_TYPES[DEFAULT_TRANSACTION]
    try:
        return TRANSACTION_TYPES[transaction]
    except KeyError:
        raise UnsupportedTransactionType(
            details={"transaction": transaction, "supported": sorted(TRANSACTION_TYPES)},
        ) from None


def resolve_payment_model(model: Optional[str]) -> PaymentModel:
    if not model:
        return PaymentModel.REGULAR
    try:
        return PaymentModel(model)
    except ValueError:
        raise UnsupportedPaymentModel(
            details={"model": model, "supported": [m.value for m in PaymentModel]},
        ) from None


def _masked_xml(nodes: Nodes) -> str:
    """Request document echoed on query results, without the API password."""
    return render_xml({**nodes, "Password": "***"})


# ══════════════════════════════════════════════════════════════════════
# EstPos class
# ══════════════════════════════════════════════════════════════════════


class EstPos:
    """
    Adapter for one EST POS merchant account.
    """

    def __init__(
        self,
        account: Account,
        config: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.account = account
        self.config = config or default_settings

        self.url = self.config.resolve_api_url(account.environment)
        self.gateway = self.config.resolve_gateway_url(account.environment)
        self.transport = EstTransport(
            self.url,
            timeout=self.config.ESTPOS_HTTP_TIMEOUT,
            client=client,
        )

        self.order: Optional[Order] = None
        self.type: TransactionType = TRANSACTION_TYPES[DEFAULT_TRANSACTION]
        self.response: Optional[TransactionResult] = None

    # ──────────────────────────────────────────────────────────────
    # Order preparation
    # ──────────────────────────────────────────────────────────────

    def prepare(self, order: Order) -> None:
        """Validate the order's transaction and keep it for the next operation."""
        self.type = resolve_transaction_type(order.transaction)
        self.order = order

    def _prepared_order(self) -> Order:
        if self.order is None:
            raise RuntimeError("prepare() must be called before payment()")
        return self.order

    @property
    def model(self) -> PaymentModel:
        return resolve_payment_model(self.account.model)

    def _send(self, operation: str, nodes: Nodes) -> RawResponse:
        logger.info(
            f"[estpos] {operation} — orderId={nodes.get('OrderId')}, "
            f"type={nodes.get('Type', '-')}, url={self.url}"
        )
        data = self.transport.send(render_xml(nodes))
        logger.info(
            f"[estpos] {operation} result — orderId={nodes.get('OrderId')}, "
            f"ProcReturnCode={data.get('ProcReturnCode') or 'N/A'}, "
            f"Response={data.get('Response') or 'N/A'}"
        )
        return data

    # ──────────────────────────────────────────────────────────────
    # 3-D Secure hashing
    # ──────────────────────────────────────────────────────────────

    def create_3d_hash(self) -> str:
        return create_3d_hash(
            self.account,
            self._prepared_order(),
            self.model,
            transaction_type=self.type.value,
        )

    def check_3d_hash(self, callback: Mapping[str, str]) -> bool:
        return verify_callback_hash(callback, self.account.store_key)

    def get_3d_form_data(self, card: Optional[Card] = None) -> Dict[str, object]:
        """
        Gateway URL and hidden form inputs that redirect the browser to the
        bank's 3-D page.
        """
        model = self.model
        if model == PaymentModel.REGULAR:
            raise UnsupportedPaymentModel(
                "3-D form data requires the 3d or 3d_pay model",
                details={"model": model.value},
            )

        order = self._prepared_order()
        inputs: Dict[str, str] = {
            "clientid": self.account.client_id,
            "storetype": model.value,
            "hash": self.create_3d_hash(),
            "rnd": order.rand or "",
            "amount": str(order.amount),
            "oid": order.id,
            "okUrl": order.success_url or "",
            "failUrl": order.fail_url or "",
            "lang": order.lang or self.config.ESTPOS_DEFAULT_LANG,
            "currency": order.currency,
            "taksit": "" if order.installment is None else str(order.installment),
        }
        if model == PaymentModel.THREE_D_PAY:
            inputs["islemtipi"] = order.transaction_type or self.type.value
        if order.name:
            inputs["firmaadi"] = order.name
        if order.email:
            inputs["Email"] = order.email

        if card is not None:
            inputs["pan"] = card.number
            inputs["Ecom_Payment_Card_ExpDate_Month"] = card.month
            inputs["Ecom_Payment_Card_ExpDate_Year"] = card.year
            inputs["cv2"] = card.cvv
            if card.type:
                inputs["cardType"] = card.type

        return {"gateway": self.gateway, "inputs": inputs}

    # ──────────────────────────────────────────────────────────────
    # Payment models
    # ──────────────────────────────────────────────────────────────

    def make_regular_payment(self, card: Optional[Card]) -> PaymentResult:
        order = self._prepared_order()

        if self.type == TransactionType.POST_AUTH:
            nodes = build_post_auth_nodes(self.account, order, self.type.value)
        else:
            if card is None:
                raise ValueError("A card is required for a regular payment")
            nodes = build_payment_nodes(self.account, order, card, self.type.value)

        data = self._send("payment", nodes)
        return normalizer.normalize_payment(data, self.type.value, order.transaction)

    def make_3d_payment(self, callback: Mapping[str, str]) -> ThreeDPaymentResult:
        order = self._prepared_order()

        data: RawResponse = {}
        if self.check_3d_hash(callback):
            nodes = build_3d_payment_nodes(self.account, order, self.type.value, callback)
            data = self._send("3d payment", nodes)
        else:
            logger.warning(
                f"[estpos] 3d payment — callback hash rejected for orderId={order.id}, "
                f"skipping provisioning request"
            )

        return normalizer.normalize_3d_payment(
            data, callback, self.type.value, order.transaction
        )

    def make_3d_pay_payment(self, callback: Mapping[str, str]) -> ThreeDPayResult:
        order = self._prepared_order()

        hash_verified = self.check_3d_hash(callback)
        if not hash_verified:
            logger.warning(
                f"[estpos] 3d_pay payment — callback hash rejected for orderId={order.id}"
            )

        result = normalizer.normalize_3d_pay(
            callback, hash_verified, self.type.value, order.transaction
        )
        logger.info(
            f"[estpos] 3d_pay result — orderId={order.id}, "
            f"ProcReturnCode={result.proc_return_code or 'N/A'}, "
            f"mdStatus={result.md_status or 'N/A'}, status={result.status}"
        )
        return result

    def payment(
        self,
        card: Optional[Card] = None,
        callback: Optional[Mapping[str, str]] = None,
    ) -> TransactionResult:
        """
        Run the payment for the prepared order under the account's model.

        regular uses card; 3d and 3d_pay use the callback parameters the bank
        posted back to the merchant.
        """
        model = self.model
        handlers: Dict[PaymentModel, Callable[[], TransactionResult]] = {
            PaymentModel.REGULAR: lambda: self.make_regular_payment(card),
            PaymentModel.THREE_D: lambda: self.make_3d_payment(callback or {}),
            PaymentModel.THREE_D_PAY: lambda: self.make_3d_pay_payment(callback or {}),
        }

        self.response = handlers[model]()
        return self.response

    def _declined_callback(self, callback: Mapping[str, str]) -> TransactionResult:
        if self.model == PaymentModel.THREE_D_PAY:
            self.response = normalizer.normalize_3d_pay(callback, False, self.type.value, None)
        else:
            self.response = normalizer.normalize_3d_payment({}, callback, self.type.value, None)
        return self.response

    def complete_3d_callback(
        self,
        callback: Mapping[str, str],
        order: Optional[Order] = None,
        lang: Optional[str] = None,
    ) -> TransactionResult:
        """
        Finish a 3-D payment from the bank's post-back.

        The callback is verified before anything is read from it. Without a
        merchant-supplied order, the order is rebuilt from the signed fields
        only; a callback that does not sign oid, amount and currency is
        declined. With an order, the signed oid must match it.
        """
        model = self.model
        if model == PaymentModel.REGULAR:
            raise UnsupportedPaymentModel(
                "3-D callbacks require the 3d or 3d_pay model",
                details={"model": model.value},
            )

        if not self.check_3d_hash(callback):
            logger.warning(
                f"[estpos] 3d callback rejected — unsigned or tampered, "
                f"oid={callback.get('oid')}"
            )
            return self._declined_callback(callback)

        try:
            if order is None:
                order = order_from_callback(callback, lang=lang)
            elif signed_callback_fields(callback).get("oid") != order.id:
                raise InvalidCallbackError(
                    "Signed oid does not match the order",
                    details={"order_id": order.id},
                )
        except InvalidCallbackError as e:
            logger.warning(
                f"[estpos] 3d callback rejected — {e.message}, oid={callback.get('oid')}"
            )
            return self._declined_callback(callback)

        self.prepare(order)
        return self.payment(callback=callback)

    # ──────────────────────────────────────────────────────────────
    # Refund / Cancel
    # ──────────────────────────────────────────────────────────────

    def refund(self, order_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        nodes = build_refund_nodes(self.account, order_id, amount)
        data = self._send("refund", nodes)

        self.response = normalizer.normalize_refund(data)
        return self.response

    def cancel(self, order_id: str) -> CancelResult:
        nodes = build_cancel_nodes(self.account, order_id)
        data = self._send("cancel", nodes)

        self.response = normalizer.normalize_cancel(data)
        return self.response

    # ──────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────

    def status(self, order_id: str) -> StatusResult:
        nodes = build_status_nodes(self.account, order_id)
        data = self._send("status", nodes)

        self.response = normalizer.normalize_status(data, _masked_xml(nodes))
        return self.response

    def history(self, order_id: str) -> HistoryResult:
        nodes = build_history_nodes(self.account, order_id)
        data = self._send("history", nodes)

        self.response = normalizer.normalize_history(data, _masked_xml(nodes))
        return self.response


def signed_callback_fields(callback: Mapping[str, str]) -> Dict[str, str]:
    """The callback values named in HASHPARAMS, i.e. the ones the bank signed."""
    names = split_hash_params(callback.get("HASHPARAMS") or "")
    return {name: callback.get(name) or "" for name in names}


def order_from_callback(callback: Mapping[str, str], lang: Optional[str] = None) -> Order:
    """
    Rebuild the order from the signed fields of a 3-D callback.

    Only values named in HASHPARAMS are read; verify the callback hash
    first. oid, amount and currency must all be signed. taksit, islemtipi,
    Email, firmaadi and rnd are used when signed and ignored otherwise.
    """
    signed = signed_callback_fields(callback)
    missing = [name for name in ORDER_CALLBACK_FIELDS if not signed.get(name)]
    if missing:
        raise InvalidCallbackError(
            "Callback does not sign the order fields",
            details={"missing": missing},
        )

    installment = signed.get("taksit") or ""
    wire_type = signed.get("islemtipi") or ""
    if wire_type and wire_type not in WIRE_TRANSACTIONS:
        raise InvalidCallbackError(
            "Callback carries an unknown transaction type",
            details={"islemtipi": wire_type},
        )

    try:
        return Order(
            id=signed["oid"],
            amount=signed["amount"],
            currency=signed["currency"],
            installment=int(installment) if installment.isdigit() else None,
            email=signed.get("Email") or None,
            name=signed.get("firmaadi") or None,
            rand=signed.get("rnd") or None,
            transaction=WIRE_TRANSACTIONS.get(wire_type),
            transaction_type=wire_type or None,
            lang=signed.get("lang") or lang,
        )
    except ValidationError as e:
        raise InvalidCallbackError(
            "Callback fields do not form a valid order",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e
