"""
CC5Request payload builders.

Each builder returns an ordered node tree: a dict of tag → text, where a
nested dict becomes a child block. render_xml() serializes a tree into the
XML document posted to the bank.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from estpos.schemas.estpos import Account, Card, Order

ROOT_TAG = "CC5Request"

Nodes = Dict[str, Any]

# Fixed marker sent with 3-D payments: cardholder authenticated via 3-D Secure
CARDHOLDER_PRESENT_3D = "13"


def _credentials(account: Account) -> Nodes:
    return {
        "Name": account.username,
        "Password": account.password,
        "ClientId": account.client_id,
    }


def _installment(order: Order) -> str:
    return "" if order.installment is None else str(order.installment)


def _bill_to(nodes: Nodes, order: Order) -> Nodes:
    if order.name:
        nodes["BillTo"] = {"Name": order.name}
    return nodes


def build_payment_nodes(
    account: Account,
    order: Order,
    card: Card,
    transaction_type: str,
) -> Nodes:
    """Regular Auth / PreAuth with full card data."""
    nodes: Nodes = {
        **_credentials(account),
        "Type": transaction_type,
        "IPAddress": order.ip,
        "Email": order.email,
        "OrderId": order.id,
        "UserId": order.user_id,
        "Total": str(order.amount),
        "Currency": order.currency,
        "Taksit": _installment(order),
        "CardType": card.type,
        "Number": card.number,
        "Expires": f"{card.month}/{card.year}",
        "Cvv2Val": card.cvv,
        "Mode": "P",
        "GroupId": "",
        "TransId": "",
    }
    return _bill_to(nodes, order)


def build_post_auth_nodes(
    account: Account,
    order: Order,
    transaction_type: str,
) -> Nodes:
    """Capture of a previous PreAuth, identified by order id only."""
    return {
        **_credentials(account),
        "Type": transaction_type,
        "OrderId": order.id,
    }


def build_3d_payment_nodes(
    account: Account,
    order: Order,
    transaction_type: str,
    callback: Mapping[str, str],
) -> Nodes:
    """
    Second leg of the full 3-D model.

    The card data is replaced by the authentication proofs the bank posted
    back to the merchant: md stands in for the card number, xid/eci/cavv
    carry the 3-D Secure result.
    """
    nodes: Nodes = {
        **_credentials(account),
        "Type": transaction_type,
        "IPAddress": order.ip,
        "Email": order.email,
        "OrderId": order.id,
        "UserId": order.user_id,
        "Total": str(order.amount),
        "Currency": order.currency,
        "Taksit": _installment(order),
        "Number": callback.get("md"),
        "Expires": "",
        "Cvv2Val": "",
        "PayerTxnId": callback.get("xid"),
        "PayerSecurityLevel": callback.get("eci"),
        "PayerAuthenticationCode": callback.get("cavv"),
        "CardholderPresentCode": CARDHOLDER_PRESENT_3D,
        "Mode": "P",
        "GroupId": "",
        "TransId": "",
    }
    return _bill_to(nodes, order)


def build_refund_nodes(
    account: Account,
    order_id: str,
    amount: Optional[Decimal] = None,
) -> Nodes:
    nodes: Nodes = {
        **_credentials(account),
        "OrderId": order_id,
        "Type": "Credit",
    }
    if amount:
        nodes["Total"] = str(amount)
    return nodes


def build_cancel_nodes(account: Account, order_id: str) -> Nodes:
    return {
        **_credentials(account),
        "OrderId": order_id,
        "Type": "Void",
    }


def build_status_nodes(account: Account, order_id: str) -> Nodes:
    return {
        **_credentials(account),
        "OrderId": order_id,
        "Extra": {"ORDERSTATUS": "QUERY"},
    }


def build_history_nodes(account: Account, order_id: str) -> Nodes:
    return {
        **_credentials(account),
        "OrderId": order_id,
        "Extra": {"ORDERHISTORY": "QUERY"},
    }


def _append_nodes(parent: ET.Element, nodes: Mapping[str, Any]) -> None:
    for tag, value in nodes.items():
        child = ET.SubElement(parent, tag)
        if isinstance(value, Mapping):
            _append_nodes(child, value)
        elif value is not None:
            child.text = str(value)


def render_xml(nodes: Mapping[str, Any], root_tag: str = ROOT_TAG) -> str:
    """Serialize a node tree into a CC5Request XML document."""
    root = ET.Element(root_tag)
    _append_nodes(root, nodes)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'
