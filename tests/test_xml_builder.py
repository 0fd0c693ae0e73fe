"""
CC5Request Builder Tests

Test suite for the request payloads posted to the bank:
- Regular, post-auth and 3-D payment documents
- Refund, cancel, status and history documents
- XML rendering
"""

import xml.etree.ElementTree as ET
from decimal import Decimal

from estpos.services.xml_builder import (
    build_3d_payment_nodes,
    build_cancel_nodes,
    build_history_nodes,
    build_payment_nodes,
    build_post_auth_nodes,
    build_refund_nodes,
    build_status_nodes,
    render_xml,
)


class TestPaymentNodes:
    """Test payment request payloads."""

    def test_regular_payment(self, make_account, order, card):
        """Test the regular payment carries credentials, order and card data."""
        nodes = build_payment_nodes(make_account(), order, card, "Auth")

        assert nodes["Name"] == "ISBANKAPI"
        assert nodes["Password"] == "ISBANK07"
        assert nodes["ClientId"] == "700655000200"
        assert nodes["Type"] == "Auth"
        assert nodes["OrderId"] == "ORDER-1001"
        assert nodes["Total"] == "100.25"
        assert nodes["Currency"] == "949"
        assert nodes["Number"] == "4355084355084358"
        assert nodes["Expires"] == "12/26"
        assert nodes["Cvv2Val"] == "000"
        assert nodes["Mode"] == "P"
        assert nodes["Taksit"] == ""
        assert nodes["BillTo"] == {"Name": "Ada Lovelace"}

    def test_installment_rendered(self, make_account, order, card):
        """Test a set installment count is sent as Taksit."""
        order = order.model_copy(update={"installment": 6})

        assert build_payment_nodes(make_account(), order, card, "Auth")["Taksit"] == "6"

    def test_no_bill_to_without_name(self, make_account, order, card):
        """Test BillTo is omitted when the order has no name."""
        order = order.model_copy(update={"name": None})

        assert "BillTo" not in build_payment_nodes(make_account(), order, card, "PreAuth")

    def test_post_auth_has_no_card(self, make_account, order):
        """Test post-authorization identifies the order only."""
        nodes = build_post_auth_nodes(make_account(), order, "PostAuth")

        assert nodes["Type"] == "PostAuth"
        assert nodes["OrderId"] == "ORDER-1001"
        assert "Number" not in nodes
        assert "Total" not in nodes

    def test_3d_payment_uses_callback_proofs(self, make_account, order):
        """Test the 3-D second leg sends md, xid, eci and cavv instead of card data."""
        callback = {"md": "MD-TOKEN", "xid": "XID-1", "eci": "05", "cavv": "CAVV-1"}

        nodes = build_3d_payment_nodes(make_account("3d"), order, "Auth", callback)

        assert nodes["Number"] == "MD-TOKEN"
        assert nodes["PayerTxnId"] == "XID-1"
        assert nodes["PayerSecurityLevel"] == "05"
        assert nodes["PayerAuthenticationCode"] == "CAVV-1"
        assert nodes["CardholderPresentCode"] == "13"
        assert nodes["Expires"] == ""
        assert nodes["Cvv2Val"] == ""


class TestOrderOperationNodes:
    """Test refund, cancel and query payloads."""

    def test_full_refund(self, make_account):
        """Test a refund without amount omits Total."""
        nodes = build_refund_nodes(make_account(), "ORDER-1001")

        assert nodes["Type"] == "Credit"
        assert "Total" not in nodes

    def test_partial_refund(self, make_account):
        """Test a partial refund sends the amount."""
        nodes = build_refund_nodes(make_account(), "ORDER-1001", Decimal("10.50"))

        assert nodes["Total"] == "10.50"

    def test_cancel(self, make_account):
        """Test cancel is a Void on the order."""
        nodes = build_cancel_nodes(make_account(), "ORDER-1001")

        assert nodes["Type"] == "Void"
        assert nodes["OrderId"] == "ORDER-1001"

    def test_status_query(self, make_account):
        """Test the status query flags ORDERSTATUS in Extra."""
        nodes = build_status_nodes(make_account(), "ORDER-1001")

        assert nodes["Extra"] == {"ORDERSTATUS": "QUERY"}
        assert "Type" not in nodes

    def test_history_query(self, make_account):
        """Test the history query flags ORDERHISTORY in Extra."""
        nodes = build_history_nodes(make_account(), "ORDER-1001")

        assert nodes["Extra"] == {"ORDERHISTORY": "QUERY"}


class TestRenderXml:
    """Test XML serialization of node trees."""

    def test_document_structure(self, make_account):
        """Test the root, nested blocks and the XML declaration."""
        xml = render_xml(build_status_nodes(make_account(), "ORDER-1001"))

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(xml.split("\n", 1)[1])
        assert root.tag == "CC5Request"
        assert root.findtext("OrderId") == "ORDER-1001"
        assert root.findtext("Extra/ORDERSTATUS") == "QUERY"

    def test_node_order_preserved(self, make_account):
        """Test elements appear in insertion order."""
        xml = render_xml(build_cancel_nodes(make_account(), "ORDER-1001"))
        root = ET.fromstring(xml.split("\n", 1)[1])

        assert [child.tag for child in root] == ["Name", "Password", "ClientId", "OrderId", "Type"]

    def test_none_renders_empty_element(self):
        """Test a None value produces an empty element."""
        root = ET.fromstring(render_xml({"IPAddress": None}).split("\n", 1)[1])

        assert root.find("IPAddress") is not None
        assert root.findtext("IPAddress") == ""

    def test_special_characters_escaped(self):
        """Test markup in values is escaped."""
        root = ET.fromstring(render_xml({"Name": "A & <B>"}).split("\n", 1)[1])

        assert root.findtext("Name") == "A & <B>"
