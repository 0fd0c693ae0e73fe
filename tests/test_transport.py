"""
Bank Transport Tests

Test suite for the HTTP exchange with the EST POS API:
- Request framing (method, URL, content type, body)
- CC5Response parsing
- Transport and parse failures surfacing as errors
"""

import httpx
import pytest

from conftest import TEST_API_URL, FakeBank, cc5_response
from estpos.core.exceptions import GatewayTransportError, ResponseParseError
from estpos.services.transport import EstTransport, parse_response_xml


def _transport(bank: FakeBank) -> EstTransport:
    return EstTransport(TEST_API_URL, client=httpx.Client(transport=httpx.MockTransport(bank)))


class TestParseResponseXml:
    """Test CC5Response parsing into a dict tree."""

    def test_flat_fields(self):
        """Test top-level elements become keys."""
        data = parse_response_xml(cc5_response(OrderId="ORDER-1001", ProcReturnCode="00"))

        assert data["OrderId"] == "ORDER-1001"
        assert data["ProcReturnCode"] == "00"

    def test_nested_extra(self):
        """Test the Extra block becomes a nested dict."""
        data = parse_response_xml(cc5_response(extra={"ERRORCODE": "CORE-2001"}, Response="Error"))

        assert data["Extra"] == {"ERRORCODE": "CORE-2001"}

    def test_empty_element_is_empty_string(self):
        """Test an empty element parses to an empty string."""
        data = parse_response_xml(b"<CC5Response><AuthCode/></CC5Response>")

        assert data["AuthCode"] == ""

    def test_repeated_elements_become_list(self):
        """Test repeated tags are collected into a list."""
        data = parse_response_xml(
            b"<CC5Response><Extra><TRX>a</TRX><TRX>b</TRX></Extra></CC5Response>"
        )

        assert data["Extra"]["TRX"] == ["a", "b"]

    def test_malformed_xml_raises(self):
        """Test a non-XML body raises ResponseParseError with a snippet."""
        with pytest.raises(ResponseParseError) as exc_info:
            parse_response_xml(b"<html>Service Unavailable")

        assert exc_info.value.status_code == 502
        assert exc_info.value.error_code == "GATEWAY_RESPONSE_PARSE_ERROR"
        assert "Service Unavailable" in exc_info.value.details["body"]


class TestEstTransport:
    """Test sending CC5Request documents."""

    def test_posts_xml_to_endpoint(self):
        """Test the payload is POSTed as XML to the configured URL."""
        bank = FakeBank(cc5_response(ProcReturnCode="00"))

        data = _transport(bank).send("<CC5Request><OrderId>1</OrderId></CC5Request>")

        assert data == {"ProcReturnCode": "00"}
        request = bank.requests[0]
        assert request.method == "POST"
        assert str(request.url) == TEST_API_URL
        assert request.headers["Content-Type"].startswith("application/xml")
        assert request.content == b"<CC5Request><OrderId>1</OrderId></CC5Request>"

    def test_non_2xx_raises(self):
        """Test an HTTP error status raises GatewayTransportError."""
        bank = FakeBank("oops", status_code=503)

        with pytest.raises(GatewayTransportError) as exc_info:
            _transport(bank).send("<CC5Request/>")

        assert exc_info.value.details["status_code"] == 503
        assert exc_info.value.error_code == "GATEWAY_TRANSPORT_ERROR"

    def test_connect_error_raises(self):
        """Test a network failure raises GatewayTransportError, not a decline."""
        bank = FakeBank(exc=httpx.ConnectError("connection refused"))

        with pytest.raises(GatewayTransportError) as exc_info:
            _transport(bank).send("<CC5Request/>")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.details["url"] == TEST_API_URL

    def test_timeout_raises(self):
        """Test a timeout raises GatewayTransportError."""
        bank = FakeBank(exc=httpx.ReadTimeout("timed out"))

        with pytest.raises(GatewayTransportError):
            _transport(bank).send("<CC5Request/>")

    def test_malformed_reply_raises(self):
        """Test a 200 with a broken body raises ResponseParseError."""
        bank = FakeBank("not xml at all")

        with pytest.raises(ResponseParseError):
            _transport(bank).send("<CC5Request/>")
