"""
Test configuration and fixtures for the EST POS adapter tests.
"""

import base64
import hashlib
import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from estpos.core.config import Settings
from estpos.schemas.estpos import Account, Card, Order
from estpos.services.estpos_service import EstPos

STORE_KEY = "TRPS0200"
TEST_API_URL = "https://bank.test/fim/api"
TEST_GATEWAY_URL = "https://bank.test/fim/est3Dgate"


def sha1_b64(value: str) -> str:
    return base64.b64encode(hashlib.sha1(value.encode("utf-8")).digest()).decode("utf-8")


def cc5_response(extra: Optional[Dict[str, str]] = None, **fields: str) -> str:
    """Build a CC5Response XML body."""
    root = ET.Element("CC5Response")
    for tag, value in fields.items():
        ET.SubElement(root, tag).text = value
    if extra is not None:
        extra_el = ET.SubElement(root, "Extra")
        for tag, value in extra.items():
            ET.SubElement(extra_el, tag).text = value
    return ET.tostring(root, encoding="unicode")


def sign_callback(params: Dict[str, str], names: List[str], store_key: str = STORE_KEY) -> Dict[str, str]:
    """Add HASHPARAMS / HASHPARAMSVAL / HASH the way the bank does."""
    values = "".join(params.get(name, "") for name in names)
    return {
        **params,
        "HASHPARAMS": ":".join(names) + ":",
        "HASHPARAMSVAL": values,
        "HASH": sha1_b64(values + store_key),
    }


class FakeBank:
    """httpx MockTransport handler that records requests and replays one reply."""

    def __init__(self, body: str = "", status_code: int = 200, exc: Optional[Exception] = None):
        self.body = body
        self.status_code = status_code
        self.exc = exc
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, text=self.body)

    @property
    def called(self) -> bool:
        return bool(self.requests)

    def sent_xml(self, index: int = -1) -> ET.Element:
        return ET.fromstring(self.requests[index].content)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ESTPOS_ENVIRONMENT="test",
        ESTPOS_TEST_API_URL=TEST_API_URL,
        ESTPOS_TEST_GATEWAY_URL=TEST_GATEWAY_URL,
        ESTPOS_USERNAME="ISBANKAPI",
        ESTPOS_PASSWORD="ISBANK07",
        ESTPOS_CLIENT_ID="700655000200",
        ESTPOS_STORE_KEY=STORE_KEY,
    )


@pytest.fixture
def make_account() -> Callable[..., Account]:
    def _make(model: Optional[str] = None, environment: str = "test") -> Account:
        return Account(
            environment=environment,
            model=model,
            username="ISBANKAPI",
            password="ISBANK07",
            client_id="700655000200",
            store_key=STORE_KEY,
        )

    return _make


@pytest.fixture
def order() -> Order:
    return Order(
        id="ORDER-1001",
        amount=Decimal("100.25"),
        currency="949",
        ip="203.0.113.10",
        email="buyer@example.com",
        name="Ada Lovelace",
        success_url="https://shop.example/3d/ok",
        fail_url="https://shop.example/3d/fail",
        rand="0.43625700",
    )


@pytest.fixture
def card() -> Card:
    return Card(number="4355084355084358", month="12", year="26", cvv="000", type="1")


@pytest.fixture
def make_pos(settings, make_account) -> Callable[..., EstPos]:
    def _make(bank: FakeBank, model: Optional[str] = None) -> EstPos:
        client = httpx.Client(transport=httpx.MockTransport(bank))
        return EstPos(make_account(model), config=settings, client=client)

    return _make
