"""
HTTP transport for the EST POS API.

POSTs a CC5Request document to the bank and parses the CC5Response into
a plain dict tree. Failures are raised, never turned into a decline.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

import httpx

from estpos.core.exceptions import GatewayTransportError, ResponseParseError

logger = logging.getLogger(__name__)

RawResponse = Dict[str, Any]


def _element_to_dict(element: ET.Element) -> Dict[str, Any] | str:
    """Recursively convert an XML Element into a dict/str."""
    children = list(element)
    if not children:
        return (element.text or "").strip()

    result: Dict[str, Any] = {}
    for child in children:
        tag = child.tag
        value = _element_to_dict(child)

        if tag in result:
            existing = result[tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[tag] = [existing, value]
        else:
            result[tag] = value

    return result


def parse_response_xml(content: bytes | str) -> RawResponse:
    """Parse a CC5Response body; the root element's children become the keys."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        body = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
        logger.error(f"[estpos] unparseable bank response: {body[:200]}")
        raise ResponseParseError(
            f"Invalid XML received from bank: {e}",
            details={"body": body[:200]},
        ) from e

    tree = _element_to_dict(root)
    return tree if isinstance(tree, dict) else {}


class EstTransport:
    """Blocking sender bound to one API endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    def _post(self, client: httpx.Client, payload: str) -> httpx.Response:
        resp = client.post(
            self.url,
            content=payload.encode("utf-8"),
            headers={"Content-Type": "application/xml; charset=utf-8"},
        )
        resp.raise_for_status()
        return resp

    def send(self, payload: str) -> RawResponse:
        try:
            if self._client is not None:
                resp = self._post(self._client, payload)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    resp = self._post(client, payload)
        except httpx.HTTPStatusError as e:
            logger.error(
                f"[estpos] POST {self.url} failed: HTTP {e.response.status_code}"
            )
            raise GatewayTransportError(
                f"Bank responded with HTTP {e.response.status_code}",
                details={"url": self.url, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[estpos] POST {self.url} error: {e}")
            raise GatewayTransportError(
                f"Bank request failed: {e}",
                details={"url": self.url},
            ) from e

        return parse_response_xml(resp.content)
