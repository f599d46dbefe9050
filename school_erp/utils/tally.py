"""HTTP client for the Tally accounting bridge and its response normalisers.

The bridge answers in JSON converted from Tally XML, so the same list can
arrive bare, wrapped in ``data``/``result``/``items``, or nested inside the
``ENVELOPE/BODY/DATA/COLLECTION`` structure, and scalar fields may be plain
values or ``{"$": ...}``/``{"#text": ...}`` objects with ``@NAME`` style keys.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import settings
from ..core.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

_WRAPPER_KEYS = ("data", "result", "items", "DATA", "RESULT")
_ENVELOPE_PATH = ("ENVELOPE", "BODY", "DATA", "COLLECTION")


def _text(value: Any) -> Optional[str]:
    """Scalar text out of a plain value, a text node dict, or a one-item list."""
    if value is None:
        return None
    if isinstance(value, list):
        return _text(value[0]) if value else None
    if isinstance(value, dict):
        for key in ("$", "#text", "_", "value", "VALUE"):
            if key in value:
                return _text(value[key])
        return None
    text = str(value).strip()
    return text or None


def _field(record: Dict[str, Any], name: str) -> Optional[str]:
    for key in (name, name.upper(), f"@{name.upper()}", f"@{name}", name.lower()):
        if key in record:
            value = _text(record[key])
            if value is not None:
                return value
    return None


def _number(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return 0.0


def extract_list(payload: Any, collection: str) -> List[Dict[str, Any]]:
    """Find the list of ``collection`` records anywhere in a bridge payload."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict) and item]
    if not isinstance(payload, dict) or not payload:
        return []

    node = payload
    for key in _ENVELOPE_PATH:
        if isinstance(node, dict) and key in node:
            node = node[key]
    if node is not payload:
        return extract_list(node, collection)

    for key in (collection, collection.upper(), collection.lower()):
        if key in payload:
            return extract_list(payload[key], collection)
    for key in _WRAPPER_KEYS:
        if key in payload:
            return extract_list(payload[key], collection)
    # A single record
    return [payload]


def normalize_company(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": _field(record, "name"),
        "guid": _field(record, "guid"),
        "start_date": _field(record, "startingfrom") or _field(record, "start_date"),
    }


def normalize_ledger(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": _field(record, "name"),
        "parent": _field(record, "parent"),
        "opening_balance": _number(_field(record, "openingbalance") or _field(record, "opening_balance")),
        "closing_balance": _number(_field(record, "closingbalance") or _field(record, "closing_balance")),
    }


def normalize_sale(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "voucher_number": _field(record, "vouchernumber") or _field(record, "voucher_number"),
        "date": _field(record, "date"),
        "party": _field(record, "partyledgername") or _field(record, "party"),
        "amount": abs(_number(_field(record, "amount"))),
        "narration": _field(record, "narration"),
    }


class TallyClient:
    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.tally_url).rstrip("/")
        self.timeout = timeout or settings.tally_timeout_seconds
        self.transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Tally bridge {method} {path} failed: {e}")
            raise UpstreamServiceError("Tally", str(e) or type(e).__name__)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise UpstreamServiceError("Tally", "Bridge returned a non-JSON response")

    async def health(self) -> Dict[str, Any]:
        payload = await self._request("GET", "/health")
        return payload if isinstance(payload, dict) else {"status": _text(payload) or "ok"}

    async def companies(self) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/companies")
        return [normalize_company(r) for r in extract_list(payload, "company")]

    async def ledgers(self, company: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"company": company} if company else None
        payload = await self._request("GET", "/ledgers", params=params)
        return [normalize_ledger(r) for r in extract_list(payload, "ledger")]

    async def sales(
        self,
        company: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {k: v for k, v in {"company": company, "from": from_date, "to": to_date}.items() if v}
        payload = await self._request("GET", "/sales", params=params or None)
        return [normalize_sale(r) for r in extract_list(payload, "voucher")]

    async def create_ledger(self, name: str, parent: str, company: Optional[str] = None) -> Any:
        return await self._request(
            "POST", "/ledgers", json={"name": name, "parent": parent, "company": company}
        )

    async def create_sales_voucher(self, voucher: Dict[str, Any]) -> Any:
        return await self._request("POST", "/vouchers/sales", json=voucher)


def get_tally_client() -> TallyClient:
    return TallyClient()
