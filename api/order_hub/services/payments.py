# order_hub/services/payments.py
"""
Order payment pass-through. Payments are created by an external service;
this module only forwards the request.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from order_hub.errors import PaymentFailure

log = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    async def create_payment(self, payload: Dict[str, Any]) -> None: ...


class HttpPaymentGateway:
    def __init__(self, base_url: Optional[str], timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def create_payment(self, payload: Dict[str, Any]) -> None:
        if not self.base_url:
            raise PaymentFailure("Payment service is not configured")

        url = f"{self.base_url}/payments"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PaymentFailure(
                f"Payment service rejected the request ({e.response.status_code})",
                {"status": e.response.status_code, "body": e.response.text[:500]},
            )
        except httpx.HTTPError as e:
            raise PaymentFailure(f"Payment service unreachable: {e}")

        log.info("payment forwarded for order %s", payload.get("orderIdentifier"))
