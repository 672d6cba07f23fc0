# Overview: Razorpay payment gateway client; order intents and checkout signature checks.

"""
Razorpay payment gateway.

Creates order intents over the Razorpay REST API and verifies the
checkout callback signature locally:

    signature = HMAC_SHA256(secret, f"{razorpay_order_id}|{razorpay_payment_id}")
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Dict

import requests

from ..errors import InternalError


logger = logging.getLogger(__name__)


class PaymentGatewayError(InternalError):
    """Raised when the gateway API call fails."""


class RazorpayGateway:
    BASE_URL = "https://api.razorpay.com/v1"

    def __init__(self, key_id: str, secret: str, *, timeout: int = 30):
        self.key_id = key_id
        self.secret = secret
        self.timeout = timeout

    def create_order_intent(self, amount_cents: int, currency: str, receipt: str) -> Dict[str, Any]:
        """
        Create a gateway order for amount_cents (paise).

        Returns {"id": "order_...", "amount": <paise>, "currency": ...}.
        """
        if not self.key_id or not self.secret:
            raise PaymentGatewayError("Payment gateway is not configured")

        payload = {
            "amount": amount_cents,
            "currency": currency,
            "receipt": receipt,
        }
        try:
            response = requests.post(
                f"{self.BASE_URL}/orders",
                json=payload,
                auth=(self.key_id, self.secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError):
            logger.exception("Razorpay order creation failed for receipt %s", receipt)
            raise PaymentGatewayError("Payment gateway unavailable")

        if not data.get("id"):
            raise PaymentGatewayError("Payment gateway returned no order id")
        return {"id": data["id"], "amount": data.get("amount", amount_cents), "currency": currency}

    def expected_signature(self, gateway_order_id: str, payment_id: str) -> str:
        body = f"{gateway_order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        expected = self.expected_signature(gateway_order_id, payment_id)
        return hmac.compare_digest(expected, signature or "")
