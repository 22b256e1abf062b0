"""Razorpay bridge: order creation, order lookup and checkout signature checks."""
import hashlib
import hmac
import logging

import httpx

from docplus.core.config import settings
from docplus.core.errors import PaymentGatewayError, PaymentVerificationError

logger = logging.getLogger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"


def to_minor_units(amount: float) -> int:
    """Razorpay amounts are integers in the smallest currency unit (paise for INR)."""
    return int(round(amount * 100))


class RazorpayBridge:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            transport=self._transport,
            timeout=self._timeout,
        )

    async def create_order(self, amount: float, currency: str, receipt: str | None = None) -> dict:
        """Create an order; returns Razorpay's order object ({id, amount, currency, receipt, ...})."""
        if not self.configured:
            raise PaymentGatewayError("Online payments are not configured")
        payload: dict = {"amount": to_minor_units(amount), "currency": currency}
        if receipt:
            payload["receipt"] = receipt
        try:
            async with self._client() as client:
                resp = await client.post("/orders", json=payload)
        except httpx.HTTPError as e:
            logger.exception("Razorpay create order failed: %s", e)
            raise PaymentGatewayError("Could not reach payment gateway") from e
        if resp.status_code not in (200, 201):
            logger.warning(
                "Razorpay create order rejected: status=%s body=%s", resp.status_code, resp.text[:500]
            )
            raise PaymentGatewayError("Payment gateway rejected the order")
        return resp.json()

    async def fetch_order(self, order_id: str) -> dict:
        if not self.configured:
            raise PaymentGatewayError("Online payments are not configured")
        try:
            async with self._client() as client:
                resp = await client.get(f"/orders/{order_id}")
        except httpx.HTTPError as e:
            logger.exception("Razorpay fetch order failed: %s", e)
            raise PaymentGatewayError("Could not reach payment gateway") from e
        if resp.status_code != 200:
            logger.warning(
                "Razorpay fetch order %s failed: status=%s body=%s", order_id, resp.status_code, resp.text[:500]
            )
            if resp.is_client_error:
                raise PaymentVerificationError("Payment order not found at gateway")
            raise PaymentGatewayError("Payment gateway could not look up the order")
        return resp.json()

    def signature_for(self, order_id: str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.key_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout callback signature in constant time."""
        if not (self.key_secret and order_id and payment_id and signature):
            return False
        return hmac.compare_digest(self.signature_for(order_id, payment_id), signature)


def get_payment_bridge() -> RazorpayBridge:
    return RazorpayBridge(settings.razorpay_key_id, settings.razorpay_key_secret)
