import logging
from dataclasses import dataclass
from typing import Dict, Optional

import razorpay
import requests
import stripe

from marketplace.config import Settings
from marketplace.errors import PaymentProviderError
from marketplace.utils.signature import signature_matches

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntent:
    provider_order_id: str
    client_secret: str


@dataclass
class RefundResult:
    refund_id: str
    status: str


def _check_amount(amount: int):
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValueError("amount must be a positive integer in minor units")


class PaymentGateway:
    """Hides provider request/response shapes from the order flow.

    One instance is built from settings at startup and shared by every
    request; tests swap in their own implementation.
    """

    provider = "base"

    def __init__(self, key_secret: str = "", public_key: str = ""):
        self.key_secret = key_secret
        self.public_key = public_key

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
    ) -> PaymentIntent:
        raise NotImplementedError

    def refund(self, payment_id: str, amount: Optional[int] = None) -> RefundResult:
        raise NotImplementedError

    def verify_client_confirmation(
        self,
        payment_id: str,
        order_id: str,
        signature: str,
    ) -> bool:
        return signature_matches(
            self.key_secret, f"{order_id}|{payment_id}", signature
        )

    def verify_webhook_signature(
        self,
        body: bytes,
        signature: Optional[str],
        secret: Optional[str],
    ) -> bool:
        return signature_matches(secret, body, signature)


class RazorpayGateway(PaymentGateway):
    provider = "razorpay"

    def __init__(self, key_id: str, key_secret: str, timeout: float = 10.0):
        super().__init__(key_secret=key_secret, public_key=key_id)
        self.timeout = timeout
        self.client = razorpay.Client(auth=(key_id, key_secret))

    def create_payment_intent(self, amount, currency, metadata):
        _check_amount(amount)

        try:
            razorpay_order = self.client.order.create(
                data={
                    "amount": amount,
                    "currency": currency,
                    "receipt": f"order_{metadata.get('order_id', '')}"[:40],
                    "notes": metadata,
                },
                timeout=self.timeout,
            )
        except (razorpay.errors.BadRequestError,
                razorpay.errors.GatewayError,
                razorpay.errors.ServerError,
                requests.RequestException) as e:
            logger.error(
                f"Razorpay order creation failed for order "
                f"{metadata.get('order_id')}: {type(e).__name__}"
            )
            raise PaymentProviderError() from e

        if not isinstance(razorpay_order, dict) or not razorpay_order.get("id"):
            logger.error("Razorpay returned an order without an id")
            raise PaymentProviderError("Unexpected payment provider response")

        # Razorpay checkout is opened with the order id, there is no separate secret
        return PaymentIntent(
            provider_order_id=razorpay_order["id"],
            client_secret=razorpay_order["id"],
        )

    def refund(self, payment_id, amount=None):
        # ``payment_id`` is the Razorpay order id; refunds target the captured payment
        try:
            payments = self.client.order.payments(payment_id, timeout=self.timeout)
            captured = next(
                (p for p in payments.get("items", []) if p.get("status") == "captured"),
                None,
            )
            if captured is None:
                raise PaymentProviderError("No captured payment to refund")

            data = {"amount": amount} if amount else {}
            refund = self.client.payment.refund(
                captured["id"], data, timeout=self.timeout
            )
        except (razorpay.errors.BadRequestError,
                razorpay.errors.GatewayError,
                razorpay.errors.ServerError,
                requests.RequestException) as e:
            logger.error(f"Razorpay refund failed for {payment_id}: {type(e).__name__}")
            raise PaymentProviderError("Refund failed") from e

        return RefundResult(refund_id=refund["id"], status=refund.get("status", "pending"))

    def verify_client_confirmation(self, payment_id, order_id, signature):
        try:
            return bool(self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            }))
        except (razorpay.errors.SignatureVerificationError, TypeError):
            return False

    def verify_webhook_signature(self, body, signature, secret):
        if not secret or not signature:
            return False
        try:
            return bool(self.client.utility.verify_webhook_signature(
                body.decode("utf-8"), signature, secret
            ))
        except (razorpay.errors.SignatureVerificationError,
                UnicodeDecodeError,
                TypeError):
            return False


class StripeGateway(PaymentGateway):
    provider = "stripe"

    def __init__(
        self,
        secret_key: str,
        publishable_key: str = "",
        timeout: float = 10.0,
    ):
        super().__init__(key_secret=secret_key, public_key=publishable_key)
        self.client = stripe.StripeClient(
            secret_key,
            http_client=stripe.RequestsClient(timeout=timeout),
        )

    def create_payment_intent(self, amount, currency, metadata):
        _check_amount(amount)

        try:
            intent = self.client.payment_intents.create(
                params={
                    "amount": amount,
                    "currency": currency.lower(),
                    "metadata": metadata,
                },
                # retrying the same local order never mints a second intent
                options={"idempotency_key": f"order-{metadata.get('order_id')}"},
            )
        except stripe.StripeError as e:
            logger.error(
                f"Stripe payment intent failed for order "
                f"{metadata.get('order_id')}: {type(e).__name__}"
            )
            raise PaymentProviderError() from e

        if not intent.id or not intent.client_secret:
            logger.error("Stripe returned a payment intent without a client secret")
            raise PaymentProviderError("Unexpected payment provider response")

        return PaymentIntent(
            provider_order_id=intent.id,
            client_secret=intent.client_secret,
        )

    def refund(self, payment_id, amount=None):
        params = {"payment_intent": payment_id}
        if amount:
            params["amount"] = amount

        try:
            refund = self.client.refunds.create(params=params)
        except stripe.StripeError as e:
            logger.error(f"Stripe refund failed for {payment_id}: {type(e).__name__}")
            raise PaymentProviderError("Refund failed") from e

        return RefundResult(refund_id=refund.id, status=refund.status or "pending")

    def verify_webhook_signature(self, body, signature, secret):
        if not secret or not signature:
            return False
        # Stripe-Signature headers carry "t=...,v1=..."; bare hex digests use the plain scheme
        if "v1=" not in signature:
            return super().verify_webhook_signature(body, signature, secret)
        try:
            stripe.WebhookSignature.verify_header(
                body.decode("utf-8"), signature, secret
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError, TypeError):
            return False
        return True


def build_gateway(settings: Settings) -> PaymentGateway:
    provider = settings.payment_provider.lower()

    if provider == "razorpay":
        return RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            timeout=settings.payment_timeout_seconds,
        )

    if provider == "stripe":
        return StripeGateway(
            secret_key=settings.stripe_secret_key,
            publishable_key=settings.stripe_publishable_key,
            timeout=settings.payment_timeout_seconds,
        )

    raise ValueError(f"Unknown payment provider: {settings.payment_provider}")


__all__ = [
    "PaymentGateway",
    "PaymentIntent",
    "RazorpayGateway",
    "RefundResult",
    "StripeGateway",
    "build_gateway",
]
