import json

from marketplace.errors import PaymentProviderError
from marketplace.models.order import Order
from marketplace.services.payment_gateway import PaymentGateway, PaymentIntent, RefundResult
from marketplace.utils.signature import compute_signature

WEBHOOK_SECRET = "whsec_test_secret"


class FakeGateway(PaymentGateway):
    provider = "fake"

    def __init__(self):
        super().__init__(key_secret="fake_key_secret", public_key="pk_test_fake")
        self.intents = []
        self.refunds = []
        self.fail_next = False
        self.on_refund = None

    def create_payment_intent(self, amount, currency, metadata):
        if self.fail_next:
            self.fail_next = False
            raise PaymentProviderError()

        provider_order_id = f"pi_fake_{len(self.intents) + 1}"
        self.intents.append(
            {"amount": amount, "currency": currency, "metadata": metadata}
        )
        return PaymentIntent(
            provider_order_id=provider_order_id,
            client_secret=f"cs_{provider_order_id}",
        )

    def refund(self, payment_id, amount=None):
        self.refunds.append((payment_id, amount))
        if self.on_refund:
            self.on_refund(payment_id)
        return RefundResult(refund_id=f"re_fake_{len(self.refunds)}", status="processed")


def load_order(db, order_id):
    with db.session() as s:
        return s.get(Order, order_id)


def sign(body, secret=WEBHOOK_SECRET):
    return compute_signature(secret, body)


def signed_body(payload, secret=WEBHOOK_SECRET):
    body = json.dumps(payload).encode("utf-8")
    return body, sign(body, secret)


def post_webhook(client, payload, secret=WEBHOOK_SECRET, signature=None):
    body, computed = signed_body(payload, secret)
    return client.post(
        "/webhooks/payment-provider",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Provider-Signature": signature if signature is not None else computed,
        },
    )


def payment_event(event_type, order_id, provider_object_id=None, event_id="evt_1"):
    obj = {"metadata": {"orderId": order_id}}
    if provider_object_id:
        obj["id"] = provider_object_id
    return {"id": event_id, "type": event_type, "data": {"object": obj}}
