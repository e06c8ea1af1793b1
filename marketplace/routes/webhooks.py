from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from marketplace.database import get_session
from marketplace.dependencies.services import get_app_settings, get_gateway
from marketplace.config import Settings
from marketplace.notifications import NotificationEmitter, get_notifier
from marketplace.services.payment_gateway import PaymentGateway
from marketplace.services.webhook_service import WebhookReceiver

router = APIRouter()

SIGNATURE_HEADERS = ("x-provider-signature", "x-razorpay-signature", "stripe-signature")
EVENT_ID_HEADERS = ("x-provider-event-id", "x-razorpay-event-id")


def _first_header(request: Request, names):
    for name in names:
        value = request.headers.get(name)
        if value:
            return value
    return None


@router.post("/payment-provider")
async def payment_provider_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationEmitter = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    # signature covers the exact bytes, so the body is never parsed first
    body = await request.body()

    receiver = WebhookReceiver(
        session=session,
        gateway=gateway,
        notifier=notifier,
        webhook_secret=settings.payment_webhook_secret,
    )

    outcome = await run_in_threadpool(
        receiver.handle,
        body,
        _first_header(request, SIGNATURE_HEADERS),
        _first_header(request, EVENT_ID_HEADERS),
    )

    return {
        "received": True,
        "event": outcome.event.raw_type,
        "status": outcome.status,
    }
