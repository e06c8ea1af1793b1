from fastapi import Request

from marketplace.config import Settings
from marketplace.services.payment_gateway import PaymentGateway


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway
