"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``marketplace.main`` renders them as
``{"detail": ..., "code": ...}`` with the matching status code.
"""
from enum import Enum
from typing import Dict, Optional


class ErrorCode(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_OPERATION = "INVALID_OPERATION"
    PAYMENT_PROVIDER_ERROR = "PAYMENT_PROVIDER_ERROR"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    INTERNAL_FAULT = "INTERNAL_FAULT"


class MarketplaceError(Exception):
    code: ErrorCode = ErrorCode.INTERNAL_FAULT
    status_code: int = 500
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class Unauthenticated(MarketplaceError):
    code = ErrorCode.UNAUTHENTICATED
    status_code = 401
    default_message = "Could not validate credentials"


class Forbidden(MarketplaceError):
    code = ErrorCode.FORBIDDEN
    status_code = 403
    default_message = "You do not have access to this resource"


class NotFound(MarketplaceError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class InvalidOperation(MarketplaceError):
    code = ErrorCode.INVALID_OPERATION
    status_code = 400
    default_message = "Invalid operation"


class PaymentProviderError(MarketplaceError):
    code = ErrorCode.PAYMENT_PROVIDER_ERROR
    status_code = 502
    default_message = "Payment provider request failed"


class SignatureInvalid(MarketplaceError):
    code = ErrorCode.SIGNATURE_INVALID
    status_code = 400
    default_message = "Invalid signature"


class InternalFault(MarketplaceError):
    pass
