import hashlib
import hmac
from typing import Optional, Union


def compute_signature(secret: str, message: Union[str, bytes]) -> str:
    """Hex HMAC-SHA256 of ``message``; the scheme Razorpay uses for both
    checkout confirmations and webhooks."""
    if isinstance(message, str):
        message = message.encode("utf-8")

    return hmac.new(
        secret.encode("utf-8"),
        message,
        hashlib.sha256,
    ).hexdigest()


def signature_matches(
    secret: Optional[str],
    message: Union[str, bytes],
    signature: Optional[str],
) -> bool:
    if not secret or not signature:
        return False

    expected = compute_signature(secret, message)
    # headers arrive latin-1 decoded; compare bytes so non-ASCII input is a mismatch
    return hmac.compare_digest(
        expected.encode("ascii"),
        signature.strip().encode("utf-8", "surrogateescape"),
    )
