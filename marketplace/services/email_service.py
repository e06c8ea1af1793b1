import logging
import re
from typing import List, Union

import requests

from marketplace.config import Settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def send_email(
    settings: Settings,
    to: Union[str, List[str]],
    subject: str,
    html: str,
) -> bool:
    """
    Send email via Brevo.

    Returns False instead of raising; callers treat email as best-effort.
    """

    if not settings.brevo_api_key:
        logger.debug("Brevo API key not configured, skipping email")
        return False

    if isinstance(to, list):
        valid_emails = [e for e in to if is_valid_email(e)]
    else:
        valid_emails = [to] if is_valid_email(to) else []

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    payload = {
        "sender": {
            "email": settings.mail_from,
            "name": settings.store_name,
        },
        "to": [{"email": e} for e in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }

    headers = {
        "api-key": settings.brevo_api_key,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=10,
        )
    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False

    if response.status_code >= 400:
        logger.error(f"Brevo email failed ({response.status_code})")
        return False

    logger.info(f"Brevo email sent to {valid_emails}")
    return True


def render_order_email(title: str, message: str, order_url: str) -> str:
    return (
        f"<h2>{title}</h2>"
        f"<p>{message}</p>"
        f'<p><a href="{order_url}">View your order</a></p>'
    )
