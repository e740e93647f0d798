from __future__ import annotations

import hmac
import logging

from gstinvoice import config as _config

logger = logging.getLogger(__name__)


def authenticate(email: str, password: str) -> bool:
    """Check the login form against the configured credentials.

    Returns False when credentials are not configured instead of raising.
    """
    try:
        expected_email = _config.get_login_email()
        expected_password = _config.get_login_password()
    except KeyError:
        logger.warning("Login attempted but no credentials are configured")
        return False

    email_ok = hmac.compare_digest(
        (email or "").strip().lower().encode(),
        expected_email.strip().lower().encode(),
    )
    password_ok = hmac.compare_digest((password or "").encode(), expected_password.encode())
    return email_ok and password_ok
