"""
Admin gate.

Admin capabilities (content editing, imports, generation) are protected by a
single shared secret taken from settings.
"""
from __future__ import annotations

import hmac

from loguru import logger

from certpath.config import Settings, get_settings


def verify_admin(username: str, password: str, settings: Settings | None = None) -> bool:
    """Check credentials against the configured admin user and shared secret."""
    settings = settings or get_settings()
    user_ok = hmac.compare_digest(username.encode("utf-8"), settings.admin_username.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8"))
    if not (user_ok and password_ok):
        logger.warning("Rejected admin login for user {!r}", username)
        return False
    return True
