"""Provides the static-credential login gate for FastAPI endpoints."""

import logging
import secrets

from fastapi import Depends
from fastapi import HTTPException
from fastapi.security import HTTPBasic
from fastapi.security import HTTPBasicCredentials

from app.core.config import settings

# Initialize logger
logger = logging.getLogger(__name__)

basic_auth = HTTPBasic()

INVALID_CREDENTIALS_MESSAGE = "Usuario o contraseña incorrectos."


def check_credentials(username: str, password: str) -> bool:
    """Compares the given credentials against the configured dashboard user.

    Returns:
        True only if both the username and the password match. When no
        password is configured on the server every attempt is rejected.
    """
    if not settings.dashboard_password:
        logger.critical(
            "CRITICAL: The login gate is enforced, but no DASHBOARD_PASSWORD is configured "
            "on the server. All login attempts will be denied."
        )
        return False

    user_ok = secrets.compare_digest(username.encode("utf-8"), settings.dashboard_username.encode("utf-8"))
    password_ok = secrets.compare_digest(password.encode("utf-8"), settings.dashboard_password.encode("utf-8"))
    return user_ok and password_ok


async def verify_credentials(credentials: HTTPBasicCredentials = Depends(basic_auth)) -> bool:
    """Verifies HTTP Basic credentials against the static dashboard user.

    Used as a FastAPI dependency to protect routes.

    Args:
        credentials: Username and password extracted from the Authorization header.

    Returns:
        True if the credentials are valid.

    Raises:
        HTTPException: With status code 401 if the credentials are invalid.
    """
    if not check_credentials(credentials.username, credentials.password):
        logger.warning("Rejected credentials for user '%s'", credentials.username)
        raise HTTPException(
            status_code=401,
            detail=INVALID_CREDENTIALS_MESSAGE,
            headers={"WWW-Authenticate": "Basic"},
        )
    return True
