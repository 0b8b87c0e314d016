"""Shared-secret authentication for API endpoints."""

import hmac
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..exceptions import ConfigurationError

logger = get_logger(__name__)

# auto_error is off so a missing header is a 401 like a wrong one
security = HTTPBearer(auto_error=False)


def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """
    Verify the bearer token against CRON_SECRET_KEY.

    Args:
        credentials: The HTTP authorization credentials, if any

    Returns:
        The token if valid

    Raises:
        ConfigurationError: If CRON_SECRET_KEY is not configured
        HTTPException: 401 if the token is missing or wrong
    """
    expected_token = get_settings().cron_secret_key
    if not expected_token:
        logger.error("Cron secret key not configured")
        raise ConfigurationError("CRON_SECRET_KEY", "not configured")

    if credentials is None:
        logger.warning("Missing authentication header")
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not hmac.compare_digest(credentials.credentials, expected_token):
        logger.warning(
            "Invalid authentication attempt",
            provided_token_length=len(credentials.credentials),
        )
        raise HTTPException(status_code=401, detail="Unauthorized")

    return credentials.credentials
