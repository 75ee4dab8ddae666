"""
Admin key guard shared by the admin routers.
"""

import logging
import os

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)


def verify_admin_key(x_admin_api_key: str = Header(None, alias="X-Admin-API-Key")) -> str:
    """
    Verify admin API key from header.

    Raises 401 if missing or invalid. When ADMIN_API_KEY is not configured
    the guard is open (local development only).
    """
    expected_key = os.environ.get("ADMIN_API_KEY")

    if not expected_key:
        logger.warning("ADMIN_API_KEY not configured; admin endpoints are unguarded")
        return "dev_mode"

    if not x_admin_api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing X-Admin-API-Key header"
        )

    if x_admin_api_key != expected_key:
        raise HTTPException(
            status_code=401,
            detail="Invalid admin API key"
        )

    return x_admin_api_key
