"""
Shared FastAPI dependencies for the part template locator.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request

from services.locator_service import LocatorService

logger = logging.getLogger(__name__)


def get_locator_service(request: Request) -> LocatorService:
    """
    Get the LocatorService instance from app state.

    Args:
        request: FastAPI request object

    Returns:
        LocatorService instance

    Raises:
        HTTPException: If the service is not initialized
    """
    try:
        return request.app.state.locator_service
    except AttributeError as e:
        logger.error(f"Locator service not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Locator service not initialized"
        )


def get_request_timeout(request: Request) -> Optional[float]:
    """Default locate timeout in seconds, or None when not configured."""
    return getattr(request.app.state, "request_timeout", None)
