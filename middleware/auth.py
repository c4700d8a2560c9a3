"""
API key authentication for the hub control API.

Keys are read from the X-API-Key header and checked against the configured
list; with require_auth disabled every request is let through.
"""
import logging
from typing import Optional
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from config import get_settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: Optional[str] = None) -> bool:
    """
    Check an API key against the configured keys.

    Raises:
        HTTPException: 401 when the key is missing, 403 when it is unknown
    """
    settings = get_settings()

    if not settings.require_auth:
        return True

    if not api_key:
        logger.warning("Rejected hub API request without API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key not in settings.api_keys_list:
        logger.warning(f"Rejected hub API request with unknown key: {api_key[:8]}...")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return True


async def require_api_key(api_key: Optional[str] = Security(api_key_header)) -> bool:
    """
    Dependency for the hub control endpoints.

    Usage:
        @app.get("/hubs")
        async def list_hubs(authenticated: bool = Depends(require_api_key)):
            ...
    """
    return await verify_api_key(api_key)
