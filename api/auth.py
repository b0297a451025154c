"""X-API-Key authentication for validation and reporting endpoints."""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from api.config import APIConfig

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(x_api_key: Optional[str] = Security(api_key_header)) -> Optional[str]:
    """Check the X-API-Key header against API_KEY.

    The key is read from the environment on every call, so authentication
    is disabled whenever API_KEY is unset.
    """
    expected = APIConfig.load().api_key
    if not expected:
        return None
    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        logger.warning("Rejected request with a missing or invalid API key")
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return x_api_key
