import hmac
import logging
from typing import List

from fastapi import Header, HTTPException, Request, status

logger = logging.getLogger(__name__)

# Reads never need a key.
_OPEN_METHODS = {"GET", "HEAD", "OPTIONS"}


def get_api_keys() -> List[str]:
    from src.api.main import config

    return list(config.api.api_keys)


async def admin_key_protection(
    request: Request = None,  # keep Request type so FastAPI injects it; default None for direct calls/tests
    x_api_key: str = Header(default=None, alias="X-API-KEY"),
):
    """Gate mutating requests behind X-API-KEY when API keys are configured."""
    if request is not None and request.method in _OPEN_METHODS:
        return

    valid_keys = get_api_keys()
    if not valid_keys:
        return

    candidate = (x_api_key or "").strip()
    ok = bool(candidate) and any(hmac.compare_digest(candidate, k) for k in valid_keys)
    if not ok:
        path = request.url.path if request is not None else "<no-request>"
        logger.warning("Rejected admin request: path=%s header_present=%s", path, bool(x_api_key))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )
