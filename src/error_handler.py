"""Error handling helpers for the catalog API."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        # Details go to the log only; the response body stays generic.
        logger.error("API error: %s (context=%s)", exc, context or {}, exc_info=True)
        return {"error": INTERNAL_ERROR_MESSAGE}
