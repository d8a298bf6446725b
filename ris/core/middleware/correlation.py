"""
Correlation ID middleware for FastAPI
Handles X-Correlation-ID headers and context management
"""
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from ris.core.correlation import set_correlation_id, generate_correlation_id, clear_correlation_id

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle correlation IDs for request tracing.

    - Extracts correlation ID from X-Correlation-ID header
    - Generates new ID if none provided
    - Sets in response headers
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER)

        if not correlation_id:
            correlation_id = generate_correlation_id()
            logger.debug("CORRELATION_ID_GENERATED",
                         correlation_id=correlation_id,
                         path=request.url.path)

        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        except Exception as e:
            logger.error("REQUEST_FAILED",
                         correlation_id=correlation_id,
                         path=request.url.path,
                         error=str(e))
            raise
        finally:
            clear_correlation_id()
