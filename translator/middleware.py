import logging
import time
import uuid
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from .logging_config import set_product_code, set_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the logging context and reports each request's outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id: str = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        set_request_id(req_id)
        set_product_code(None)
        start: float = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.error("%s %s failed after %.1fms", request.method, request.url.path,
                         (time.perf_counter() - start) * 1000)
            raise

        duration_ms: float = (time.perf_counter() - start) * 1000
        log = logger.warning if response.status_code >= 500 else logger.info
        log("%s %s -> %s in %.1fms", request.method, request.url.path, response.status_code, duration_ms)
        response.headers[REQUEST_ID_HEADER] = req_id
        return response
