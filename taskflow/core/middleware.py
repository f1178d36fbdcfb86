import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("api_logger")


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 (method, path, status, 처리 시간)"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(f"❌ {request.method} {request.url.path} failed after {elapsed_ms:.1f}ms")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        log = logger.warning if response.status_code >= 400 else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response
