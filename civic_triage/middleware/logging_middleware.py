"""
Logging Middleware - Request/Response logging
"""
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)

QUIET_PATHS = ("/api/v1/health", "/api/v1/health/")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all requests and responses

    Logs:
    - Request method, path, acting role
    - Response status code, duration
    - Errors if any
    """

    async def dispatch(self, request: Request, call_next: Callable):
        """Process and log request/response"""

        # Skip logging for basic health checks (too noisy)
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.time()

        method = request.method
        path = request.url.path
        role = request.headers.get("X-User-Role", "anonymous")

        logger.info(
            f"→ {method} {path}",
            extra={
                "method": method,
                "path": path,
                "role": role,
                "client": request.client.host if request.client else "unknown",
            }
        )

        try:
            response = await call_next(request)

            duration_ms = int((time.time() - start_time) * 1000)

            logger.info(
                f"← {method} {path} {response.status_code} ({duration_ms}ms)",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms
                }
            )

            response.headers["X-Process-Time"] = str(duration_ms)
            return response

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)

            logger.error(
                f"✗ {method} {path} ERROR ({duration_ms}ms): {str(e)}",
                extra={
                    "method": method,
                    "path": path,
                    "error": str(e),
                    "duration_ms": duration_ms
                },
                exc_info=True
            )

            raise
