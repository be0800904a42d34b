# shorttrack/middleware/logging.py
# shorttrack/middleware/logging.py
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("shorttrack.requests")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Loggt Methode, Pfad, Status, Dauer und Client-IP jeder Anfrage."""

    async def dispatch(self, request: Request, call_next):
        client_ip = self._get_client_ip(request)
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        logger.info(
            "%s %s %s %.2fms IP:%s",
            request.method,
            request.url.path,
            response.status_code,
            process_time * 1000,
            client_ip,
        )
        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"
