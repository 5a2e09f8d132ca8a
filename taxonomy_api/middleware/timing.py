"""
Request timing middleware
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from taxonomy_api.core.logging import log


class TimingMiddleware(BaseHTTPMiddleware):
    """Report handler duration in X-Process-Time"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        log.debug("Handled request", method=request.method, path=request.url.path, seconds=round(elapsed, 6))
        return response
