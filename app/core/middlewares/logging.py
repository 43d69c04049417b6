"""요청/응답 로깅 미들웨어"""

from typing import Callable, cast

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger
from app.core.middlewares.context import set_request_id
from app.core.utils.time import measure_time

logger = get_logger(__name__)

# 로깅 제외 경로
EXCLUDE_PATHS = {"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 및 처리 시간 측정 미들웨어"""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        if request.url.path in EXCLUDE_PATHS:
            return cast(Response, await call_next(request))

        request_id = set_request_id(request.headers.get("X-Request-ID"))
        route = f"{request.method} {request.url.path}"

        logger.info(f"[{request_id}] → {route}")

        with measure_time() as timer:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"[{request_id}] ✗ {route} | Error: {e} "
                    f"| Time: {timer['elapsed_ms']:.2f}ms"
                )
                raise

        process_time = timer["elapsed_ms"]
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"

        log_method = (
            logger.info if response.status_code < 400 else logger.warning
        )
        log_method(
            f"[{request_id}] {route} | Status: {response.status_code} "
            f"| Time: {process_time:.2f}ms"
        )

        return cast(Response, response)
