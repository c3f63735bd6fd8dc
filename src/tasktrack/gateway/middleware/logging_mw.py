"""LoggingMiddleware -- 请求级 request_id 与访问日志

request_id 优先沿用上游传入的 X-Request-ID（须为 ULID），否则新生成；
绑定到 structlog contextvars 后，同一请求内的业务日志都会携带。
完成日志按状态码分级：5xx 为 error，4xx 为 warning，其余为 info。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"


def resolve_request_id(incoming: str | None) -> str:
    """合法 ULID 原样沿用，否则生成新的"""
    if incoming:
        try:
            return str(ULID.from_str(incoming))
        except ValueError:
            pass
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                error_type=type(e).__name__,
                duration_ms=_elapsed_ms(started),
            )
            raise

        status = response.status_code
        if status >= 500:
            emit = log.aerror
        elif status >= 400:
            emit = log.awarning
        else:
            emit = log.ainfo
        await emit("request_completed", status_code=status, duration_ms=_elapsed_ms(started))

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
