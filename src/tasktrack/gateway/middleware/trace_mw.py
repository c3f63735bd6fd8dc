"""TraceMiddleware -- 为单个任务的操作绑定 trace_id

trace_id 由路径 /api/tasks/{task_id} 中的 task_id 生成，
贯穿该请求及其派生后台作业的日志。按日期查询的路径不绑定。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 字符串长度
_ULID_LENGTH = 26


def extract_trace_id(path: str) -> str | None:
    """从请求路径中提取 trace_id，非任务路径返回 None"""
    parts = path.strip("/").split("/")
    for i, part in enumerate(parts):
        if part == "tasks" and i + 1 < len(parts):
            task_id = parts[i + 1]
            if len(task_id) == _ULID_LENGTH and task_id.isalnum():
                return f"trace-{task_id}"
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = extract_trace_id(request.url.path)
        if trace_id:
            structlog.contextvars.bind_contextvars(trace_id=trace_id)

        return await call_next(request)
