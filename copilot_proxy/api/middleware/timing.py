"""请求ID与计时中间件"""

import time
from collections.abc import Callable

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from copilot_proxy.common.logging import (
    REQUEST_ID_HEADER,
    generate_request_id,
    get_logger_with_request_id,
)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """为每个请求分配请求ID并记录处理时间

    流式响应的耗时只统计到响应头发出为止。
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        request_id = generate_request_id()
        request.state.request_id = request_id
        bound_logger = get_logger_with_request_id(request_id)

        try:
            response = await call_next(request)
        except Exception as exc:
            bound_logger.opt(exception=exc).error(
                f"请求处理错误 - {request.method} {request.url.path}: {type(exc).__name__}"
            )
            response = Response(
                content=f'{{"error":"Internal Server Error","request_id":"{request_id}"}}',
                status_code=500,
                media_type="application/json",
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        response_time = time.time() - start_time
        bound_logger.info(
            f"请求完成 - {request.method} {request.url.path}, "
            f"Status: {response.status_code}, Time: {round(response_time * 1000, 2)}ms"
        )

        response.headers["X-Process-Time"] = f"{response_time:.3f}s"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_middlewares(app: FastAPI) -> None:
    """设置所有中间件"""
    app.add_middleware(RequestTimingMiddleware)
