"""
请求转发处理器

解析调用方 token、按需规范化请求体、发送上游请求并把结果流式回传。
"""

import re
from collections.abc import AsyncIterator

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from copilot_proxy.common.logging import get_logger_with_request_id, get_request_id_from_request, mask_secret
from copilot_proxy.common.token_provider import TokenProvider
from copilot_proxy.config.settings import Config
from copilot_proxy.core.clients import CopilotServiceClient
from copilot_proxy.core.converters import MessagesToResponsesConverter
from copilot_proxy.models.errors import MISSING_TOKEN_MESSAGE, get_error_response, proxy_failure_message

router = APIRouter()

PLACEHOLDER_TOKEN = "dummy"
_BEARER_PREFIX = re.compile(r"Bearer\s+", re.IGNORECASE)


def extract_bearer(authorization: str | None) -> str:
    """去掉 Authorization 头中的 Bearer 前缀（不区分大小写）并去除空白"""
    return _BEARER_PREFIX.sub("", authorization or "", count=1).strip()


class ProxyHandler:
    """上游转发处理器

    除只读的共享 token 外不持有任何请求间可变状态。
    """

    def __init__(self, config: Config, client: CopilotServiceClient, token_provider: TokenProvider):
        self.config = config
        self.client = client
        self.token_provider = token_provider

    @classmethod
    async def create(
        cls,
        config: Config,
        token_provider: TokenProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ProxyHandler":
        client = CopilotServiceClient(config.upstream, transport=transport)
        return cls(config, client, token_provider)

    def resolve_token(self, authorization: str | None) -> str | None:
        """解析实际使用的 token

        调用方未提供 token 或使用占位符 ``dummy`` 时回退到共享 token。
        """
        token = extract_bearer(authorization)
        if token in ("", PLACEHOLDER_TOKEN):
            return self.token_provider.current_token()
        return token

    async def forward(
        self,
        request: Request,
        upstream_path: str,
        normalize: bool = False,
    ) -> Response:
        """
        将请求转发到上游并回传结果

        Args:
            request: 入站请求
            upstream_path: 上游路径
            normalize: 是否把 messages 风格的请求体转换为 Responses 格式

        Returns:
            Response: 401 / 上游错误原文 / 流式响应 / 500
        """
        bound_logger = get_logger_with_request_id(get_request_id_from_request(request))

        token = self.resolve_token(request.headers.get("authorization"))
        if not token:
            bound_logger.warning(f"缺少 Copilot token - Path: {request.url.path}")
            return JSONResponse(
                status_code=401,
                content=get_error_response(401, MISSING_TOKEN_MESSAGE).model_dump(),
            )

        try:
            body = await request.body()
            if normalize:
                body = MessagesToResponsesConverter.prepare_body(body)

            bound_logger.info(
                f"转发请求 - {request.method} {upstream_path}, Token: {mask_secret(token)}"
            )
            upstream_response = await self.client.send(
                request.method,
                upstream_path,
                token,
                accept=request.headers.get("accept"),
                body=body or None,
            )

            if not upstream_response.is_success:
                try:
                    error_text = (await upstream_response.aread()).decode("utf-8", errors="replace")
                finally:
                    await upstream_response.aclose()
                bound_logger.error(
                    f"上游错误 - Status: {upstream_response.status_code}, Body: {error_text}"
                )
                return Response(content=error_text, status_code=upstream_response.status_code)

            headers = {}
            content_type = upstream_response.headers.get("content-type")
            if content_type:
                headers["content-type"] = content_type

            return StreamingResponse(
                self._relay(upstream_response, bound_logger),
                status_code=upstream_response.status_code,
                headers=headers,
                background=BackgroundTask(upstream_response.aclose),
            )
        except Exception:
            bound_logger.exception(f"代理请求失败 - Path: {upstream_path}")
            return JSONResponse(
                status_code=500,
                content=get_error_response(500, proxy_failure_message(upstream_path)).model_dump(),
            )

    @staticmethod
    async def _relay(upstream_response: httpx.Response, bound_logger) -> AsyncIterator[bytes]:
        """逐块回传上游响应体，结束或被取消时关闭上游连接"""
        try:
            async for chunk in upstream_response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            # 响应头已发送，只能中断连接
            bound_logger.error(f"上游流读取失败: {type(e).__name__}: {e}")
            raise
        finally:
            await upstream_response.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()


def get_proxy_handler(request: Request) -> ProxyHandler:
    return request.app.state.proxy_handler


@router.post("/v1/responses")
@router.post("/v1/responses/{rest:path}")
async def responses_endpoint(request: Request) -> Response:
    """Responses API 入口：规范化 messages 风格请求后转发"""
    handler = get_proxy_handler(request)
    return await handler.forward(request, handler.config.upstream.responses_path, normalize=True)
