"""
Copilot 上游服务客户端

负责构造上游请求头并以流式模式发送请求，响应体由调用方负责读取和关闭。
"""

import httpx
from loguru import logger

from copilot_proxy.config.settings import UpstreamConfig


class CopilotServiceClient:
    """Copilot API 客户端，每个入站请求只发送一次上游请求"""

    def __init__(
        self,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )

    def build_headers(self, token: str, accept: str | None = None) -> dict[str, str]:
        """构造上游请求头"""
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Copilot-Integration-Id": self.config.integration_id,
            "Editor-Version": self.config.editor_version,
            "User-Agent": self.config.user_agent,
            "Accept": accept or "application/json",
        }

    async def send(
        self,
        method: str,
        path: str,
        token: str,
        accept: str | None = None,
        body: bytes | None = None,
    ) -> httpx.Response:
        """
        发送上游请求（流式模式，不预读响应体）

        Args:
            method: HTTP方法
            path: 相对 base_url 的上游路径
            token: Copilot token
            accept: 调用方的 Accept 请求头
            body: 请求体

        Returns:
            httpx.Response: 尚未读取的响应，调用方需 aclose
        """
        request = self._client.build_request(
            method,
            path,
            headers=self.build_headers(token, accept),
            content=body,
        )
        logger.debug(f"发送上游请求 - {method} {request.url}")
        return await self._client.send(request, stream=True)

    async def aclose(self) -> None:
        await self._client.aclose()
