"""基础路由：根路径、健康检查、token 查询以及直通转发端点"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from .handlers import get_proxy_handler

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Server running"


@router.get("/health")
async def health_check(request: Request) -> dict:
    """健康检查，未配置共享 token 时报告 degraded"""
    handler = get_proxy_handler(request)
    has_token = bool(handler.token_provider.current_token())
    return {
        "status": "healthy" if has_token else "degraded",
        "service": "copilot-proxy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"copilot_token": has_token},
    }


@router.get("/token")
async def current_token(request: Request) -> dict:
    """返回当前共享的 Copilot token"""
    return {"token": get_proxy_handler(request).token_provider.current_token()}


@router.post("/chat/completions")
@router.post("/v1/chat/completions")
async def chat_completions(request: Request) -> Response:
    handler = get_proxy_handler(request)
    return await handler.forward(request, handler.config.upstream.chat_completions_path)


@router.get("/models")
@router.get("/v1/models")
async def list_models(request: Request) -> Response:
    handler = get_proxy_handler(request)
    return await handler.forward(request, handler.config.upstream.models_path)


@router.post("/embeddings")
@router.post("/v1/embeddings")
async def embeddings(request: Request) -> Response:
    handler = get_proxy_handler(request)
    return await handler.forward(request, handler.config.upstream.embeddings_path)
