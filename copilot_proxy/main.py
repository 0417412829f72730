from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from copilot_proxy.api.handlers import ProxyHandler
from copilot_proxy.api.handlers import router as responses_router
from copilot_proxy.api.middleware.timing import setup_middlewares
from copilot_proxy.api.routes import router as base_router
from copilot_proxy.common.logging import (
    configure_logging,
    get_logger_with_request_id,
    get_request_id_from_request,
)
from copilot_proxy.common.token_provider import SharedTokenProvider
from copilot_proxy.config.settings import Config, get_config_file_path, reload_config
from copilot_proxy.config.watcher import ConfigWatcher
from copilot_proxy.models.errors import get_error_response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    config: Config = app.state.config
    host, port = await config.get_server_config()

    configure_logging(config.logging)

    # 测试可以预先注入处理器
    if getattr(app.state, "proxy_handler", None) is None:
        token_provider = SharedTokenProvider(config.copilot_token)
        app.state.proxy_handler = await ProxyHandler.create(config, token_provider)
    handler: ProxyHandler = app.state.proxy_handler

    async def on_config_reload():
        """配置重载后刷新日志配置和共享 token，上游配置需重启生效"""
        new_config = await reload_config()
        configure_logging(new_config.logging)
        if isinstance(handler.token_provider, SharedTokenProvider):
            handler.token_provider.update(new_config.copilot_token)
        logger.info("配置热重载完成，共享 token 已更新")

    config_watcher = ConfigWatcher(get_config_file_path())
    config_watcher.add_reload_callback(on_config_reload)
    await config_watcher.start_watching()
    app.state.config_watcher = config_watcher

    logger.info(
        f"启动 Copilot Proxy 服务器 - Host: {host}, Port: {port}, "
        f"Upstream: {config.upstream.base_url}, LogLevel: {config.logging.level}"
    )
    if not handler.token_provider.current_token():
        logger.warning("未配置共享 Copilot token，请求必须自带 Authorization")

    yield

    logger.info("正在停止配置文件监听...")
    config_watcher.stop_watching()
    await handler.aclose()
    logger.info("服务器已停止")


def create_app(config: Config | None = None) -> FastAPI:
    """创建 FastAPI 应用"""
    app = FastAPI(
        title="Copilot Proxy",
        version="0.1.0",
        description="OpenAI / messages compatible proxy for the Copilot Responses API.",
        lifespan=lifespan,
    )
    app.state.config = config or Config.from_file_sync()
    app.state.proxy_handler = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_middlewares(app)

    app.include_router(base_router)
    app.include_router(responses_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """全局异常处理，防止未处理的异常直接返回给客户端"""
        bound_logger = get_logger_with_request_id(get_request_id_from_request(request))
        bound_logger.opt(exception=exc).error(
            f"捕获未处理的服务器异常 - {request.method} {request.url}"
        )
        return JSONResponse(status_code=500, content=get_error_response(500).model_dump())

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        return JSONResponse(status_code=404, content=get_error_response(404).model_dump())

    return app


app = create_app()
