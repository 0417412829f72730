"""配置模型与加载

从 JSON 配置文件加载应用配置，并允许环境变量覆盖关键字段。
"""

import json
import os
from pathlib import Path

import aiofiles
from loguru import logger
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "config/settings.json"
EXAMPLE_CONFIG_PATH = "config/example.json"


class ServerConfig(BaseModel):
    """服务器监听配置"""

    host: str = Field("0.0.0.0", description="监听地址")
    port: int = Field(4141, description="监听端口")


class UpstreamConfig(BaseModel):
    """上游 Copilot 服务配置"""

    base_url: str = Field("https://api.githubcopilot.com", description="上游基础URL")
    responses_path: str = Field("/v1/responses", description="Responses API 路径")
    chat_completions_path: str = Field("/chat/completions", description="Chat Completions 路径")
    models_path: str = Field("/models", description="模型列表路径")
    embeddings_path: str = Field("/embeddings", description="Embeddings 路径")
    integration_id: str = Field("vscode-chat", description="Copilot-Integration-Id 请求头")
    editor_version: str = Field("vscode/1.96.0", description="Editor-Version 请求头")
    user_agent: str = Field("GitHubCopilot/1.168.0", description="User-Agent 请求头")
    timeout: float | None = Field(None, description="上游请求超时（秒），None 表示不限制")


class LoggingConfig(BaseModel):
    """日志配置"""

    level: str = Field("INFO", description="日志级别")


class Config(BaseModel):
    """应用配置"""

    server: ServerConfig = Field(default_factory=ServerConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    copilot_token: str | None = Field(None, description="进程级共享 Copilot token")

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """从字典构建配置并应用环境变量覆盖"""
        config = cls.model_validate(data)
        config._apply_env_overrides()
        return config

    @classmethod
    async def from_file(cls, config_path: str | None = None) -> "Config":
        """异步从 JSON 文件加载配置"""
        path = _resolve_config_path(config_path)
        if path is None:
            logger.warning("未找到配置文件，使用默认配置")
            return cls.from_dict({})

        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
        logger.debug(f"已加载配置文件: {path}")
        return cls.from_dict(json.loads(content))

    @classmethod
    def from_file_sync(cls, config_path: str | None = None) -> "Config":
        """同步加载配置，供模块级初始化使用"""
        path = _resolve_config_path(config_path)
        if path is None:
            return cls.from_dict({})
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    async def get_server_config(self) -> tuple[str, int]:
        """获取服务器监听地址和端口"""
        return self.server.host, self.server.port

    def _apply_env_overrides(self) -> None:
        if token := os.getenv("COPILOT_TOKEN"):
            self.copilot_token = token
        if base_url := os.getenv("COPILOT_BASE_URL"):
            self.upstream.base_url = base_url
        if level := os.getenv("LOG_LEVEL"):
            self.logging.level = level.upper()
        if host := os.getenv("HOST"):
            self.server.host = host
        if port := os.getenv("PORT"):
            self.server.port = int(port)


def get_config_file_path() -> str:
    """获取当前使用的配置文件路径"""
    return os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)


def _resolve_config_path(config_path: str | None) -> Path | None:
    candidates = [config_path or get_config_file_path(), EXAMPLE_CONFIG_PATH]
    for candidate in candidates:
        path = Path(candidate)
        if path.is_file():
            return path
    return None


# 全局配置缓存
_config: Config | None = None


async def get_config() -> Config:
    """获取全局配置实例（首次调用时加载）"""
    global _config
    if _config is None:
        _config = await Config.from_file()
    return _config


async def reload_config() -> Config:
    """重新加载配置文件并替换全局配置"""
    global _config
    _config = await Config.from_file()
    logger.info("配置已重新加载")
    return _config
