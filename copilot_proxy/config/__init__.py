"""
配置管理模块

提供应用程序配置的加载、验证和热重载功能。

主要功能:
- 配置文件加载和验证
- 环境变量覆盖
- 配置热重载监听

使用示例:
    from copilot_proxy.config import get_config, reload_config

    config = await get_config()
    print(config.upstream.base_url)
"""

from .settings import (
    Config,
    LoggingConfig,
    ServerConfig,
    UpstreamConfig,
    get_config,
    get_config_file_path,
    reload_config,
)
from .watcher import ConfigFileHandler, ConfigWatcher

__all__ = [
    # 配置管理函数
    "get_config",
    "reload_config",
    "get_config_file_path",
    # 配置模型
    "Config",
    "ServerConfig",
    "UpstreamConfig",
    "LoggingConfig",
    # 配置监听器
    "ConfigWatcher",
    "ConfigFileHandler",
]
