"""
通用工具模块

提供项目中共享的工具和实用功能。

主要功能:
- 日志配置和管理
- 请求ID生成和追踪
- 共享 Copilot token 访问

使用示例:
    from copilot_proxy.common import configure_logging, SharedTokenProvider

    configure_logging(config.logging)
    provider = SharedTokenProvider(config.copilot_token)
"""

from .logging import (
    REQUEST_ID_HEADER,
    configure_logging,
    generate_request_id,
    get_logger_with_request_id,
    get_request_id_from_request,
    mask_secret,
)
from .token_provider import SharedTokenProvider, TokenProvider

__all__ = [
    # 日志功能
    "configure_logging",
    "generate_request_id",
    "get_request_id_from_request",
    "get_logger_with_request_id",
    "mask_secret",
    "REQUEST_ID_HEADER",
    # Token访问
    "TokenProvider",
    "SharedTokenProvider",
]
