"""
核心功能模块

提供代理服务的核心功能，包括：
- Copilot 上游客户端封装
- 请求格式转换器

子模块:
- clients: Copilot API 客户端实现
- converters: messages -> Responses 格式转换器
"""

from .clients import CopilotServiceClient
from .converters import MessagesToResponsesConverter

__all__ = [
    # 客户端
    "CopilotServiceClient",
    # 转换器
    "MessagesToResponsesConverter",
]
