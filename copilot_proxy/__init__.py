"""
Copilot Proxy

把 OpenAI 风格和 messages 风格的请求转发到 Copilot Responses API 的兼容代理。

主要功能:
- messages 风格请求体到 Responses API input 结构的转换
- 上游响应（包括流式响应）原样回传
- 共享 Copilot token 回退
- 请求ID追踪和日志记录
- 配置文件热重载

使用示例:
    from copilot_proxy import create_app

    app = create_app()
"""

__version__ = "0.1.0"
__description__ = "Copilot Responses API compatibility proxy"

from .main import app, create_app

__all__ = [
    "app",
    "create_app",
    "__version__",
    "__description__",
]
