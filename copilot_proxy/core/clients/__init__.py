"""上游服务客户端"""

from .copilot_client import CopilotServiceClient

__all__ = ["CopilotServiceClient"]
