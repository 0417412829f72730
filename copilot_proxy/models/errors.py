"""错误响应模型

代理对外只使用扁平结构 ``{"error": "<message>"}``；
上游返回的错误体原样透传，不经过这里。
"""

from pydantic import BaseModel, Field

MISSING_TOKEN_MESSAGE = "Missing Copilot token"


class ErrorResponse(BaseModel):
    """代理自身产生的错误响应"""

    error: str = Field(description="错误消息")


# 状态码对应的默认错误消息
DEFAULT_ERROR_MESSAGES = {
    400: "Bad Request",
    401: MISSING_TOKEN_MESSAGE,
    404: "Not Found",
    500: "Internal Server Error",
    502: "Bad Gateway",
}


def proxy_failure_message(upstream_path: str) -> str:
    """代理请求失败时返回给调用方的固定消息"""
    return f"Failed to proxy request to {upstream_path}"


def get_error_response(status_code: int, message: str | None = None) -> ErrorResponse:
    """根据HTTP状态码获取错误响应模型"""
    default = DEFAULT_ERROR_MESSAGES.get(status_code, "Internal Server Error")
    return ErrorResponse(error=message or default)


def is_client_error(status_code: int) -> bool:
    """判断是否为客户端错误（4xx）"""
    return 400 <= status_code < 500


def is_server_error(status_code: int) -> bool:
    """判断是否为服务器错误（5xx）"""
    return 500 <= status_code < 600
