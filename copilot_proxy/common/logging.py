"""Loguru日志配置"""

import sys
import traceback
import uuid
from pathlib import Path

from loguru import logger

REQUEST_ID_HEADER = "X-Request-ID"


def format_exception_truncated(record, limit: int = 1000) -> str:
    """格式化异常信息，超过 limit 个字符时截断"""
    if record["exception"]:
        exc_text = "".join(traceback.format_exception(*record["exception"]))
        if len(exc_text) > limit:
            return exc_text[:limit] + "..."
        return exc_text
    return ""


def _ensure_request_id(record) -> bool:
    record["extra"].setdefault("request_id", "---")
    return True


def configure_logging(log_config, log_path: str = "logs/app.log") -> None:
    """配置Loguru日志系统

    Args:
        log_config: 日志配置对象（需要 level 属性）
        log_path: 文件日志路径
    """
    logger.remove()

    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<cyan>{extra[request_id]}</cyan> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        format=console_format,
        level=log_config.level,
        colorize=True,
        filter=_ensure_request_id,
    )

    logger.add(
        str(path),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[request_id]} | {name}:{line} | {message}",
        level=log_config.level,
        rotation="10 MB",
        retention="1 day",
        encoding="utf-8",
        backtrace=True,
        diagnose=False,  # 变量值可能包含 token
        filter=_ensure_request_id,
    )

    def exception_handler(exc_type, exc_value, exc_traceback):
        """全局异常处理器"""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.opt(exception=(exc_type, exc_value, exc_traceback)).critical(
            "未捕获的异常"
        )

    sys.excepthook = exception_handler


def generate_request_id() -> str:
    """生成唯一的请求ID

    Returns:
        str: 格式为 req_xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx 的请求ID
    """
    return f"req_{uuid.uuid4()}"


def get_request_id_from_request(request) -> str | None:
    """从请求对象中安全地获取请求ID"""
    try:
        return getattr(request.state, "request_id", None)
    except AttributeError:
        return None


def get_logger_with_request_id(request_id: str | None = None):
    """获取绑定了请求ID的日志器实例"""
    return logger.bind(request_id=request_id or "---")


def mask_secret(secret: str | None, keep_start: int = 4, keep_end: int = 4) -> str:
    """遮蔽敏感字符串，只保留首尾若干字符"""
    secret = (secret or "").strip()
    if not secret:
        return ""
    if len(secret) <= keep_start + keep_end:
        return "*" * len(secret)
    return f"{secret[:keep_start]}...{secret[-keep_end:]}"
