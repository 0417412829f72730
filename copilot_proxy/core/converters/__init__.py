"""
转换器模块

提供 messages 风格请求到 Responses API 请求的转换功能。
"""

from .messages_converter import (
    UNCHANGED,
    MessagesToResponsesConverter,
    NormalizationResult,
    Normalized,
    Unchanged,
)

__all__ = [
    "MessagesToResponsesConverter",
    "NormalizationResult",
    "Normalized",
    "Unchanged",
    "UNCHANGED",
]
