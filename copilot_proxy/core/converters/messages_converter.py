"""
Messages -> Responses 请求转换器

将 messages 风格（Chat Completions / Anthropic 风格）的请求体转换为
上游 Responses API 的 input 结构。已经是 input 结构的请求体原样转发。
"""

import json
from dataclasses import dataclass
from typing import Any

from copilot_proxy.models.responses import (
    DEFAULT_MODEL,
    InputItem,
    InputText,
    ResponsesRequest,
)


@dataclass(frozen=True)
class Normalized:
    """请求体已被改写"""

    payload: ResponsesRequest

    def to_body(self) -> bytes:
        return self.payload.to_json().encode("utf-8")


@dataclass(frozen=True)
class Unchanged:
    """请求体应原样转发"""


UNCHANGED = Unchanged()

NormalizationResult = Normalized | Unchanged


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class MessagesToResponsesConverter:
    """将 messages 风格请求转换为 Responses API 请求"""

    @staticmethod
    def extract_text(content: Any) -> str:
        """把消息内容拼接为单段文本

        字符串原样返回；列表中的字符串片段和带字符串 ``text`` 字段的对象
        按顺序直接拼接，其余片段和其他类型的内容一律视为空文本。
        """
        if isinstance(content, str):
            return content
        if not isinstance(content, list):
            return ""

        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)

    @classmethod
    def convert_message(cls, message: Any) -> InputItem:
        """转换单条消息，格式异常的消息降级为空文本"""
        if not isinstance(message, dict):
            message = {}

        role = message.get("role")
        if role is None:
            role = "user"

        return InputItem(
            type="message",
            role=role,
            content=[
                InputText(type="input_text", text=cls.extract_text(message.get("content")))
            ],
        )

    @classmethod
    def normalize(cls, parsed: Any) -> NormalizationResult:
        """
        将已解析的请求体规范化

        Args:
            parsed: json.loads 的结果

        Returns:
            Normalized: 请求体包含 messages 且没有 input
            Unchanged: 其他情况（已规范化、无 messages 或结构无法识别）
        """
        if not isinstance(parsed, dict):
            return UNCHANGED
        if "input" in parsed:
            return UNCHANGED
        if "messages" not in parsed:
            return UNCHANGED

        messages = parsed["messages"]
        if not isinstance(messages, list):
            return UNCHANGED

        fields: dict[str, Any] = {
            "model": _first_present(
                parsed.get("model"), parsed.get("selected_model"), DEFAULT_MODEL
            ),
            "input": [cls.convert_message(message) for message in messages],
            "stream": _first_present(parsed.get("stream"), False),
        }
        if "reasoning" in parsed:
            fields["reasoning"] = parsed["reasoning"]
        if "temperature" in parsed:
            fields["temperature"] = parsed["temperature"]

        max_output_tokens = _first_present(
            parsed.get("max_tokens"), parsed.get("max_output_tokens")
        )
        if max_output_tokens is not None:
            fields["max_output_tokens"] = max_output_tokens

        return Normalized(ResponsesRequest(**fields))

    @classmethod
    def prepare_body(cls, raw_body: bytes) -> bytes:
        """返回应发送给上游的请求体

        无法解析为 JSON、无需规范化或规范化失败时返回原始字节。
        """
        try:
            parsed = json.loads(raw_body)
            result = cls.normalize(parsed)
            if isinstance(result, Normalized):
                return result.to_body()
        except (ValueError, RecursionError):
            # ValidationError 和 PydanticSerializationError 均为 ValueError
            return raw_body
        return raw_body
