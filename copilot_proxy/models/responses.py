"""Copilot Responses API 请求数据模型"""

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_MODEL = "gpt-4o"


class InputText(BaseModel):
    """输入文本片段"""

    type: Literal["input_text"] = Field("input_text", description="内容类型")
    text: str = Field("", description="文本内容")


class InputItem(BaseModel):
    """单轮对话输入项，content 中恰好包含一个文本片段"""

    type: Literal["message"] = Field("message", description="输入项类型")
    role: Any = Field("user", description="消息角色")
    content: list[InputText] = Field(description="文本片段列表")


class ResponsesRequest(BaseModel):
    """发送给上游的规范化请求

    可选字段仅在入站请求提供时输出，序列化时使用 ``exclude_unset=True``。
    """

    model: Any = Field(DEFAULT_MODEL, description="模型ID")
    input: list[InputItem] = Field(default_factory=list, description="输入项列表")
    stream: Any = Field(False, description="是否流式返回")
    reasoning: Any = Field(None, description="推理配置")
    temperature: Any = Field(None, description="采样温度")
    max_output_tokens: Any = Field(None, description="最大输出token数")

    def to_json(self) -> str:
        # ensure_ascii 转义孤立的 UTF-16 代理项
        return json.dumps(self.model_dump(exclude_unset=True))
