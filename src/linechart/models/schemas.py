"""Pydantic 响应模型。

对外字段名沿用首字母大写的协议格式（Link / Message / Data），
代码中通过 snake_case 属性访问。
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """仅包含提示信息的响应（含所有错误响应）。"""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(alias="Message")


class ChartLinkResponse(BaseModel):
    """图表生成成功的响应。"""

    model_config = ConfigDict(populate_by_name=True)

    link: str = Field(alias="Link")
    message: str = Field(alias="Message")


class ChartDataResponse(BaseModel):
    """图表读取成功的响应，Data 为 base64 编码的 PNG。"""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(alias="Message")
    data: str = Field(alias="Data")
