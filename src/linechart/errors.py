"""业务异常定义。

所有异常都携带面向客户端的 Message 文本；状态码仅在启用
``strict_status_codes`` 时写入 HTTP 响应，否则统一返回 200。
"""

from __future__ import annotations

from fastapi import status

INVALID_DATA_SUFFIX = "Please send a valid JSON-Object."


class ChartServiceError(Exception):
    """服务异常基类。"""

    default_message = "An internal error has occurred."
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    # 是否在响应中附带客服联系方式
    include_support_contact = False

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedJSONError(ChartServiceError):
    """请求体不是合法 JSON。"""

    default_message = (
        "Invalid data sent. The request body is not a valid JSON document. "
        + INVALID_DATA_SUFFIX
    )
    status_code = status.HTTP_400_BAD_REQUEST


class SchemaViolationError(ChartServiceError):
    """JSON 结构或取值不满足协议。"""

    default_message = "Invalid data sent. " + INVALID_DATA_SUFFIX
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidIdentifierError(ChartServiceError):
    """取图参数不是合法 UUID。"""

    default_message = "The submitted argument is not an UUID. Please send a valid UUID."
    status_code = status.HTTP_400_BAD_REQUEST


class ArtifactNotFoundError(ChartServiceError):
    """图片不存在或已过期。"""

    default_message = "The submitted UUID is either not linked to any chart or already expired."
    status_code = status.HTTP_404_NOT_FOUND
    include_support_contact = True


class ArtifactIOError(ChartServiceError):
    """图片文件存在但读取失败。"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    include_support_contact = True

    def __init__(self, error_code: int, message: str | None = None):
        self.error_code = error_code
        super().__init__(
            message or f"An internal error (errorcode {error_code}) has occurred."
        )


class RenderFailureError(ChartServiceError):
    """图表渲染失败。"""

    default_message = "An internal error (errorcode 200) has occurred while rendering the chart."
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    include_support_contact = True


class MethodNotImplementedError(ChartServiceError):
    """路由不支持的 HTTP 方法。"""

    default_message = "The used HTTP-Method is not implemented."
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


def with_support_contact(message: str, support_email: str | None) -> str:
    """为错误信息追加客服联系方式（未配置时原样返回）。"""
    if not support_email:
        return message
    return f"{message} Please contact our support via our e-mail {support_email} ."
