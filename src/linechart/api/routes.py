"""HTTP 端点（折线图生成、读取与连通性检查）。

所有业务错误以 ChartServiceError 抛出，由应用级异常处理器统一转换为
``{"Message": ...}`` 响应。
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from fastapi import APIRouter, Request

from linechart.config import ServiceConfig
from linechart.errors import ChartServiceError, MethodNotImplementedError
from linechart.models.schemas import ChartDataResponse, ChartLinkResponse, MessageResponse
from linechart.services.chart_service import ChartService
from linechart.services.worker_pool import WorkerPool

router = APIRouter(prefix="/charts/line", tags=["line-chart"])
logger = logging.getLogger(__name__)

T = TypeVar("T")

PONG_MESSAGE = "Pong."
DATA_MESSAGE = (
    "The 'Data' entry of this JSON-object contains the base64-encoded "
    "png-file data of your chart-plot."
)

_ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD", "TRACE")


def _other_methods(*implemented: str) -> list[str]:
    return [method for method in _ALL_METHODS if method not in implemented]


def _get_config(request: Request) -> ServiceConfig:
    return request.app.state.config


def _get_chart_service(request: Request) -> ChartService:
    return request.app.state.chart_service


def _get_worker_pool(request: Request) -> WorkerPool:
    return request.app.state.worker_pool


def _result_link(request: Request, artifact_id: str) -> str:
    base_url = _get_config(request).public_base_url or str(request.base_url)
    return f"{base_url.rstrip('/')}{router.prefix}/result/{artifact_id}"


async def _run_in_pool(request: Request, fn: Callable[..., T], *args: Any) -> T:
    """在线程池中执行阻塞流程；非业务异常统一转换为内部错误。"""
    try:
        return await _get_worker_pool(request).submit(fn, *args)
    except ChartServiceError:
        raise
    except Exception as exc:
        logger.exception("请求处理失败: %s %s", request.method, request.url.path)
        raise ChartServiceError() from exc


@router.post("", response_model=ChartLinkResponse)
async def create_line_chart(request: Request) -> ChartLinkResponse:
    """生成折线图，返回图片读取链接。"""
    body = await request.body()
    service = _get_chart_service(request)
    artifact_id = await _run_in_pool(request, service.create_chart, body)
    return ChartLinkResponse(
        link=_result_link(request, str(artifact_id)),
        message=_get_config(request).expiry_notice,
    )


@router.get("/ping", response_model=MessageResponse)
async def ping() -> MessageResponse:
    return MessageResponse(message=PONG_MESSAGE)


@router.get("/result/{argument}", response_model=ChartDataResponse)
async def get_line_chart(argument: str, request: Request) -> ChartDataResponse:
    """按标识读取图片，Data 为 base64 编码内容。"""
    service = _get_chart_service(request)
    data = await _run_in_pool(request, service.fetch_chart_base64, argument)
    return ChartDataResponse(message=DATA_MESSAGE, data=data)


@router.api_route("", methods=_other_methods("POST"), include_in_schema=False)
@router.api_route("/ping", methods=_other_methods("GET"), include_in_schema=False)
@router.api_route("/result/{argument}", methods=_other_methods("GET"), include_in_schema=False)
async def method_not_implemented() -> None:
    raise MethodNotImplementedError()
