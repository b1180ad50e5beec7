"""FastAPI 应用工厂。

配置在工厂调用时显式传入，并挂在 ``app.state`` 上供路由读取：
- app.state.config: ServiceConfig
- app.state.chart_service: ChartService
- app.state.worker_pool: WorkerPool
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.responses import Response

from linechart import __version__
from linechart.config import ServiceConfig, load_config
from linechart.errors import ChartServiceError, with_support_contact
from linechart.models.schemas import MessageResponse
from linechart.services.chart_service import ChartService
from linechart.services.worker_pool import WorkerPool
from linechart.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)


async def _sweep_periodically(app: FastAPI) -> None:
    """定期清理过期图片。"""
    config: ServiceConfig = app.state.config
    store = app.state.chart_service.store
    pool: WorkerPool = app.state.worker_pool

    while True:
        try:
            await pool.submit(store.sweep_expired)
        except Exception as e:
            logger.warning("清理过期图表失败: %s", e)
        await asyncio.sleep(config.sweep_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：启动/关闭时执行。"""
    config: ServiceConfig = app.state.config

    # 启动
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("%s 启动中 ...", config.app_name)
    logger.info("端口: %s，图片目录: %s", config.port, config.image_dir)

    sweeper: Optional[asyncio.Task[None]] = None
    if config.expiry_enabled and config.sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(_sweep_periodically(app))
        logger.info(
            "已启用过期清理：保留 %g 小时，每 %g 秒检查一次",
            config.artifact_ttl_hours,
            config.sweep_interval_seconds,
        )
    else:
        logger.info("未启用过期清理")

    logger.info("%s 启动完成", config.app_name)

    yield

    # 关闭
    logger.info("%s 关闭中 ...", config.app_name)
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    app.state.worker_pool.shutdown(wait=True)


def build_chart_service(config: ServiceConfig) -> ChartService:
    ttl = timedelta(hours=config.artifact_ttl_hours) if config.expiry_enabled else None
    store = ArtifactStore(config.image_dir, ttl=ttl)
    return ChartService(store)


def create_app(
    config: Optional[ServiceConfig] = None,
    *,
    chart_service: Optional[ChartService] = None,
) -> FastAPI:
    """创建 FastAPI 应用实例。

    Args:
        config: 服务配置；为空时从环境变量加载并校验
        chart_service: 可替换的服务实例（测试用）
    """
    if config is None:
        config = load_config()

    app = FastAPI(
        title=config.app_name,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.chart_service = chart_service or build_chart_service(config)
    app.state.worker_pool = WorkerPool(max_workers=config.workers)

    def _error_response(exc: ChartServiceError) -> JSONResponse:
        message = exc.message
        if exc.include_support_contact:
            message = with_support_contact(message, config.support_email)
        status_code = exc.status_code if config.strict_status_codes else 200
        return JSONResponse(
            content=MessageResponse(message=message).model_dump(by_alias=True),
            status_code=status_code,
        )

    @app.exception_handler(ChartServiceError)
    async def chart_service_error_handler(
        request: Request,
        exc: ChartServiceError,
    ) -> JSONResponse:
        return _error_response(exc)

    # 兜底：未预期的异常同样以 {"Message": ...} 返回内部错误
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("未处理的异常: %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(ChartServiceError())

    # Request ID 中间件：为每个请求生成唯一标识
    @app.middleware("http")
    async def request_id_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        # 优先使用客户端传入的 X-Request-ID，否则生成新的
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    from linechart.api.routes import router as chart_router

    app.include_router(chart_router)

    return app
