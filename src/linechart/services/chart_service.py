"""折线图服务：串联校验、数据整理、渲染与存储。

所有方法都是同步阻塞的，由 WorkerPool 在工作线程中调用。
"""

from __future__ import annotations

import base64
import logging
import random
import uuid
from typing import Callable, Optional

from linechart.charts.models import ChartRequest
from linechart.charts.renderers import DEFAULT_CANVAS, CanvasSpec, render_scene
from linechart.charts.scene import Scene, build_scene
from linechart.charts.series import build_chart_data
from linechart.charts.validation import parse_chart_request
from linechart.errors import MalformedJSONError, RenderFailureError, SchemaViolationError
from linechart.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)

Renderer = Callable[[Scene, CanvasSpec], bytes]


class ChartService:
    """折线图生成与读取。"""

    def __init__(
        self,
        store: ArtifactStore,
        *,
        renderer: Renderer = render_scene,
        canvas: CanvasSpec = DEFAULT_CANVAS,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.renderer = renderer
        self.canvas = canvas
        self._rng = rng

    def validate(self, body: bytes) -> ChartRequest:
        try:
            return parse_chart_request(body)
        except (MalformedJSONError, SchemaViolationError) as exc:
            logger.info("请求校验失败: %s", exc.message)
            raise

    def render(self, request: ChartRequest) -> bytes:
        """渲染图表，渲染器的任何异常都转换为 RenderFailureError。"""
        scene = build_scene(build_chart_data(request), self._rng)
        try:
            image = self.renderer(scene, self.canvas)
        except Exception as exc:
            logger.exception("图表渲染失败")
            raise RenderFailureError() from exc
        if not image:
            logger.error("渲染器返回了空图像")
            raise RenderFailureError()
        return image

    def create_chart(self, body: bytes) -> uuid.UUID:
        """完整流程：校验 → 渲染 → 发布，返回图片标识。

        校验失败时不会产生任何文件。
        """
        request = self.validate(body)
        image = self.render(request)
        return self.store.publish(image)

    def fetch_chart(self, argument: str) -> bytes:
        return self.store.fetch(argument)

    def fetch_chart_base64(self, argument: str) -> str:
        return base64.b64encode(self.fetch_chart(argument)).decode("ascii")
