"""图表渲染器适配层。"""

from linechart.charts.renderers.matplotlib_renderer import (
    DEFAULT_CANVAS,
    CanvasSpec,
    render_scene,
)

__all__ = [
    "CanvasSpec",
    "DEFAULT_CANVAS",
    "render_scene",
]
