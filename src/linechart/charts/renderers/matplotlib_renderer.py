"""Matplotlib 渲染器：将 Scene 光栅化为 PNG 字节。

只使用面向对象接口（Figure + Agg 画布），不触碰 pyplot 的全局状态，
因此可以在线程池中并发调用。
"""

from __future__ import annotations

import io
import logging
import sys
from dataclasses import dataclass

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import LinearLocator

from linechart.charts.models import AxisRange
from linechart.charts.scene import AxisSpec, Scene

logger = logging.getLogger(__name__)

# 刻度数上下限，超出时截断
MIN_TICKS = 2
MAX_TICKS = 1000

# 坐标轴上下限的绝对值上限，保证跨度 high - low 仍是有限值。
# 跨度溢出为 inf 时 Agg 无法完成坐标变换，渲染会失败。
AXIS_VALUE_LIMIT = sys.float_info.max / 4


@dataclass(frozen=True)
class CanvasSpec:
    """画布参数。"""

    width_px: int = 1024
    height_px: int = 768
    dpi: int = 100
    image_format: str = "png"
    antialiased: bool = True

    @property
    def figure_size(self) -> tuple[float, float]:
        return (self.width_px / self.dpi, self.height_px / self.dpi)


DEFAULT_CANVAS = CanvasSpec()


def clamp_tick_count(count: int) -> int:
    return max(MIN_TICKS, min(MAX_TICKS, count))


def axis_limits(axis_range: AxisRange) -> tuple[float, float]:
    """坐标轴上下限。

    上下限相同时向上扩展一个单位；超出 ±AXIS_VALUE_LIMIT 的值被截断，
    超出显示范围的数据点由 Matplotlib 裁剪。
    """
    low, high = (max(-AXIS_VALUE_LIMIT, min(AXIS_VALUE_LIMIT, value)) for value in axis_range)
    if low == high:
        return (low, high + 1.0)
    return (low, high)


def _apply_axis(axis, spec: AxisSpec, set_limits) -> None:
    set_limits(*axis_limits(spec.range))
    axis.set_major_locator(LinearLocator(numticks=clamp_tick_count(spec.tick_count)))


def render_scene(scene: Scene, canvas: CanvasSpec = DEFAULT_CANVAS) -> bytes:
    """渲染场景并返回编码后的图片字节。"""
    fig = Figure(figsize=canvas.figure_size, dpi=canvas.dpi)
    FigureCanvasAgg(fig)
    ax = fig.add_subplot(1, 1, 1)

    for line in scene.lines:
        xs = [point.x for point in line.coordinates]
        ys = [point.y for point in line.coordinates]
        ax.plot(
            xs,
            ys,
            color=line.rgb,
            label=line.caption,
            antialiased=canvas.antialiased,
        )

    _apply_axis(ax.xaxis, scene.axis_x, ax.set_xlim)
    _apply_axis(ax.yaxis, scene.axis_y, ax.set_ylim)
    ax.grid(True, linewidth=0.3, alpha=0.4)

    if scene.lines:
        ax.legend(loc="upper right")

    buf = io.BytesIO()
    fig.savefig(buf, format=canvas.image_format, dpi=canvas.dpi)
    logger.debug("已渲染 %d 条折线，%d 字节", len(scene.lines), buf.tell())
    return buf.getvalue()
