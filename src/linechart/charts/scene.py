"""渲染场景：一个不可变对象统一持有坐标轴与全部折线。

渲染器只读取 Scene，绘图对象在渲染函数内部创建并释放，
调用方无需也无法单独管理某条折线或某个坐标轴。
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from linechart.charts.merge import merge_coordinates
from linechart.charts.models import AxisRange, ChartData, PlotCoordinate

# 颜色通道取值上限（含）
MAX_COLOR_CHANNEL = 254


@dataclass(frozen=True)
class AxisSpec:
    """线性坐标轴。"""

    range: AxisRange
    tick_count: int


@dataclass(frozen=True)
class LineSpec:
    """一条折线。"""

    caption: str
    coordinates: tuple[PlotCoordinate, ...]
    color: tuple[int, int, int]

    @property
    def rgb(self) -> tuple[float, float, float]:
        """归一化到 [0, 1] 的颜色（Matplotlib 格式）。"""
        red, green, blue = self.color
        return (red / 255.0, green / 255.0, blue / 255.0)


@dataclass(frozen=True)
class Scene:
    """一张折线图的完整描述。"""

    axis_x: AxisSpec
    axis_y: AxisSpec
    lines: tuple[LineSpec, ...] = field(default_factory=tuple)


def random_color(rng: random.Random | None = None) -> tuple[int, int, int]:
    """各通道独立均匀取自 [0, 254] 的随机颜色。"""
    source = rng or random
    return (
        source.randint(0, MAX_COLOR_CHANNEL),
        source.randint(0, MAX_COLOR_CHANNEL),
        source.randint(0, MAX_COLOR_CHANNEL),
    )


def build_scene(data: ChartData, rng: random.Random | None = None) -> Scene:
    """由整理后的数据构建渲染场景。"""
    lines = tuple(
        LineSpec(
            caption=caption,
            coordinates=tuple(merge_coordinates(x_points, y_points)),
            color=random_color(rng),
        )
        for caption, (x_points, y_points) in data.points_by_caption.items()
    )
    return Scene(
        axis_x=AxisSpec(range=data.x_range, tick_count=data.x_tick_count),
        axis_y=AxisSpec(range=data.y_range, tick_count=data.y_tick_count),
        lines=lines,
    )
