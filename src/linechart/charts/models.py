"""图表领域数据结构。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Optional


class PlotCoordinate(NamedTuple):
    """绘图坐标点。"""

    x: float
    y: float


class AxisRange(NamedTuple):
    """坐标轴取值范围。"""

    low: float
    high: float


@dataclass(frozen=True)
class Series:
    """一条带标题的折线数据。

    x_points 为 None 表示请求中未提供 X_Points，由全局 X 范围补齐。
    """

    caption: str
    x_points: Optional[tuple[float, ...]]
    y_points: tuple[float, ...]


@dataclass(frozen=True)
class ChartRequest:
    """通过校验的折线图请求。"""

    x_start: float
    x_end: float
    series: tuple[Series, ...] = ()


@dataclass(frozen=True)
class ChartData:
    """SeriesBuilder 输出：坐标轴范围、刻度数与按标题索引的数据。"""

    x_range: AxisRange
    y_range: AxisRange
    x_tick_count: int
    y_tick_count: int
    points_by_caption: dict[str, tuple[tuple[float, ...], tuple[float, ...]]] = field(
        default_factory=dict
    )
