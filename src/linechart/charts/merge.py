"""X/Y 坐标合并。"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from linechart.charts.models import PlotCoordinate


def merge_coordinates(
    x_points: Sequence[float],
    y_points: Sequence[float],
) -> list[PlotCoordinate]:
    """按顺序将 Y 值依次配到 X 值上，生成与 x_points 等长的坐标序列。

    - Y 值较少：末尾坐标的 y 保持 0
    - Y 值较多：多余的 Y 值被丢弃
    """
    xs = np.asarray(x_points, dtype=float)
    ys = np.zeros(xs.shape[0], dtype=float)
    paired = min(xs.shape[0], len(y_points))
    ys[:paired] = np.asarray(y_points[:paired], dtype=float)
    return [PlotCoordinate(float(x), float(y)) for x, y in zip(xs, ys)]
