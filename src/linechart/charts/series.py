"""数据整理：按标题展开折线数据，并计算坐标轴范围与刻度数。"""

from __future__ import annotations

import logging
import math

import numpy as np

from linechart.charts.models import AxisRange, ChartData, ChartRequest

logger = logging.getLogger(__name__)

PointsByCaption = dict[str, tuple[tuple[float, ...], tuple[float, ...]]]


def global_x_range(x_start: float, x_end: float) -> tuple[float, ...]:
    """全局 X 序列：从 x_start 起步长为 1，长度为 int(|x_start| + |x_end|)。"""
    size = int(abs(x_start) + abs(x_end))
    return tuple(float(value) for value in x_start + np.arange(size, dtype=float))


def build_caption_map(request: ChartRequest) -> PointsByCaption:
    """按标题展开折线数据。

    标题重复时后出现的数据覆盖先前的数据；未提供 X_Points 的折线使用全局 X 序列。
    """
    fallback_x: tuple[float, ...] | None = None
    points: PointsByCaption = {}

    for series in request.series:
        x_points = series.x_points
        if x_points is None:
            if fallback_x is None:
                fallback_x = global_x_range(request.x_start, request.x_end)
            x_points = fallback_x

        if series.caption in points:
            logger.warning("标题重复，后出现的数据将覆盖之前的数据: %s", series.caption)
        points[series.caption] = (x_points, series.y_points)

    return points


def global_y_range(points: PointsByCaption) -> AxisRange:
    """所有折线 Y 值的 (min, max)；Y 值总数不超过 1 时为 (0, 0)。"""
    values = [np.asarray(y_points, dtype=float) for _, y_points in points.values()]
    all_y = np.concatenate(values) if values else np.empty(0)
    if all_y.size <= 1:
        return AxisRange(0.0, 0.0)
    return AxisRange(float(all_y.min()), float(all_y.max()))


def tick_count(maximum: float) -> int:
    """坐标轴刻度数：floor(maximum) + 1。"""
    return math.floor(maximum) + 1


def build_chart_data(request: ChartRequest) -> ChartData:
    """由校验后的请求构建渲染所需的全部数据。"""
    points = build_caption_map(request)
    y_range = global_y_range(points)

    return ChartData(
        x_range=AxisRange(request.x_start, request.x_end),
        y_range=y_range,
        x_tick_count=tick_count(max(request.x_start, request.x_end)),
        y_tick_count=tick_count(y_range.high),
        points_by_caption=points,
    )
