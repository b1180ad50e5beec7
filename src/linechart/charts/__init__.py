"""折线图核心流程：校验 → 数据整理 → 坐标合并 → 场景构建。"""

from linechart.charts.merge import merge_coordinates
from linechart.charts.models import AxisRange, ChartData, ChartRequest, PlotCoordinate, Series
from linechart.charts.scene import Scene, build_scene
from linechart.charts.series import (
    build_caption_map,
    build_chart_data,
    global_x_range,
    global_y_range,
    tick_count,
)
from linechart.charts.validation import parse_chart_request

__all__ = [
    "AxisRange",
    "ChartData",
    "ChartRequest",
    "PlotCoordinate",
    "Scene",
    "Series",
    "build_caption_map",
    "build_chart_data",
    "build_scene",
    "global_x_range",
    "global_y_range",
    "merge_coordinates",
    "parse_chart_request",
    "tick_count",
]
