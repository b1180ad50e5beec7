"""折线图请求校验。

校验按固定顺序执行，遇到第一个不满足的条件立即抛出异常；
同一份非法请求总是得到完全相同的错误信息。校验本身没有任何副作用。

请求格式::

    {
        "X_Start": 0,
        "X_End": 5,
        "Points": [[
            {"Caption": "A", "X_Points": [0, 1, 2], "Y_Points": [1, 2, 3]}
        ]]
    }
"""

from __future__ import annotations

import json
import math
from typing import Any

from linechart.charts.models import ChartRequest, Series
from linechart.errors import INVALID_DATA_SUFFIX, MalformedJSONError, SchemaViolationError

X_START_KEY = "X_Start"
X_END_KEY = "X_End"
POINTS_KEY = "Points"
CAPTION_KEY = "Caption"
X_POINTS_KEY = "X_Points"
Y_POINTS_KEY = "Y_Points"

REQUIRED_KEYS = (X_START_KEY, X_END_KEY, POINTS_KEY)

# 省略 X_Points 时由全局 X 序列补齐，其长度上限
MAX_DERIVED_X_POINTS = 100_000


def _invalid(detail: str) -> SchemaViolationError:
    return SchemaViolationError(f"Invalid data sent. {detail} {INVALID_DATA_SUFFIX}")


def is_number(value: Any) -> bool:
    """JSON 数值判断（bool 不算数值，且必须能表示为有限双精度数）。"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _to_float(value: Any) -> float:
    # 非数值的 X 坐标按 0 处理
    return float(value) if is_number(value) else 0.0


def _reject_constant(name: str) -> Any:
    raise ValueError(f"unsupported JSON constant: {name}")


def decode_body(body: bytes | str) -> Any:
    """解析请求体为 JSON 文档，失败或为 null 时抛出 MalformedJSONError。"""
    try:
        document = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, TypeError) as exc:
        raise MalformedJSONError() from exc
    if document is None:
        raise MalformedJSONError()
    return document


def _validate_series_object(item: Any, derived_x_span: float) -> Series:
    if not isinstance(item, dict):
        raise _invalid(f"A sub-object in array '{POINTS_KEY}' is not a proper JSON-object.")

    caption = item.get(CAPTION_KEY)
    if not isinstance(caption, str) or not caption:
        raise _invalid(f"A caption of one sub-object in array '{POINTS_KEY}' is empty.")

    x_points: tuple[float, ...] | None = None
    if X_POINTS_KEY in item:
        raw_x = item[X_POINTS_KEY]
        if not isinstance(raw_x, list):
            raise _invalid(
                f"JSON-Key '{X_POINTS_KEY}' of one sub-object in array '{POINTS_KEY}' "
                "is not an array."
            )
        x_points = tuple(_to_float(value) for value in raw_x)
    elif derived_x_span >= MAX_DERIVED_X_POINTS + 1:
        raise _invalid(
            f"JSON-Key '{X_POINTS_KEY}' is missing and the range of '{X_START_KEY}' "
            f"and '{X_END_KEY}' is too large to derive it."
        )

    raw_y = item.get(Y_POINTS_KEY)
    if not isinstance(raw_y, list):
        raise _invalid(
            f"JSON-Key '{Y_POINTS_KEY}' of one sub-object in array '{POINTS_KEY}' "
            "is not an array."
        )
    for value in raw_y:
        if not is_number(value):
            raise _invalid(
                f"A point in JSON-Key '{Y_POINTS_KEY}' in one sub-object of "
                f"'{POINTS_KEY}' is not a double value."
            )

    return Series(
        caption=caption,
        x_points=x_points,
        y_points=tuple(float(value) for value in raw_y),
    )


def validate_document(document: Any) -> ChartRequest:
    """校验已解析的 JSON 文档并构建 ChartRequest。"""
    if not isinstance(document, dict) or not document:
        raise SchemaViolationError()

    for key in REQUIRED_KEYS:
        if key not in document:
            raise _invalid(f"Missing JSON-Key '{key}'.")

    for key in (X_START_KEY, X_END_KEY):
        if not is_number(document[key]):
            raise _invalid(f"JSON-Key '{key}' is not a double value.")

    points = document[POINTS_KEY]
    if not isinstance(points, list):
        raise _invalid(f"JSON-Key '{POINTS_KEY}' is not an array.")
    if not points:
        raise _invalid(f"JSON-Key '{POINTS_KEY}' is empty.")
    if len(points) > 1:
        raise _invalid(f"JSON-Key '{POINTS_KEY}' contains more than one array.")

    nested = points[0]
    if not isinstance(nested, list) or not nested:
        raise _invalid(f"Array in JSON-Key '{POINTS_KEY}' contains no JSON subobjects.")

    # 以浮点数比较，两端极大时和可能溢出为 inf
    derived_x_span = abs(float(document[X_START_KEY])) + abs(float(document[X_END_KEY]))
    series = tuple(_validate_series_object(item, derived_x_span) for item in nested)

    return ChartRequest(
        x_start=float(document[X_START_KEY]),
        x_end=float(document[X_END_KEY]),
        series=series,
    )


def parse_chart_request(body: bytes | str) -> ChartRequest:
    """解析并校验原始请求体。"""
    return validate_document(decode_body(body))
