"""测试初始化。"""

from __future__ import annotations

import sys
import warnings
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from linechart.config import ServiceConfig  # noqa: E402

# Python 3.12 下在部分测试组合中会出现偶发的 asyncio 事件循环析构告警，
# 不影响功能正确性，统一在测试入口忽略该类噪声。
warnings.filterwarnings(
    "ignore",
    category=ResourceWarning,
    message=r"unclosed event loop .*",
)


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    d = tmp_path / "images"
    d.mkdir()
    return d


@pytest.fixture
def service_config(image_dir: Path) -> ServiceConfig:
    return ServiceConfig(port=50001, image_directory=str(image_dir), workers=2)


@pytest.fixture
def sample_payload() -> dict:
    return {
        "X_Start": 0,
        "X_End": 5,
        "Points": [
            [
                {"Caption": "A", "X_Points": [0, 1, 2, 3, 4], "Y_Points": [1, 2, 3]},
            ]
        ],
    }
