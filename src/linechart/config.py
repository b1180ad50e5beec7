"""服务配置，基于 Pydantic Settings。

配置在进程启动时构建一次，随后以不可变对象的形式显式传入应用工厂，
不存在模块级的全局配置单例。

来源优先级（高 → 低）：命令行参数 → INI 配置文件 → 环境变量 → 默认值。
"""

from __future__ import annotations

import configparser
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

LOWEST_PORT = 49152
HIGHEST_PORT = 65535

# INI 文件中的节名（与 QSettings 等工具生成的无节配置兼容）
INI_SECTION = "General"

# INI 键别名 → 字段名
_INI_KEY_ALIASES = {
    "imagepath": "image_directory",
    "image_path": "image_directory",
    "imagedirectory": "image_directory",
}

# ---- 启动退出码 ----
EXIT_LISTEN_FAILED = 99
EXIT_SETTINGS_FILE_MISSING = 100
EXIT_PORT_MISSING = 101
EXIT_PORT_OUT_OF_RANGE = 102
EXIT_IMAGE_DIR_MISSING = 103
EXIT_IMAGE_DIR_EMPTY = 104
EXIT_IMAGE_DIR_NOT_FOUND = 105
EXIT_IMAGE_DIR_RELATIVE = 106
EXIT_INVALID_SETTING = 107


class ConfigError(Exception):
    """启动配置错误，携带进程退出码。"""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class ServiceConfig(BaseSettings):
    """服务配置，支持环境变量（前缀 LINECHART_）。"""

    model_config = SettingsConfigDict(
        env_prefix="LINECHART_",
        extra="ignore",
        frozen=True,
    )

    # ---- 基础 ----
    app_name: str = "LineChart-Microservice"
    debug: bool = False
    log_level: str = "info"

    # ---- 网络 ----
    host: str = "127.0.0.1"
    port: Optional[int] = None
    # 对外暴露的基础地址；为空时使用请求自身的 base_url
    public_base_url: Optional[str] = None

    # ---- 图片存储 ----
    image_directory: Optional[str] = None
    # <= 0 表示不做过期清理
    artifact_ttl_hours: float = 24.0
    sweep_interval_seconds: float = 3600.0

    # ---- 并发 ----
    workers: int = 4

    # ---- 响应 ----
    # False：所有响应均为 200，错误仅通过 Message 表达
    strict_status_codes: bool = False
    support_email: Optional[str] = None

    # ---- 派生属性 ----
    @property
    def image_dir(self) -> Path:
        return Path(self.image_directory or "")

    @property
    def expiry_enabled(self) -> bool:
        return self.artifact_ttl_hours > 0

    @property
    def expiry_notice(self) -> str:
        hours = self.artifact_ttl_hours if self.expiry_enabled else 24
        return f"The provided url will expire in {hours:g} hours."


def read_ini_settings(path: Path) -> dict[str, str]:
    """读取 INI 配置文件的 [General] 节，返回字段名 → 原始字符串值。"""
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with path.open(encoding="utf-8") as fh:
            parser.read_file(fh)
    except (OSError, configparser.Error) as exc:
        raise ConfigError(
            f"Settings file '{path}' could not be read: {exc}",
            EXIT_SETTINGS_FILE_MISSING,
        ) from exc

    if not parser.has_section(INI_SECTION):
        return {}

    values: dict[str, str] = {}
    for key, value in parser.items(INI_SECTION):
        normalized = key.strip().lower()
        values[_INI_KEY_ALIASES.get(normalized, normalized)] = value.strip()
    return values


def validate_startup(config: ServiceConfig) -> ServiceConfig:
    """按固定顺序检查端口与图片目录，首个失败项抛出 ConfigError。"""
    if config.port is None:
        raise ConfigError("No port configured.", EXIT_PORT_MISSING)

    if not LOWEST_PORT <= config.port <= HIGHEST_PORT:
        raise ConfigError(
            f"Port {config.port} is outside the dynamic range "
            f"{LOWEST_PORT}-{HIGHEST_PORT}.",
            EXIT_PORT_OUT_OF_RANGE,
        )

    if config.image_directory is None:
        raise ConfigError("No image directory configured.", EXIT_IMAGE_DIR_MISSING)

    if not config.image_directory.strip():
        raise ConfigError("The configured image directory is empty.", EXIT_IMAGE_DIR_EMPTY)

    if not config.image_dir.exists():
        raise ConfigError(
            f"Image directory '{config.image_directory}' does not exist.",
            EXIT_IMAGE_DIR_NOT_FOUND,
        )

    if not config.image_dir.is_absolute():
        raise ConfigError(
            f"Image directory '{config.image_directory}' is not an absolute path.",
            EXIT_IMAGE_DIR_RELATIVE,
        )

    return config


def load_config(
    settings_file: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ServiceConfig:
    """构建并校验服务配置。

    Args:
        settings_file: INI 配置文件路径；显式给出但不存在时视为错误
        overrides: 命令行参数（值为 None 的项忽略）
    """
    values: dict[str, Any] = {}

    if settings_file is not None:
        if not settings_file.is_file():
            raise ConfigError(
                f"Settings file '{settings_file}' does not exist.",
                EXIT_SETTINGS_FILE_MISSING,
            )
        values.update(read_ini_settings(settings_file))
        logger.debug("已读取配置文件: %s", settings_file)

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    # 初始化参数优先于环境变量，环境变量只补齐未给出的字段
    try:
        config = ServiceConfig(**values)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "?"
        exit_code = EXIT_PORT_OUT_OF_RANGE if field == "port" else EXIT_INVALID_SETTING
        raise ConfigError(
            f"Invalid value for setting '{field}': {first.get('msg')}",
            exit_code,
        ) from exc
    return validate_startup(config)
