"""命令行入口：`python -m linechart` / `linechart`。"""

from __future__ import annotations

import argparse
import importlib
import os
import sys
from pathlib import Path
from typing import Any, Sequence

from linechart import __version__
from linechart.config import (
    EXIT_LISTEN_FAILED,
    ConfigError,
    ServiceConfig,
    load_config,
)

DEFAULT_SETTINGS_FILE = "settings.ini"
SETTINGS_FILE_ENV = "LINECHART_SETTINGS_FILE"


def _default_settings_content() -> str:
    return (
        "; LineChart-Microservice 配置\n"
        "[General]\n"
        "; 监听端口，必须位于 49152-65535\n"
        "port=50001\n"
        "; 图片存储目录，必须为已存在的绝对路径\n"
        "image_directory=\n"
        "host=127.0.0.1\n"
        "; 对外链接的基础地址，留空则使用请求地址\n"
        "public_base_url=\n"
        "workers=4\n"
        "; <= 0 表示不清理过期图片\n"
        "artifact_ttl_hours=24\n"
        "sweep_interval_seconds=3600\n"
        "strict_status_codes=false\n"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linechart",
        description="Microservice for LineChart-Plotting.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="启动服务")
    _add_config_arguments(start_parser)
    start_parser.add_argument("--reload", action="store_true", help="开发模式热重载")
    start_parser.add_argument(
        "--log-level",
        default=None,
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="日志级别",
    )
    start_parser.set_defaults(func=_cmd_start)

    init_parser = subparsers.add_parser("init", help="生成配置文件模板")
    init_parser.add_argument(
        "--settings",
        default=DEFAULT_SETTINGS_FILE,
        help="配置文件路径，默认当前目录 settings.ini",
    )
    init_parser.add_argument("--force", action="store_true", help="覆盖已存在的配置文件")
    init_parser.set_defaults(func=_cmd_init)

    doctor_parser = subparsers.add_parser("doctor", help="检查运行环境与配置")
    _add_config_arguments(doctor_parser)
    doctor_parser.set_defaults(func=_cmd_doctor)

    return parser


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--settings", type=Path, default=None, help="INI 配置文件路径")
    parser.add_argument("--host", default=None, help="监听地址")
    parser.add_argument("--port", type=int, default=None, help="监听端口（49152-65535）")
    parser.add_argument("--image-dir", default=None, help="图片存储目录（绝对路径）")
    parser.add_argument("--workers", type=int, default=None, help="工作线程数")


def _normalize_argv(argv: Sequence[str]) -> list[str]:
    if not argv or (argv[0].startswith("-") and argv[0] not in ("-h", "--help", "--version")):
        # `linechart --port 50001` 等价于 `linechart start --port 50001`
        return ["start", *argv]
    return list(argv)


def _resolve_settings_file(explicit: Path | None) -> Path | None:
    """显式参数 → 环境变量 → 当前目录下已存在的 settings.ini。"""
    if explicit is not None:
        return explicit
    from_env = os.environ.get(SETTINGS_FILE_ENV)
    if from_env:
        return Path(from_env)
    candidate = Path.cwd() / DEFAULT_SETTINGS_FILE
    return candidate if candidate.is_file() else None


def _config_from_args(args: argparse.Namespace) -> ServiceConfig:
    overrides: dict[str, Any] = {
        "host": args.host,
        "port": args.port,
        "image_directory": args.image_dir,
        "workers": args.workers,
    }
    if getattr(args, "log_level", None):
        overrides["log_level"] = args.log_level
    return load_config(_resolve_settings_file(args.settings), overrides)


def _export_config_env(config: ServiceConfig) -> None:
    """热重载模式下子进程通过环境变量重建配置。"""
    for name, value in config.model_dump().items():
        if value is not None:
            os.environ[f"LINECHART_{name.upper()}"] = str(value)


def _cmd_start(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        print("缺少依赖，请先运行: pip install -e .[dev]")
        return 1

    try:
        config = _config_from_args(args)
    except ConfigError as exc:
        print(f"配置错误: {exc.message}", file=sys.stderr)
        return exc.exit_code

    print(f"{config.app_name} is running on port: {config.port}")

    try:
        if args.reload:
            _export_config_env(config)
            uvicorn.run(
                "linechart.app:create_app",
                factory=True,
                host=config.host,
                port=config.port,
                reload=True,
                reload_dirs=["src"],
                log_level=config.log_level,
            )
        else:
            from linechart.app import create_app

            uvicorn.run(
                create_app(config),
                host=config.host,
                port=config.port,
                log_level=config.log_level,
            )
    except SystemExit as exc:
        # uvicorn 在端口绑定失败时以非零状态退出
        if exc.code not in (0, None):
            print(f"无法监听 {config.host}:{config.port}", file=sys.stderr)
            return EXIT_LISTEN_FAILED
        raise
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    settings_path = Path(args.settings).expanduser().resolve()
    if settings_path.exists() and not args.force:
        print(f"配置文件已存在: {settings_path}")
        print("如需覆盖请添加 --force")
        return 1

    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_text(_default_settings_content(), encoding="utf-8")

    print(f"已生成配置文件: {settings_path}")
    print("下一步：")
    print("1) 填写 image_directory（已存在的绝对路径）")
    print(f"2) 运行 `linechart start --settings {settings_path}` 启动服务")
    return 0


def _check_matplotlib() -> tuple[bool, str]:
    try:
        matplotlib = importlib.import_module("matplotlib")
    except ImportError:
        return False, "matplotlib 未安装（pip install matplotlib）"
    return True, f"matplotlib {matplotlib.__version__}"


def _cmd_doctor(args: argparse.Namespace) -> int:
    checks: list[tuple[str, bool, str]] = []

    py_ok = sys.version_info >= (3, 10)
    checks.append(
        (
            "Python 版本 >= 3.10",
            py_ok,
            f"当前: {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        )
    )

    config: ServiceConfig | None = None
    try:
        config = _config_from_args(args)
        checks.append(("配置有效", True, f"端口 {config.port}，图片目录 {config.image_dir}"))
    except ConfigError as exc:
        checks.append(("配置有效", False, f"{exc.message}（退出码 {exc.exit_code}）"))

    if config is not None:
        image_dir_ok = True
        try:
            probe = config.image_dir / ".doctor_probe"
            probe.write_text("ok", encoding="utf-8")
            probe.unlink(missing_ok=True)
            image_dir_msg = str(config.image_dir)
        except OSError as exc:
            image_dir_ok = False
            image_dir_msg = str(exc)
        checks.append(("图片目录可写", image_dir_ok, image_dir_msg))

    mpl_ok, mpl_msg = _check_matplotlib()
    checks.append(("matplotlib 可用", mpl_ok, mpl_msg))

    print("LineChart 环境检查:")
    failed = 0
    for name, ok, detail in checks:
        print(f"- [{'OK' if ok else 'FAIL'}] {name}: {detail}")
        if not ok:
            failed += 1

    if failed == 0:
        print("检查通过，可以运行 `linechart start`。")
        return 0

    print(f"检查完成：{failed} 项失败，请先修复。")
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(_normalize_argv(argv if argv is not None else sys.argv[1:]))
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        print("已中断。")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
