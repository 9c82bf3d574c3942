"""
主程序入口

解析命令行参数、加载配置、构建 Dashboard（配置错误时直接退出）、启动 REST API 服务。
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn
from pydantic import ValidationError

from . import __version__
from .config import Overrides, get_config, init_config
from .dashboard import get_dashboard
from .errors import ConfigurationError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """解析命令行参数（未指定的参数为 None，不覆盖配置文件和环境变量）"""
    parser = argparse.ArgumentParser(prog="ci-dashboard", description="CI 构建状态聚合看板服务")
    parser.add_argument("--config", help="配置文件路径")
    parser.add_argument("--bind-address", "--bindAddress", dest="bind_address", help="监听地址 host:port")
    parser.add_argument("--username", help="Jenkins Basic Auth 用户名")
    parser.add_argument("--password", help="Jenkins Basic Auth 密码")
    parser.add_argument("--debug", action="store_true", default=None, help="记录上游请求和响应")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def setup_logging():
    """配置日志"""
    config = get_config()

    # 日志格式
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 获取日志级别，调试模式强制 DEBUG
    level = getattr(logging, config.logging.level.upper(), logging.INFO)
    if config.debug:
        level = logging.DEBUG

    # 配置根日志
    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # 如果配置了文件日志
    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_overrides(args: argparse.Namespace) -> Overrides:
    return Overrides(
        username=args.username,
        password=args.password,
        bind_address=args.bind_address,
        debug=args.debug,
    )


def main(argv: Optional[List[str]] = None):
    """主函数：加载配置、构建 Dashboard 并启动 API 服务"""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)

    # 配置取值错误时日志尚未配置，直接输出到 stderr
    try:
        config = init_config(args.config, build_overrides(args))
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging()
    logger.info("=" * 60)
    logger.info(f"CI Dashboard v{__version__}")
    logger.info("=" * 60)
    logger.info(f"Config loaded: API={config.api.host}:{config.api.port}")

    # 实例配置错误属于部署问题，启动时直接失败
    try:
        get_dashboard()
    except ConfigurationError as e:
        logger.error(f"Invalid instance configuration: {e}")
        sys.exit(1)

    from .api.app import create_app

    logger.info(f"Dashboard can be accessed at http://{config.api.host}:{config.api.port}")
    uvicorn.run(
        create_app(),
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        access_log=False  # 我们用自己的日志
    )


def cli():
    """命令行入口"""
    try:
        main()
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
