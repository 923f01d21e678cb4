"""
彩色日志配置模块
默认使用 Rich 输出；设置 LOG_FORMAT=plain 时使用 ANSI 彩色 StreamHandler
"""
import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


class ColorfulFormatter(logging.Formatter):
    """彩色日志格式化器"""

    # ANSI颜色代码
    COLORS = {
        'DEBUG': '\033[36m',      # 青色
        'INFO': '\033[32m',       # 绿色
        'WARNING': '\033[33m',    # 黄色
        'ERROR': '\033[31m',      # 红色
        'CRITICAL': '\033[35m',   # 紫色
    }
    RESET = '\033[0m'

    def format(self, record):
        message = super().format(record)
        level_name = record.levelname
        if level_name in self.COLORS:
            message = message.replace(level_name, f"{self.COLORS[level_name]}{level_name}{self.RESET}", 1)
        return message


def _use_plain_format() -> bool:
    return os.environ.get("LOG_FORMAT", "").lower() == "plain"


def setup_colorful_logging(level: int = logging.INFO, name: Optional[str] = None) -> logging.Logger:
    """
    设置彩色日志配置

    Args:
        level: 日志级别
        name: 日志器名称

    Returns:
        配置好的日志器
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 避免重复添加处理器
    if logger.handlers:
        return logger

    if _use_plain_format():
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorfulFormatter(
            '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    else:
        console = Console()
        handler = RichHandler(
            console=console,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
        )
        # 时间和级别由 RichHandler 负责
        handler.setFormatter(logging.Formatter('%(message)s', datefmt='%Y-%m-%d %H:%M:%S'))

    handler.setLevel(level)
    logger.addHandler(handler)
    return logger


def get_colorful_logger(name: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """获取彩色日志器"""
    return setup_colorful_logging(level=level, name=name)
